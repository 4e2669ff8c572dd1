"""Configuration models and helpers for the site provisioner."""
from __future__ import annotations

from pathlib import Path
from typing import Optional

import yaml
from pydantic import AliasChoices, BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClusterContext(BaseModel):
    """Connection context used to reach the cluster control plane."""

    in_cluster: bool = True
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    verify_ssl: bool = True


class SiteDefaults(BaseModel):
    """Values shared by every site the provisioner creates."""

    namespace: str = "dynamic-sites"
    image: str = "ghcr.io/tyrelchambers/reddex-custom-website:latest"
    image_pull_policy: str = "Always"
    image_pull_secret: str = "ghrc"
    env_secret: str = "reddex-custom-secrets"
    container_port: int = 8000
    cluster_issuer: str = "letsencrypt-prod"
    tls_secret_prefix: str = "letsencrypt-"
    site_label: str = "site-id"


class ProvisionerSettings(BaseSettings):
    """Process-wide settings, read from the environment or a YAML file."""

    model_config = SettingsConfigDict(
        env_prefix="SITE_PROVISIONER_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    context: ClusterContext = Field(default_factory=ClusterContext)
    site: SiteDefaults = Field(default_factory=SiteDefaults)
    host: str = "0.0.0.0"
    port: int = 8080
    rollback_on_failure: bool = False
    reject_existing: bool = True
    local: bool = Field(default=False, validation_alias=AliasChoices("local", "site_provisioner_local"))

    @model_validator(mode="after")
    def _apply_local(self) -> "ProvisionerSettings":
        # LOCAL=true means "use my kubeconfig" rather than the service account.
        if self.local:
            self.context.in_cluster = False
        return self

    @classmethod
    def from_file(cls, path: str | Path) -> "ProvisionerSettings":
        document_path = Path(path)
        data = yaml.safe_load(document_path.read_text())
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping at the top level.")
        return cls(**data)


def load_settings(path: Optional[str | Path] = None) -> ProvisionerSettings:
    """Return settings from ``path`` when given, otherwise from the environment alone."""

    if path is None:
        return ProvisionerSettings()
    return ProvisionerSettings.from_file(path)
