"""Request models accepted by the provisioner."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .identity import derive_identity, validate_domain_name


class SiteRequest(BaseModel):
    """The two-field request that provisions or deprovisions one site."""

    model_config = ConfigDict(populate_by_name=True)

    domain_name: str = Field(..., alias="domainName", min_length=1)
    site_id: str = Field(..., alias="websiteId", min_length=1)

    @field_validator("domain_name")
    @classmethod
    def _check_domain(cls, value: str) -> str:
        return validate_domain_name(value)

    @property
    def identity(self) -> str:
        return derive_identity(self.domain_name)
