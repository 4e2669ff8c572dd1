"""Shared resource definitions for the site provisioner."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

WORKLOAD_SELECTOR_KEY = "workload.user.cattle.io/workloadselector"


class SiteKind(str, Enum):
    """The three resource kinds that make up a site, in creation order."""

    WORKLOAD = "Deployment"
    SERVICE = "Service"
    ROUTE = "Ingress"

    @property
    def api_version(self) -> str:
        return _API_VERSIONS[self]


_API_VERSIONS = {
    SiteKind.WORKLOAD: "apps/v1",
    SiteKind.SERVICE: "v1",
    SiteKind.ROUTE: "networking.k8s.io/v1",
}


class ResourceModel(BaseModel):
    """Shared base model for site resource configuration objects."""

    model_config = ConfigDict(populate_by_name=True)


@dataclass(frozen=True)
class ResourceDefinition:
    """Represents a Kubernetes resource manifest."""

    api_version: str
    kind: str
    metadata: Dict[str, Any]
    spec: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata,
        }
        if self.spec is not None:
            body["spec"] = self.spec
        return body

    @property
    def name(self) -> Optional[str]:
        return self.metadata.get("name")

    @property
    def generate_name(self) -> Optional[str]:
        return self.metadata.get("generateName")

    @property
    def namespace(self) -> Optional[str]:
        return self.metadata.get("namespace")
