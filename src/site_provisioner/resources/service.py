"""Service resource builder."""
from __future__ import annotations

from typing import Dict, Optional

from .base import WORKLOAD_SELECTOR_KEY, ResourceDefinition, ResourceModel, SiteKind
from ..config import SiteDefaults
from ..utils import site_labels


class ServiceConfig(ResourceModel):
    """Configuration for the ClusterIP Service in front of a site's workload."""

    identity: str
    site_id: str
    defaults: SiteDefaults
    workload_selector: Optional[str] = None

    @property
    def port_name(self) -> str:
        return f"{self.identity}-port"

    def to_resource(self) -> ResourceDefinition:
        labels = site_labels(self.identity, self.site_id, self.defaults.site_label)
        metadata: Dict[str, object] = {
            "generateName": "service-",
            "namespace": self.defaults.namespace,
            "labels": labels,
        }
        if self.workload_selector is not None:
            metadata["annotations"] = {WORKLOAD_SELECTOR_KEY: self.workload_selector}

        port = self.defaults.container_port
        spec: Dict[str, object] = {
            "type": "ClusterIP",
            "selector": dict(labels),
            "ports": [
                {
                    "name": self.port_name,
                    "port": port,
                    "targetPort": port,
                    "protocol": "TCP",
                }
            ],
        }
        return ResourceDefinition(
            api_version=SiteKind.SERVICE.api_version,
            kind=SiteKind.SERVICE.value,
            metadata=metadata,
            spec=spec,
        )
