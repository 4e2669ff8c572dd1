"""Route (Ingress) resource builder."""
from __future__ import annotations

from typing import Dict

from .base import ResourceDefinition, ResourceModel, SiteKind
from ..config import SiteDefaults
from ..utils import site_labels

CLUSTER_ISSUER_ANNOTATION = "cert-manager.io/cluster-issuer"


class RouteConfig(ResourceModel):
    """Configuration for the TLS Ingress exposing a site under its domain name."""

    identity: str
    site_id: str
    domain_name: str
    service_name: str
    defaults: SiteDefaults

    @property
    def tls_secret_name(self) -> str:
        return f"{self.defaults.tls_secret_prefix}{self.domain_name}"

    def to_resource(self) -> ResourceDefinition:
        metadata: Dict[str, object] = {
            "generateName": "ingress-",
            "namespace": self.defaults.namespace,
            "labels": site_labels(self.identity, self.site_id, self.defaults.site_label),
            "annotations": {CLUSTER_ISSUER_ANNOTATION: self.defaults.cluster_issuer},
        }
        backend = {
            "service": {
                "name": self.service_name,
                "port": {"number": self.defaults.container_port},
            }
        }
        spec: Dict[str, object] = {
            "rules": [
                {
                    "host": self.domain_name,
                    "http": {
                        "paths": [
                            {"path": "/", "pathType": "Prefix", "backend": backend},
                        ]
                    },
                }
            ],
            "tls": [
                {"hosts": [self.domain_name], "secretName": self.tls_secret_name},
            ],
        }
        return ResourceDefinition(
            api_version=SiteKind.ROUTE.api_version,
            kind=SiteKind.ROUTE.value,
            metadata=metadata,
            spec=spec,
        )
