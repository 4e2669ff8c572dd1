"""Workload (Deployment) resource builder."""
from __future__ import annotations

from typing import Dict

from .base import WORKLOAD_SELECTOR_KEY, ResourceDefinition, ResourceModel, SiteKind
from ..config import SiteDefaults
from ..utils import site_labels


class WorkloadConfig(ResourceModel):
    """Configuration for the Deployment running one site's container."""

    identity: str
    site_id: str
    defaults: SiteDefaults

    @property
    def workload_selector(self) -> str:
        return f"apps.deployment-{self.defaults.namespace}-{self.identity}"

    def labels(self) -> Dict[str, str]:
        labels = site_labels(self.identity, self.site_id, self.defaults.site_label)
        labels[WORKLOAD_SELECTOR_KEY] = self.workload_selector
        return labels

    def _container(self) -> Dict[str, object]:
        defaults = self.defaults
        return {
            "name": "container-0",
            "image": defaults.image,
            "imagePullPolicy": defaults.image_pull_policy,
            "ports": [
                {
                    "name": "port-0",
                    "containerPort": defaults.container_port,
                    "protocol": "TCP",
                }
            ],
            "envFrom": [
                {"secretRef": {"name": defaults.env_secret, "optional": False}},
            ],
            "securityContext": {
                "allowPrivilegeEscalation": False,
                "privileged": False,
                "readOnlyRootFilesystem": False,
                "runAsNonRoot": True,
            },
        }

    def to_resource(self) -> ResourceDefinition:
        labels = self.labels()
        metadata: Dict[str, object] = {
            "generateName": f"{self.identity}-deploy-",
            "namespace": self.defaults.namespace,
            "labels": labels,
            "annotations": {WORKLOAD_SELECTOR_KEY: self.workload_selector},
        }
        spec: Dict[str, object] = {
            "selector": {"matchLabels": {WORKLOAD_SELECTOR_KEY: self.workload_selector}},
            "strategy": {
                "type": "RollingUpdate",
                "rollingUpdate": {"maxSurge": "25%", "maxUnavailable": "25%"},
            },
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "containers": [self._container()],
                    "imagePullSecrets": [{"name": self.defaults.image_pull_secret}],
                },
            },
        }
        return ResourceDefinition(
            api_version=SiteKind.WORKLOAD.api_version,
            kind=SiteKind.WORKLOAD.value,
            metadata=metadata,
            spec=spec,
        )
