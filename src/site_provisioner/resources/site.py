"""Build the three manifests that make up one site."""
from __future__ import annotations

from typing import Optional

from .base import ResourceDefinition
from .route import RouteConfig
from .service import ServiceConfig
from .workload import WorkloadConfig
from ..config import SiteDefaults
from ..errors import InvalidSiteRequest

MAX_LABEL_LENGTH = 63


def build_workload(identity: str, site_id: str, defaults: SiteDefaults) -> ResourceDefinition:
    return WorkloadConfig(identity=identity, site_id=site_id, defaults=defaults).to_resource()


def build_service(
    identity: str,
    site_id: str,
    workload_selector: Optional[str],
    defaults: SiteDefaults,
) -> ResourceDefinition:
    """Build the Service, echoing the workload-selector annotation of the created Deployment."""

    return ServiceConfig(
        identity=identity,
        site_id=site_id,
        workload_selector=workload_selector,
        defaults=defaults,
    ).to_resource()


def build_route(
    identity: str,
    site_id: str,
    domain_name: str,
    service_name: str,
    defaults: SiteDefaults,
) -> ResourceDefinition:
    """Build the Ingress; ``service_name`` must be the name the cluster assigned to the Service."""

    return RouteConfig(
        identity=identity,
        site_id=site_id,
        domain_name=domain_name,
        service_name=service_name,
        defaults=defaults,
    ).to_resource()


def check_identity_fits(identity: str, defaults: SiteDefaults) -> None:
    """Reject identities whose derived label values or port name exceed the cluster's 63-character limit."""

    derived = {
        "workload selector": WorkloadConfig(identity=identity, site_id="", defaults=defaults).workload_selector,
        "service port name": ServiceConfig(identity=identity, site_id="", defaults=defaults).port_name,
    }
    for purpose, value in derived.items():
        if len(value) > MAX_LABEL_LENGTH:
            raise InvalidSiteRequest(
                f"identity '{identity}' is too long: {purpose} '{value}' exceeds {MAX_LABEL_LENGTH} characters"
            )
