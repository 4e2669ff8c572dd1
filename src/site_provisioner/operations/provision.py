"""Operations for creating the resources of a site."""
from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..config import ProvisionerSettings
from ..errors import ClusterError, ProvisionError, SiteConflict
from ..kube import SiteAPI
from ..models import SiteRequest
from ..resources.base import WORKLOAD_SELECTOR_KEY, ResourceDefinition, SiteKind
from ..resources.site import build_route, build_service, build_workload, check_identity_fits
from ..utils import identity_selector

_LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProvisionResult:
    """Names the cluster assigned to the resources of a freshly provisioned site."""

    identity: str
    workload: str
    service: str
    route: str


class _IdentityLock:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


def _workload_selector(workload: Dict[str, Any]) -> Optional[str]:
    metadata = workload.get("metadata", {}) or {}
    annotations = metadata.get("annotations") or {}
    return annotations.get(WORKLOAD_SELECTOR_KEY)


def _stored_name(kind: SiteKind, definition: ResourceDefinition, stored: Dict[str, Any]) -> str:
    name = (stored.get("metadata") or {}).get("name")
    if not name:
        raise ClusterError(
            kind.value,
            definition.generate_name or "",
            "cluster returned the created object without a name",
        )
    return str(name)


class ProvisionOperations:
    """Create a site's Deployment, Service and Ingress in dependency order.

    Each step consumes what the cluster returned from the previous one: the
    Service echoes the Deployment's workload-selector annotation and the
    Ingress routes to the Service's generated name. The first failure stops
    the pipeline; resources created before it stay in place unless
    ``rollback_on_failure`` is enabled.
    """

    def __init__(self, api: SiteAPI, settings: ProvisionerSettings) -> None:
        self.api = api
        self.settings = settings
        self._locks: Dict[str, _IdentityLock] = {}
        self._locks_guard = threading.Lock()

    def provision(self, request: SiteRequest) -> ProvisionResult:
        identity = request.identity
        defaults = self.settings.site
        check_identity_fits(identity, defaults)
        _LOG.info("Provisioning site %s (%s) for %s", identity, request.site_id, request.domain_name)

        with self._identity_lock(identity):
            if self.settings.reject_existing:
                self._ensure_absent(identity)

            created: List[Tuple[SiteKind, str]] = []
            workload, workload_name = self._create(
                SiteKind.WORKLOAD,
                build_workload(identity, request.site_id, defaults),
                created,
            )
            _, service_name = self._create(
                SiteKind.SERVICE,
                build_service(identity, request.site_id, _workload_selector(workload), defaults),
                created,
            )
            _, route_name = self._create(
                SiteKind.ROUTE,
                build_route(identity, request.site_id, request.domain_name, service_name, defaults),
                created,
            )

        result = ProvisionResult(
            identity=identity,
            workload=workload_name,
            service=service_name,
            route=route_name,
        )
        _LOG.info(
            "Provisioned site %s: Deployment/%s Service/%s Ingress/%s",
            identity,
            result.workload,
            result.service,
            result.route,
        )
        return result

    def _create(
        self,
        kind: SiteKind,
        definition: ResourceDefinition,
        created: List[Tuple[SiteKind, str]],
    ) -> Tuple[Dict[str, Any], str]:
        try:
            stored = self.api.create(definition)
            name = _stored_name(kind, definition, stored)
        except ClusterError as exc:
            _LOG.error("Failed to create %s for site: %s", kind.value, exc)
            rollback_failures: List[str] = []
            if self.settings.rollback_on_failure and created:
                rollback_failures = self._rollback(created)
            raise ProvisionError(
                kind.value,
                exc,
                [(done_kind.value, done_name) for done_kind, done_name in created],
                rollback_failures,
            ) from exc
        created.append((kind, name))
        return stored, name

    def _rollback(self, created: List[Tuple[SiteKind, str]]) -> List[str]:
        """Delete ``created`` newest first, continuing past failures."""

        failures: List[str] = []
        for kind, name in reversed(created):
            try:
                self.api.delete(kind, name)
                _LOG.info("Rolled back %s/%s", kind.value, name)
            except ClusterError as exc:
                _LOG.error("Rollback of %s/%s failed: %s", kind.value, name, exc)
                failures.append(str(exc))
        return failures

    def _ensure_absent(self, identity: str) -> None:
        selector = identity_selector(identity)
        existing: List[Tuple[str, str]] = []
        for kind in SiteKind:
            for item in self.api.list_by_label(kind, selector):
                name = (item.get("metadata") or {}).get("name") or "<unnamed>"
                existing.append((kind.value, str(name)))
        if existing:
            _LOG.warning("Refusing to provision %s; found %d existing resource(s)", identity, len(existing))
            raise SiteConflict(identity, existing)

    @contextmanager
    def _identity_lock(self, identity: str) -> Iterator[None]:
        with self._locks_guard:
            entry = self._locks.setdefault(identity, _IdentityLock())
            entry.users += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._locks_guard:
                entry.users -= 1
                if not entry.users:
                    del self._locks[identity]
