"""Operations for tearing down the resources of a site."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Tuple

from ..errors import ClusterError, DeprovisionError
from ..kube import SiteAPI
from ..models import SiteRequest
from ..resources.base import SiteKind
from ..utils import identity_selector

_LOG = logging.getLogger(__name__)


@dataclass
class DeprovisionReport:
    """Outcome of one deprovision call across all resource kinds."""

    identity: str
    deleted: List[Tuple[str, str]] = field(default_factory=list)
    failures: List[Tuple[str, str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def extend(self, other: "DeprovisionReport") -> None:
        self.deleted.extend(other.deleted)
        self.failures.extend(other.failures)


class DeprovisionOperations:
    """Find a site's resources by label and delete everything found.

    Lookups and deletes never stop at the first failure: each kind is
    processed to completion and the call fails only once all of them are done.
    """

    def __init__(self, api: SiteAPI, parallel: bool = False) -> None:
        self.api = api
        self.parallel = parallel

    def deprovision(self, request: SiteRequest) -> DeprovisionReport:
        identity = request.identity
        selector = identity_selector(identity)
        _LOG.info("Deprovisioning site %s using selector %s", identity, selector)

        kinds = list(SiteKind)
        if self.parallel:
            with ThreadPoolExecutor(max_workers=len(kinds)) as pool:
                partials = list(pool.map(lambda kind: self._teardown_kind(identity, kind, selector), kinds))
        else:
            partials = [self._teardown_kind(identity, kind, selector) for kind in kinds]

        report = DeprovisionReport(identity=identity)
        for partial in partials:
            report.extend(partial)

        if not report.ok:
            raise DeprovisionError(report)
        if not report.deleted:
            _LOG.info("Nothing to delete for site %s", identity)
        return report

    def _teardown_kind(self, identity: str, kind: SiteKind, selector: str) -> DeprovisionReport:
        partial = DeprovisionReport(identity=identity)
        try:
            items = self.api.list_by_label(kind, selector)
        except ClusterError as exc:
            _LOG.error("Failed to find %s for %s: %s", kind.value, selector, exc)
            partial.failures.append((kind.value, selector, str(exc)))
            return partial

        if not items:
            _LOG.debug("No %s matches %s", kind.value, selector)
            return partial

        for item in items:
            name = (item.get("metadata") or {}).get("name")
            if not name:
                _LOG.warning("Skipping %s without a name matched by %s", kind.value, selector)
                continue
            try:
                self.api.delete(kind, name)
            except ClusterError as exc:
                _LOG.error("Failed to delete %s/%s: %s", kind.value, name, exc)
                partial.failures.append((kind.value, name, str(exc)))
                continue
            partial.deleted.append((kind.value, name))
        return partial
