"""Exception hierarchy shared by the site provisioner."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover
    from .operations.deprovision import DeprovisionReport


class SiteProvisionerError(Exception):
    """Base class for all provisioner errors."""


class InvalidSiteRequest(SiteProvisionerError, ValueError):
    """The inbound request cannot be turned into a site identity."""


class ClusterError(SiteProvisionerError):
    """A create, list or delete call was rejected by the control plane."""

    def __init__(
        self,
        kind: str,
        target: str,
        reason: str,
        status: Optional[int] = None,
    ) -> None:
        self.kind = kind
        self.target = target
        self.reason = reason
        self.status = status
        detail = f"{kind} {target}: {reason}"
        if status is not None:
            detail = f"{detail} (HTTP {status})"
        super().__init__(detail)


class ResourceNotFound(ClusterError):
    """The named resource does not exist."""


class SiteConflict(SiteProvisionerError):
    """Resources labelled with the identity already exist."""

    def __init__(self, identity: str, existing: List[Tuple[str, str]]) -> None:
        self.identity = identity
        self.existing = existing
        names = ", ".join(f"{kind}/{name}" for kind, name in existing)
        super().__init__(f"Site '{identity}' already has resources: {names}")


class ProvisionError(SiteProvisionerError):
    """A provision step failed; earlier steps may have left resources behind."""

    def __init__(
        self,
        kind: str,
        cause: ClusterError,
        created: List[Tuple[str, str]],
        rollback_failures: Optional[List[str]] = None,
    ) -> None:
        self.kind = kind
        self.cause = cause
        self.created = created
        self.rollback_failures = rollback_failures or []
        super().__init__(f"Failed to create {kind}: {cause}")


class DeprovisionError(SiteProvisionerError):
    """At least one lookup or delete failed while tearing a site down."""

    def __init__(self, report: "DeprovisionReport") -> None:
        self.report = report
        super().__init__(
            f"Deprovision of '{report.identity}' finished with {len(report.failures)} failure(s)"
        )
