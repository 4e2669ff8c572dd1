"""Derive the short identity that names and labels every resource of a site."""
from __future__ import annotations

import re

from .errors import InvalidSiteRequest

_DNS_LABEL = re.compile(r"^[a-z0-9]([a-z0-9-]{0,61}[a-z0-9])?$")
_MAX_DOMAIN_LENGTH = 253


def derive_identity(domain_name: str) -> str:
    """Return the part of ``domain_name`` before its first dot.

    A name without a dot yields the whole string and a name starting with a
    dot yields an empty string; callers that need a usable identity validate
    the domain first with :func:`validate_domain_name`.
    """

    return domain_name.split(".", 1)[0]


def validate_domain_name(domain_name: str) -> str:
    """Normalise ``domain_name`` and reject shapes that produce unusable identities."""

    normalized = domain_name.strip().lower()
    if not normalized:
        raise InvalidSiteRequest("domainName must not be empty")
    if len(normalized) > _MAX_DOMAIN_LENGTH:
        raise InvalidSiteRequest(f"domainName exceeds {_MAX_DOMAIN_LENGTH} characters")
    labels = normalized.split(".")
    if len(labels) < 2:
        raise InvalidSiteRequest(f"domainName '{domain_name}' must contain at least one dot")
    for label in labels:
        if not _DNS_LABEL.match(label):
            raise InvalidSiteRequest(f"domainName '{domain_name}' has an invalid label '{label}'")
    return normalized
