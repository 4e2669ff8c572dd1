"""Utility helpers shared across the site provisioner package."""
from __future__ import annotations

from typing import Dict, Mapping

APP_LABEL = "app"


def site_labels(identity: str, site_id: str, site_label: str) -> Dict[str, str]:
    """Return the label set carried by every resource of one site."""

    return {APP_LABEL: identity, site_label: site_id}


def label_selector(labels: Mapping[str, str]) -> str:
    """Render ``labels`` as an equality-based label selector."""

    return ",".join(f"{key}={value}" for key, value in labels.items())


def identity_selector(identity: str) -> str:
    return label_selector({APP_LABEL: identity})
