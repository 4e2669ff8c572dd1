"""Provision and tear down the cluster resources backing a site."""

from .config import ProvisionerSettings, SiteDefaults  # noqa: F401
from .kube import SiteAPI  # noqa: F401

__version__ = "0.1.0"

__all__ = ["ProvisionerSettings", "SiteDefaults", "SiteAPI", "__version__"]
