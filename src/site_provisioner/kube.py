"""Low-level Kubernetes client helpers for the site provisioner."""
from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.dynamic import DynamicClient, ResourceInstance
from kubernetes.dynamic.exceptions import ResourceNotFoundError as DiscoveryError
from urllib3.exceptions import HTTPError as TransportError

from .config import ClusterContext
from .errors import ClusterError, ResourceNotFound
from .resources.base import ResourceDefinition, SiteKind


_LOG = logging.getLogger(__name__)


def new_api_client(context: ClusterContext) -> client.ApiClient:
    """Return an API client using in-cluster credentials or a kubeconfig."""

    if context.in_cluster:
        configuration = client.Configuration()
        config.load_incluster_config(client_configuration=configuration)
        api_client = client.ApiClient(configuration)
        _LOG.debug("Using in-cluster service account credentials")
    else:
        api_client = config.new_client_from_config(
            config_file=context.kubeconfig,
            context=context.context,
        )
        _LOG.debug("Using kubeconfig %s", context.kubeconfig or "(default)")
    api_client.configuration.verify_ssl = context.verify_ssl
    return api_client


class SiteAPI:
    """Wrapper around the Kubernetes dynamic client scoped to one namespace.

    Only create, list and delete are exposed. Every control-plane failure is
    raised as :class:`~site_provisioner.errors.ClusterError`.
    """

    def __init__(self, context: ClusterContext, namespace: str) -> None:
        self.context = context
        self.namespace = namespace
        self.api_client = new_api_client(context)
        self.dynamic = DynamicClient(self.api_client)

    def create(self, definition: ResourceDefinition) -> Dict[str, Any]:
        """Create ``definition`` and return the object stored by the cluster."""

        body = copy.deepcopy(definition.to_dict())
        body.setdefault("metadata", {})["namespace"] = self.namespace
        target = definition.name or f"{definition.generate_name or ''}*"

        try:
            resource = self._resource(definition.api_version, definition.kind)
            _LOG.debug("Creating %s %s", definition.kind, target)
            created = resource.create(body=body, namespace=self.namespace)
        except (ApiException, DiscoveryError, TransportError) as exc:
            raise self._translate(exc, definition.kind, target) from exc

        stored = created.to_dict() if isinstance(created, ResourceInstance) else created
        _LOG.info("Created %s/%s", definition.kind, stored.get("metadata", {}).get("name"))
        return stored

    def list_by_label(self, kind: SiteKind, label_selector: str) -> List[Dict[str, Any]]:
        """Return every ``kind`` object matching ``label_selector``, oldest first."""

        try:
            resource = self._resource(kind.api_version, kind.value)
            _LOG.debug("Listing %s with selector %s", kind.value, label_selector)
            result = resource.get(namespace=self.namespace, label_selector=label_selector)
        except (ApiException, DiscoveryError, TransportError) as exc:
            raise self._translate(exc, kind.value, label_selector) from exc

        payload = result.to_dict() if isinstance(result, ResourceInstance) else result
        items = list(payload.get("items", []) or [])
        items.sort(key=lambda item: item.get("metadata", {}).get("creationTimestamp") or "")
        return items

    def delete(self, kind: SiteKind, name: str) -> None:
        """Delete the named resource; a missing resource is an error."""

        try:
            resource = self._resource(kind.api_version, kind.value)
            resource.delete(name=name, namespace=self.namespace)
        except (ApiException, DiscoveryError, TransportError) as exc:
            raise self._translate(exc, kind.value, name) from exc
        _LOG.info("Deleted %s/%s", kind.value, name)

    def _resource(self, api_version: str, kind: str) -> Any:
        return self.dynamic.resources.get(api_version=api_version, kind=kind)

    @staticmethod
    def _translate(exc: Exception, kind: str, target: str) -> ClusterError:
        if isinstance(exc, ApiException):
            reason = exc.reason or str(exc)
            if exc.status == 404:
                error: ClusterError = ResourceNotFound(kind, target, reason, status=404)
            else:
                error = ClusterError(kind, target, reason, status=exc.status)
        else:
            error = ClusterError(kind, target, str(exc) or exc.__class__.__name__)
        _LOG.error("Control-plane call failed for %s %s: %s", kind, target, error.reason)
        return error
