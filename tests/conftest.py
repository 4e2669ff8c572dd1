import copy
from typing import Any, Dict, List, Set
from uuid import uuid4

import pytest

from site_provisioner.config import ProvisionerSettings
from site_provisioner.errors import ClusterError, ResourceNotFound
from site_provisioner.resources.base import ResourceDefinition, SiteKind


class FakeCluster:
    """In-memory stand-in for SiteAPI that assigns generated names like the API server."""

    def __init__(self) -> None:
        self.objects: Dict[SiteKind, List[Dict[str, Any]]] = {kind: [] for kind in SiteKind}
        self.fail_create: Set[SiteKind] = set()
        self.fail_list: Set[SiteKind] = set()
        self.fail_delete: Set[SiteKind] = set()
        self.unnamed: Set[SiteKind] = set()
        self.calls: List[tuple] = []

    def create(self, definition: ResourceDefinition) -> Dict[str, Any]:
        kind = SiteKind(definition.kind)
        self.calls.append(("create", kind.value))
        if kind in self.fail_create:
            raise ClusterError(kind.value, definition.generate_name or "", "exceeded quota", status=403)
        body = copy.deepcopy(definition.to_dict())
        metadata = body["metadata"]
        if "name" not in metadata:
            metadata["name"] = f"{metadata.pop('generateName')}{uuid4().hex[:5]}"
        self.objects[kind].append(body)
        stored = copy.deepcopy(body)
        if kind in self.unnamed:
            del stored["metadata"]["name"]
        return stored

    def list_by_label(self, kind: SiteKind, label_selector: str) -> List[Dict[str, Any]]:
        self.calls.append(("list", kind.value))
        if kind in self.fail_list:
            raise ClusterError(kind.value, label_selector, "connection refused")
        wanted = dict(part.split("=", 1) for part in label_selector.split(","))
        return [
            copy.deepcopy(item)
            for item in self.objects[kind]
            if all(item["metadata"].get("labels", {}).get(key) == value for key, value in wanted.items())
        ]

    def delete(self, kind: SiteKind, name: str) -> None:
        self.calls.append(("delete", kind.value))
        if kind in self.fail_delete:
            raise ClusterError(kind.value, name, "connection reset")
        for item in self.objects[kind]:
            if item["metadata"].get("name") == name:
                self.objects[kind].remove(item)
                return
        raise ResourceNotFound(kind.value, name, "not found", status=404)

    def names(self, kind: SiteKind) -> List[str]:
        return [item["metadata"].get("name") for item in self.objects[kind]]


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def settings() -> ProvisionerSettings:
    return ProvisionerSettings()
