import pytest

from site_provisioner.config import ProvisionerSettings
from site_provisioner.errors import ClusterError, InvalidSiteRequest, ProvisionError, SiteConflict
from site_provisioner.models import SiteRequest
from site_provisioner.operations.provision import ProvisionOperations
from site_provisioner.resources.base import WORKLOAD_SELECTOR_KEY, SiteKind


def _request(domain="foo.example.com", site_id="S1") -> SiteRequest:
    return SiteRequest(domainName=domain, websiteId=site_id)


def test_provision_creates_three_linked_resources(cluster, settings):
    result = ProvisionOperations(cluster, settings).provision(_request())

    assert [call for call in cluster.calls if call[0] == "create"] == [
        ("create", "Deployment"),
        ("create", "Service"),
        ("create", "Ingress"),
    ]
    for kind in SiteKind:
        assert len(cluster.objects[kind]) == 1
        labels = cluster.objects[kind][0]["metadata"]["labels"]
        assert labels["app"] == "foo"
        assert labels["site-id"] == "S1"

    service_name = cluster.names(SiteKind.SERVICE)[0]
    assert result.service == service_name
    assert result.workload == cluster.names(SiteKind.WORKLOAD)[0]
    assert result.route == cluster.names(SiteKind.ROUTE)[0]

    route = cluster.objects[SiteKind.ROUTE][0]
    backend = route["spec"]["rules"][0]["http"]["paths"][0]["backend"]["service"]
    assert backend["name"] == service_name

    workload = cluster.objects[SiteKind.WORKLOAD][0]
    service = cluster.objects[SiteKind.SERVICE][0]
    assert (
        service["metadata"]["annotations"][WORKLOAD_SELECTOR_KEY]
        == workload["metadata"]["annotations"][WORKLOAD_SELECTOR_KEY]
    )


def test_service_failure_leaves_only_the_workload(cluster, settings):
    cluster.fail_create.add(SiteKind.SERVICE)

    with pytest.raises(ProvisionError) as excinfo:
        ProvisionOperations(cluster, settings).provision(_request())

    assert excinfo.value.kind == "Service"
    assert isinstance(excinfo.value.cause, ClusterError)
    assert excinfo.value.created == [("Deployment", cluster.names(SiteKind.WORKLOAD)[0])]
    assert len(cluster.objects[SiteKind.WORKLOAD]) == 1
    assert cluster.objects[SiteKind.SERVICE] == []
    assert cluster.objects[SiteKind.ROUTE] == []
    assert ("create", "Ingress") not in cluster.calls


def test_workload_failure_creates_nothing(cluster, settings):
    cluster.fail_create.add(SiteKind.WORKLOAD)

    with pytest.raises(ProvisionError) as excinfo:
        ProvisionOperations(cluster, settings).provision(_request())

    assert excinfo.value.created == []
    assert all(not cluster.objects[kind] for kind in SiteKind)


def test_rollback_removes_earlier_resources(cluster):
    settings = ProvisionerSettings(rollback_on_failure=True)
    cluster.fail_create.add(SiteKind.ROUTE)

    with pytest.raises(ProvisionError) as excinfo:
        ProvisionOperations(cluster, settings).provision(_request())

    assert all(not cluster.objects[kind] for kind in SiteKind)
    deletes = [call for call in cluster.calls if call[0] == "delete"]
    assert deletes == [("delete", "Service"), ("delete", "Deployment")]
    assert excinfo.value.rollback_failures == []


def test_rollback_failures_are_recorded_without_masking_cause(cluster):
    settings = ProvisionerSettings(rollback_on_failure=True)
    cluster.fail_create.add(SiteKind.ROUTE)
    cluster.fail_delete.add(SiteKind.SERVICE)

    with pytest.raises(ProvisionError) as excinfo:
        ProvisionOperations(cluster, settings).provision(_request())

    assert excinfo.value.kind == "Ingress"
    assert len(excinfo.value.rollback_failures) == 1
    assert cluster.objects[SiteKind.WORKLOAD] == []
    assert len(cluster.objects[SiteKind.SERVICE]) == 1


def test_existing_site_is_rejected(cluster, settings):
    operations = ProvisionOperations(cluster, settings)
    operations.provision(_request())

    with pytest.raises(SiteConflict) as excinfo:
        operations.provision(_request(site_id="S2"))

    assert excinfo.value.identity == "foo"
    assert len(excinfo.value.existing) == 3
    assert all(len(cluster.objects[kind]) == 1 for kind in SiteKind)


def test_duplicates_allowed_when_guard_disabled(cluster):
    operations = ProvisionOperations(cluster, ProvisionerSettings(reject_existing=False))
    operations.provision(_request())
    operations.provision(_request())

    assert all(len(cluster.objects[kind]) == 2 for kind in SiteKind)


def test_guard_lookup_failure_aborts_before_creating(cluster, settings):
    cluster.fail_list.add(SiteKind.SERVICE)

    with pytest.raises(ClusterError):
        ProvisionOperations(cluster, settings).provision(_request())

    assert not [call for call in cluster.calls if call[0] == "create"]


def test_identity_too_long_for_labels_is_rejected_before_any_call(cluster, settings):
    request = _request(domain="a" * 40 + ".example.com")

    with pytest.raises(InvalidSiteRequest) as excinfo:
        ProvisionOperations(cluster, settings).provision(request)

    assert "workload selector" in str(excinfo.value)
    assert cluster.calls == []


def test_identity_locks_are_released(cluster, settings):
    operations = ProvisionOperations(cluster, settings)
    operations.provision(_request())
    cluster.fail_create.add(SiteKind.WORKLOAD)
    with pytest.raises(ProvisionError):
        operations.provision(_request(domain="bar.example.com"))

    assert operations._locks == {}


def test_created_object_without_name_stops_pipeline(cluster, settings):
    cluster.unnamed.add(SiteKind.SERVICE)

    with pytest.raises(ProvisionError) as excinfo:
        ProvisionOperations(cluster, settings).provision(_request())

    assert excinfo.value.kind == "Service"
    assert "without a name" in str(excinfo.value.cause)
    assert cluster.objects[SiteKind.ROUTE] == []
