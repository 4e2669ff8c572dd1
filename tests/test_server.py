import pytest
from fastapi.testclient import TestClient

from site_provisioner.resources.base import SiteKind
from site_provisioner.server import create_app

BODY = {"domainName": "foo.example.com", "websiteId": "S1"}


@pytest.fixture
def client(cluster, settings):
    return TestClient(create_app(settings, api=cluster))


def test_provision_returns_no_content(client, cluster):
    response = client.post("/", json=BODY)

    assert response.status_code == 204
    assert all(len(cluster.objects[kind]) == 1 for kind in SiteKind)


def test_provision_failure_returns_server_error(client, cluster):
    cluster.fail_create.add(SiteKind.SERVICE)

    response = client.post("/", json=BODY)

    assert response.status_code == 500
    assert len(cluster.objects[SiteKind.WORKLOAD]) == 1


def test_provision_conflict(client):
    assert client.post("/", json=BODY).status_code == 204
    response = client.post("/", json=BODY)

    assert response.status_code == 409
    assert "foo" in response.json()["detail"]


@pytest.mark.parametrize(
    "body",
    [
        {"domainName": "foo.example.com"},
        {"domainName": "localhost", "websiteId": "S1"},
        {"domainName": ".example.com", "websiteId": "S1"},
        {"domainName": "foo.example.com", "websiteId": ""},
    ],
)
def test_invalid_requests_are_client_errors(client, cluster, body):
    response = client.post("/", json=body)

    assert response.status_code == 400
    assert cluster.calls == []


def test_undecodable_body_is_client_error(client, cluster):
    response = client.post("/", content="{not json", headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert cluster.calls == []


def test_deprovision_with_nothing_present(client):
    response = client.request("DELETE", "/", json=BODY)

    assert response.status_code == 204


def test_deprovision_after_provision(client, cluster):
    client.post("/", json=BODY)

    response = client.request("DELETE", "/", json=BODY)

    assert response.status_code == 204
    assert all(not cluster.objects[kind] for kind in SiteKind)


def test_deprovision_failure_returns_server_error(client, cluster):
    client.post("/", json=BODY)
    cluster.fail_list.add(SiteKind.WORKLOAD)

    response = client.request("DELETE", "/", json=BODY)

    assert response.status_code == 500
    assert cluster.objects[SiteKind.SERVICE] == []


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}


def test_identity_too_long_for_labels_is_client_error(client, cluster):
    response = client.post("/", json={"domainName": "a" * 40 + ".example.com", "websiteId": "S1"})

    assert response.status_code == 400
    assert "too long" in response.json()["detail"]
    assert cluster.calls == []
