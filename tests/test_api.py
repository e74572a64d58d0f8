"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from rightsizing_kernel.api.app import create_app
from rightsizing_kernel.lifecycle.config_record import RULE_CONFIG_KEY
from rightsizing_kernel.lifecycle.orchestrator import SPEC_HASH_ANNOTATION
from rightsizing_kernel.models.component import RightSizingOptions
from rightsizing_kernel.models.config import DEFAULT_CONFIG_NAMESPACE
from rightsizing_kernel.models.resources import ManagedResource, ResourceKind
from rightsizing_kernel.store.memory import InMemoryResourceStore


@pytest.fixture
def store():
    return InMemoryResourceStore()


@pytest.fixture
def client(store):
    """Create a test client with a fresh store."""
    app = create_app(store=store)
    return TestClient(app)


def _enable_namespace(client, binding: str = "ns1"):
    return client.put("/rightsizing/options", json={
        "namespace_enabled": True,
        "namespace_binding": binding,
    })


class TestOptionsEndpoints:
    def test_default_options(self, client):
        response = client.get("/rightsizing/options")
        assert response.status_code == 200
        data = response.json()
        assert data["namespace_enabled"] is False
        assert data["config_namespace"] == DEFAULT_CONFIG_NAMESPACE

    def test_update_options(self, client):
        response = _enable_namespace(client)
        assert response.status_code == 200
        assert client.get("/rightsizing/options").json()["namespace_binding"] == "ns1"

    def test_invalid_options(self, client):
        response = client.put("/rightsizing/options", json={"namespace_enabled": "maybe"})
        assert response.status_code == 422

    def test_values_none_when_disabled(self, client):
        assert client.get("/rightsizing/values").json() is None

    def test_values_when_enabled(self, client):
        _enable_namespace(client)
        assert client.get("/rightsizing/values").json() == {
            "namespaceEnabled": True,
            "namespaceBinding": "ns1",
            "virtualizationEnabled": False,
        }


class TestReconcileEndpoints:
    def test_status_before_reconcile(self, client):
        data = client.get("/rightsizing/status").json()
        assert data["enabled"] is False
        assert data["sync"] == "stopped"
        assert data["components"]["namespace"]["enabled"] is False

    def test_reconcile_all(self, client, store):
        _enable_namespace(client)
        response = client.post("/rightsizing/reconcile")
        assert response.status_code == 200
        data = response.json()
        assert data["enabled"] is True
        assert data["components"]["namespace"] == {"namespace": "ns1", "enabled": True}
        assert data["components"]["virtualization"]["enabled"] is False
        assert store.count() == 4

    def test_reconcile_one(self, client):
        client.put("/rightsizing/options", json={"virtualization_enabled": True})
        response = client.post("/rightsizing/reconcile/virtualization")
        assert response.status_code == 200
        assert response.json()["enabled"] is True

    def test_reconcile_unknown_component(self, client):
        response = client.post("/rightsizing/reconcile/storage")
        assert response.status_code == 404

    def test_reconcile_invalid_filters(self, client, store):
        store.create(ManagedResource(
            kind=ResourceKind.CONFIG_MAP,
            name="rs-namespace-config",
            namespace=DEFAULT_CONFIG_NAMESPACE,
            data={RULE_CONFIG_KEY: (
                "labelFilterCriteria:\n"
                "  - labelName: label_env\n"
                "    inclusionCriteria: [prod]\n"
                "    exclusionCriteria: [dev]\n"
            )},
        ))
        _enable_namespace(client)
        response = client.post("/rightsizing/reconcile/namespace")
        assert response.status_code == 422
        assert "apply configuration changes" in response.json()["detail"]

    def test_cleanup(self, client, store):
        client.put("/rightsizing/options", json={
            "namespace_enabled": True,
            "virtualization_enabled": True,
        })
        client.post("/rightsizing/reconcile")
        assert store.count() == 8

        response = client.post("/rightsizing/cleanup")
        assert response.status_code == 200
        assert store.count() == 0


class TestRulesEndpoints:
    def test_preview_rules(self, client):
        _enable_namespace(client)
        client.post("/rightsizing/reconcile")
        response = client.get("/rightsizing/rules/namespace")
        assert response.status_code == 200
        manifest = response.json()
        assert manifest["kind"] == "PrometheusRule"
        assert manifest["metadata"]["name"] == "acm-rs-namespace-prometheus-rules"
        assert len(manifest["spec"]["groups"]) == 4

    def test_preview_without_config_record(self, client):
        response = client.get("/rightsizing/rules/namespace")
        assert response.status_code == 404

    def test_preview_unknown_component(self, client):
        response = client.get("/rightsizing/rules/storage")
        assert response.status_code == 404


class TestResourceEndpoints:
    def test_list_resources(self, client):
        _enable_namespace(client)
        client.post("/rightsizing/reconcile")

        response = client.get("/resources")
        assert response.status_code == 200
        kinds = sorted(r["kind"] for r in response.json())
        assert kinds == ["AddOnTemplate", "ClusterManagementAddOn", "ConfigMap", "Placement"]

    def test_filter_by_kind(self, client):
        _enable_namespace(client)
        client.post("/rightsizing/reconcile")

        response = client.get("/resources", params={"kind": "Placement"})
        placements = response.json()
        assert len(placements) == 1
        assert placements[0]["namespace"] == "ns1"


class TestAppFactory:
    def test_initial_options(self, store):
        client = TestClient(create_app(
            store=store, options=RightSizingOptions(namespace_enabled=True)
        ))
        assert client.get("/rightsizing/status").json()["enabled"] is True


class TestConfigEndpoints:
    def test_get_config_missing(self, client):
        response = client.get("/rightsizing/config/namespace")
        assert response.status_code == 404

    def test_get_config_after_reconcile(self, client):
        _enable_namespace(client)
        client.post("/rightsizing/reconcile")
        response = client.get("/rightsizing/config/namespace")
        assert response.status_code == 200
        assert RULE_CONFIG_KEY in response.json()

    def test_edit_while_enabled_reapplies(self, client, store):
        _enable_namespace(client)
        client.post("/rightsizing/reconcile")
        before = store.list(ResourceKind.ADDON_TEMPLATE)[0].annotations[SPEC_HASH_ANNOTATION]

        response = client.put("/rightsizing/config/namespace", json={
            RULE_CONFIG_KEY: "recommendationPercentage: 150\n",
        })
        assert response.status_code == 200
        assert response.json() == {
            "applied": True,
            "state": {"namespace": "ns1", "enabled": True},
        }
        after = store.list(ResourceKind.ADDON_TEMPLATE)[0].annotations[SPEC_HASH_ANNOTATION]
        assert after != before

    def test_edit_while_disabled_only_stores(self, client, store):
        response = client.put("/rightsizing/config/virtualization", json={
            RULE_CONFIG_KEY: "recommendationPercentage: 150\n",
        })
        assert response.status_code == 200
        assert response.json()["applied"] is False
        assert [r.kind for r in store.list()] == [ResourceKind.CONFIG_MAP]

    def test_undecodable_edit(self, client):
        _enable_namespace(client)
        client.post("/rightsizing/reconcile")
        response = client.put("/rightsizing/config/namespace", json={
            RULE_CONFIG_KEY: "namespaceFilterCriteria: [unclosed",
        })
        assert response.status_code == 422
        assert "decode configuration record" in response.json()["detail"]

    def test_edit_unknown_component(self, client):
        response = client.put("/rightsizing/config/storage", json={})
        assert response.status_code == 404
