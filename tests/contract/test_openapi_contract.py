"""Contract tests for the HTTP API.

These tests verify that the API matches its published OpenAPI schema,
that endpoints return the expected response structures, and that domain
errors are rendered as RFC 9457 problem documents.
"""

from __future__ import annotations

import pytest

PROBLEM_JSON = "application/problem+json"


def _create(client, slug="acme", **extra):
    body = {"name": "Acme Corp", "slug": slug, **extra}
    return client.post("/api/v1/tenants", json=body)


def _event(client, tenant_id, event):
    return client.post(f"/api/v1/tenants/{tenant_id}/events", json={"event": event})


@pytest.mark.contract
class TestOpenAPIContract:

    def test_health_endpoint(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert "timestamp" in data

    def test_openapi_schema_available(self, client):
        resp = client.get("/openapi.json")
        assert resp.status_code == 200
        schema = resp.json()
        assert schema["info"]["title"] == "Tenant Lifecycle Service"
        assert "/api/v1/tenants" in schema["paths"]
        assert "/api/v1/tenants/{tenant_id}/events" in schema["paths"]

    def test_event_enum_documented(self, client):
        schema = client.get("/openapi.json").json()
        events = schema["components"]["schemas"]["LifecycleEvent"]["enum"]
        assert events == ["provision_complete", "suspend", "reactivate", "delete", "deletion_complete"]

    def test_metrics_endpoint(self, client):
        client.get("/health")
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "api_requests_total" in resp.text

    def test_request_id_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]


@pytest.mark.contract
class TestTenantEndpoints:

    def test_create_returns_201(self, client):
        resp = _create(client, plan="pro")
        assert resp.status_code == 201
        data = resp.json()
        assert len(data["id"]) == 32
        assert data["name"] == "Acme Corp"
        assert data["slug"] == "acme"
        assert data["status"] == "creating"
        assert data["plan"] == "pro"
        assert data["created_at"] == data["updated_at"]

    def test_create_defaults_plan(self, client):
        assert _create(client).json()["plan"] == "free"

    def test_get_tenant(self, client):
        created = _create(client).json()
        resp = client.get(f"/api/v1/tenants/{created['id']}")
        assert resp.status_code == 200
        assert resp.json() == created

    def test_list_with_status_filter(self, client):
        a = _create(client, slug="a").json()
        _create(client, slug="b")
        _event(client, a["id"], "provision_complete")

        resp = client.get("/api/v1/tenants", params={"status": "active"})
        assert resp.status_code == 200
        data = resp.json()
        assert [t["id"] for t in data["items"]] == [a["id"]]
        assert data["count"] == 1
        assert data["limit"] == 50
        assert data["offset"] == 0

    def test_list_pagination(self, client):
        for i in range(3):
            _create(client, slug=f"t-{i}")
        data = client.get("/api/v1/tenants", params={"limit": 2, "offset": 2}).json()
        assert data["count"] == 1

    def test_transition(self, client):
        tenant = _create(client).json()
        resp = _event(client, tenant["id"], "provision_complete")
        assert resp.status_code == 200
        assert resp.json()["status"] == "active"

    def test_full_lifecycle(self, client):
        tenant_id = _create(client).json()["id"]
        for event, status in [
            ("provision_complete", "active"),
            ("suspend", "suspended"),
            ("reactivate", "active"),
            ("delete", "deleting"),
            ("deletion_complete", "deleted"),
        ]:
            assert _event(client, tenant_id, event).json()["status"] == status
        assert client.get(f"/api/v1/tenants/{tenant_id}").json()["status"] == "deleted"


@pytest.mark.contract
class TestProblemResponses:

    def test_validation_error_follows_rfc9457(self, client):
        resp = client.post("/api/v1/tenants", json={})
        assert resp.status_code == 422
        assert resp.headers["content-type"].startswith(PROBLEM_JSON)
        data = resp.json()
        assert data["status"] == 422
        assert data["title"] == "Validation Error"
        assert data["errors"]

    @pytest.mark.parametrize("slug", ["Acme", "acme_corp", "-acme", "acme-", "a--b", "", "x" * 101])
    def test_bad_slug_rejected(self, client, slug):
        assert _create(client, slug=slug).status_code == 422

    def test_empty_name_rejected(self, client):
        resp = client.post("/api/v1/tenants", json={"name": "", "slug": "acme"})
        assert resp.status_code == 422

    def test_unknown_event_rejected(self, client):
        tenant = _create(client).json()
        assert _event(client, tenant["id"], "archive").status_code == 422

    def test_unknown_status_filter_rejected(self, client):
        assert client.get("/api/v1/tenants", params={"status": "archived"}).status_code == 422

    def test_limit_bounds(self, client):
        assert client.get("/api/v1/tenants", params={"limit": 0}).status_code == 422
        assert client.get("/api/v1/tenants", params={"limit": 501}).status_code == 422

    def test_not_found(self, client):
        resp = client.get("/api/v1/tenants/does-not-exist")
        assert resp.status_code == 404
        data = resp.json()
        assert data["type"].endswith("/tenant-not-found")
        assert data["instance"] == "/api/v1/tenants/does-not-exist"

    def test_event_for_unknown_tenant(self, client):
        assert _event(client, "does-not-exist", "suspend").status_code == 404

    def test_duplicate_slug_conflict(self, client):
        _create(client)
        resp = _create(client)
        assert resp.status_code == 409
        assert resp.json()["type"].endswith("/slug-conflict")

    def test_invalid_transition(self, client):
        tenant = _create(client).json()
        resp = _event(client, tenant["id"], "suspend")
        assert resp.status_code == 422
        data = resp.json()
        assert data["type"].endswith("/invalid-transition")
        assert "suspend" in data["detail"]
        assert "creating" in data["detail"]
        assert data["event"] == "suspend"
        assert data["current_status"] == "creating"
        assert data["allowed_events"] == ["provision_complete"]

    def test_invalid_transition_on_deleted_tenant_lists_no_events(self, client):
        tenant_id = _create(client).json()["id"]
        for event in ("provision_complete", "delete", "deletion_complete"):
            assert _event(client, tenant_id, event).status_code == 200
        resp = _event(client, tenant_id, "reactivate")
        assert resp.status_code == 422
        assert resp.json()["current_status"] == "deleted"
        assert resp.json()["allowed_events"] == []


@pytest.mark.contract
class TestInfrastructureFailures:

    @pytest.fixture
    def failing_publisher_service(self, app):
        from application.services.tenant_service import TenantService
        from domain.services.tenant_lifecycle import TableTransitionValidator
        from infrastructure.adapters import InMemoryTenantRepository
        from infrastructure.container import get_tenant_service

        class FailingPublisher:
            def publish(self, event, tenant):
                raise ConnectionError("broker down")

        repo = InMemoryTenantRepository()
        service = TenantService(repo, FailingPublisher(), TableTransitionValidator())
        app.dependency_overrides[get_tenant_service] = lambda: service
        yield repo
        app.dependency_overrides.clear()

    def test_publish_failure_is_503_and_keeps_tenant(self, client, failing_publisher_service):
        resp = _create(client)
        assert resp.status_code == 503
        data = resp.json()
        assert data["type"].endswith("/publish-error")
        assert "broker" not in data["detail"]
        assert failing_publisher_service.get_by_slug("acme") is not None

    def test_deadline_is_504(self, monkeypatch, app):
        from starlette.testclient import TestClient

        from infrastructure.settings import get_settings

        monkeypatch.setenv("APP_REQUEST_TIMEOUT_SECONDS", "0")
        get_settings.cache_clear()
        with TestClient(app) as client:
            resp = _create(client)
        assert resp.status_code == 504
        assert resp.json()["type"].endswith("/operation-cancelled")
