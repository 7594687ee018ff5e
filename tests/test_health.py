"""Tests for /health and / endpoints."""

from tests.factories import TACTIC_ID, make_tactic, new_version, timestamp


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] in ("healthy", "degraded")
        assert "db" in data
        assert "uptime_seconds" in data
        assert "version" in data
        assert data["object_count"] == 0

    def test_object_count_counts_versions(self, client):
        first = make_tactic(modified=timestamp(0), stix_id=TACTIC_ID)
        client.post("/api/tactics", json=first)
        client.post("/api/tactics", json=new_version(first, timestamp(60)))
        assert client.get("/health").json()["object_count"] == 2

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "ATT&CK Workbench REST API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_echoed(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert resp.headers["x-request-id"] == "req-123"
