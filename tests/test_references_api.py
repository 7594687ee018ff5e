"""Tests for the /api/references endpoints."""


def _create(client, source_name, **fields):
    return client.post("/api/references", json={"source_name": source_name, **fields})


class TestReferencesApi:

    def test_create_and_list(self, client):
        resp = _create(client, "mitre-attack", description="ATT&CK", url="https://attack.mitre.org")
        assert resp.status_code == 201
        assert resp.json()["source_name"] == "mitre-attack"
        assert [r["source_name"] for r in client.get("/api/references").json()] == ["mitre-attack"]

    def test_create_duplicate(self, client):
        _create(client, "mitre-attack")
        resp = _create(client, "mitre-attack")
        assert resp.status_code == 409
        assert resp.json()["error"] == "DUPLICATE_ID"

    def test_create_without_source_name(self, client):
        assert client.post("/api/references", json={"description": "x"}).status_code == 400

    def test_search_and_pagination(self, client):
        _create(client, "ref-1", description="Quarterly report")
        _create(client, "ref-2", description="Annual report")
        _create(client, "ref-3", description="Advisory")
        resp = client.get("/api/references", params={"search": "report", "limit": 1, "includePagination": "true"})
        body = resp.json()
        assert body["pagination"]["total"] == 2
        assert [r["source_name"] for r in body["data"]] == ["ref-1"]

    def test_filter_by_source_name(self, client):
        _create(client, "ref-1")
        _create(client, "ref-2")
        body = client.get("/api/references", params={"sourceName": "ref-2"}).json()
        assert [r["source_name"] for r in body] == ["ref-2"]

    def test_update(self, client):
        _create(client, "ref-1", description="old")
        resp = client.put("/api/references", json={"source_name": "ref-1", "description": "new"})
        assert resp.status_code == 200
        assert resp.json()["description"] == "new"

    def test_update_unknown(self, client):
        resp = client.put("/api/references", json={"source_name": "ref-9", "description": "new"})
        assert resp.status_code == 404

    def test_update_without_source_name(self, client):
        resp = client.put("/api/references", json={"description": "new"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "MISSING_PARAMETER"

    def test_delete(self, client):
        _create(client, "ref-1")
        assert client.delete("/api/references", params={"sourceName": "ref-1"}).status_code == 204
        assert client.delete("/api/references", params={"sourceName": "ref-1"}).status_code == 404

    def test_delete_without_source_name(self, client):
        assert client.delete("/api/references").status_code == 400
