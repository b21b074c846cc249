"""
Tests for the stream CRUD API and the links endpoint.
"""


class TestStreamCrud:
    """Create / read / update / delete over /api/streams"""

    def test_health(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json() == {"message": "Healthy"}

    def test_create_and_get(self, client):
        response = client.post("/api/streams", json={"id": "a", "name": "A"})
        assert response.status_code == 201
        created = response.json()
        assert created["id"] == "a"
        assert created["name"] == "A"
        assert created["photo_url"] is None
        assert created["created_at"]
        assert created["updated_at"]

        fetched = client.get("/api/streams/a")
        assert fetched.status_code == 200
        assert fetched.json()["id"] == "a"
        assert fetched.json()["name"] == "A"

    def test_duplicate_id_conflicts(self, client):
        assert client.post("/api/streams", json={"id": "a", "name": "A"}).status_code == 201
        response = client.post("/api/streams", json={"id": "a", "name": "Other"})
        assert response.status_code == 409

        # Original record untouched
        assert client.get("/api/streams/a").json()["name"] == "A"

    def test_missing_fields_are_bad_request(self, client):
        assert client.post("/api/streams", json={"name": "A"}).status_code == 400
        assert client.post("/api/streams", json={"id": "a"}).status_code == 400
        assert client.post("/api/streams", json={"id": "   ", "name": "A"}).status_code == 400
        assert client.post("/api/streams").status_code == 400

    def test_values_are_stripped(self, client):
        response = client.post(
            "/api/streams",
            json={"id": "  abc  ", "name": " Channel ", "photo_url": " http://img/x.png "},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["id"] == "abc"
        assert body["name"] == "Channel"
        assert body["photo_url"] == "http://img/x.png"

    def test_list_contains_created(self, client):
        client.post("/api/streams", json={"id": "one", "name": "One"})
        client.post("/api/streams", json={"id": "two", "name": "Two"})

        response = client.get("/api/streams")
        assert response.status_code == 200
        ids = {s["id"] for s in response.json()}
        assert ids == {"one", "two"}

    def test_update_partial(self, client):
        client.post("/api/streams", json={"id": "a", "name": "A", "photo_url": "http://img/a.png"})

        response = client.put("/api/streams/a", json={"name": "Renamed"})
        assert response.status_code == 200
        body = response.json()
        assert body["name"] == "Renamed"
        assert body["photo_url"] == "http://img/a.png"

        response = client.put("/api/streams/a", json={"photo_url": "http://img/b.png"})
        assert response.json()["name"] == "Renamed"
        assert response.json()["photo_url"] == "http://img/b.png"

    def test_update_keeps_id_and_advances_updated_at(self, client):
        created = client.post("/api/streams", json={"id": "a", "name": "A"}).json()
        updated = client.put("/api/streams/a", json={"id": "b", "name": "B"}).json()
        assert updated["id"] == "a"
        assert updated["updated_at"] >= created["updated_at"]
        assert client.get("/api/streams/b").status_code == 404

    def test_update_missing_is_404(self, client):
        assert client.put("/api/streams/nope", json={"name": "X"}).status_code == 404

    def test_delete_then_get_is_404(self, client):
        client.post("/api/streams", json={"id": "a", "name": "A"})

        response = client.delete("/api/streams/a")
        assert response.status_code == 200
        assert response.json() == {"ok": True}

        assert client.get("/api/streams/a").status_code == 404
        assert client.delete("/api/streams/a").status_code == 404


class TestStreamLinks:
    def test_links_use_request_base(self, client):
        client.post("/api/streams", json={"id": "abc def", "name": "A"})
        response = client.get("/api/streams/abc def/links")
        assert response.status_code == 200
        body = response.json()
        assert body["hls_url"] == "http://testserver/ace/manifest.m3u8?id=abc%20def"
        assert body["json_url"] == "http://testserver/ace/manifest.m3u8?id=abc%20def&format=json"

    def test_links_missing_stream(self, client):
        assert client.get("/api/streams/nope/links").status_code == 404

    def test_correlation_id_echoed(self, client):
        response = client.get("/api/streams", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Correlation-ID"] == "req-123"
