# tests/test_api.py
"""
HTTP layer: routes, error envelope and X-Request-Id handling.
"""

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _create(client, path, body):
    r = client.post(path, json=body)
    assert r.status_code == 201, r.text
    return r.json()


class TestObservability:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "ok"
        assert body["db"]["status"] == "ok"
        assert body["storage"]["status"] == "ok"
        assert "X-Request-Id" in r.headers

    def test_request_id_is_echoed(self, client):
        r = client.get("/health", headers={"X-Request-Id": "REQ-1"})
        assert r.headers["X-Request-Id"] == "REQ-1"

    def test_not_found_envelope(self, client):
        r = client.get("/costumes/ghost", headers={"X-Request-Id": "REQ-2"})
        assert r.status_code == 404
        body = r.json()
        assert set(body) == {"error", "message", "request_id", "details"}
        assert body["error"] == "not_found"
        assert body["request_id"] == "REQ-2"
        assert r.headers["X-Request-Id"] == "REQ-2"

    def test_store_not_found_envelope(self, client):
        r = client.patch("/costumes/nonexistent-id", json={"name": "x"})
        assert r.status_code == 404
        assert r.json()["error"] == "not_found"
        assert r.json()["details"] == {"collection": "costumes", "id": "nonexistent-id"}

    def test_request_validation_envelope(self, client):
        r = client.post("/characters", json={})
        assert r.status_code == 422
        assert r.json()["error"] == "validation_error"

    def test_store_validation_envelope(self, client):
        r = client.post("/shooting-days", json={"date": "20.03.2024"})
        assert r.status_code == 422
        body = r.json()
        assert body["error"] == "validation_error"
        assert [e["field"] for e in body["details"]["errors"]] == ["date"]

    def test_duplicate_id_conflict(self, client):
        _create(client, "/characters", {"id": "alice", "name": "Alice"})
        r = client.post("/characters", json={"id": "alice", "name": "Alice"})
        assert r.status_code == 409
        assert r.json()["error"] == "conflict"


class TestCostumes:
    def test_crud(self, client):
        k = _create(client, "/costumes", {"name": "Red Dress"})
        assert client.get(f"/costumes/{k['id']}").json()["name"] == "Red Dress"

        patched = client.patch(f"/costumes/{k['id']}", json={"notes": "torn hem"}).json()
        assert patched["notes"] == "torn hem"
        assert patched["name"] == "Red Dress"

        listed = client.get("/costumes").json()
        assert [c["id"] for c in listed["items"]] == [k["id"]]
        assert listed["page"] == {"offset": 0, "limit": 50, "total": 1, "has_more": False}

        assert client.delete(f"/costumes/{k['id']}").status_code == 200
        assert client.get(f"/costumes/{k['id']}").status_code == 404

    def test_paging(self, client):
        for i in range(3):
            _create(client, "/costumes", {"name": f"K{i}"})
        page = client.get("/costumes", params={"limit": 2, "offset": 1}).json()
        assert [c["name"] for c in page["items"]] == ["K1", "K2"]
        assert page["page"]["has_more"] is False

    def test_photos(self, client):
        k = _create(client, "/costumes", {})
        r = client.post(
            f"/costumes/{k['id']}/photos",
            params={"filename": "front.png"},
            content=PNG,
            headers={"Content-Type": "image/png"},
        )
        assert r.status_code == 201, r.text
        photo = r.json()
        assert photo["size"] == len(PNG)

        listed = client.get(f"/costumes/{k['id']}/photos").json()["items"]
        assert [p["id"] for p in listed] == [photo["id"]]

        blob = client.get(photo["url"])
        assert blob.content == PNG
        assert blob.headers["content-type"] == "image/png"

        assert client.delete(photo["url"]).status_code == 200
        assert client.get(photo["url"]).status_code == 404

    def test_photo_requires_image(self, client):
        k = _create(client, "/costumes", {})
        r = client.post(f"/costumes/{k['id']}/photos", content=b"hello", headers={"Content-Type": "text/plain"})
        assert r.status_code == 422

    def test_photo_for_missing_costume(self, client):
        r = client.post("/costumes/ghost/photos", content=PNG, headers={"Content-Type": "image/png"})
        assert r.status_code == 404


class TestCharacters:
    def test_assign_costume(self, client):
        c = _create(client, "/characters", {"name": "Alice"})
        k = _create(client, "/costumes", {"name": "Red Dress"})

        r = client.put(f"/characters/{c['id']}/costumes/{k['id']}")
        assert r.json()["character"] == c["id"]
        assert [x["id"] for x in client.get(f"/characters/{c['id']}/costumes").json()] == [k["id"]]

        client.delete(f"/characters/{c['id']}/costumes/{k['id']}")
        assert client.get(f"/characters/{c['id']}/costumes").json() == []

    def test_sorted_list(self, client):
        for name in ["bob", "Alice"]:
            _create(client, "/characters", {"name": name})
        assert [c["name"] for c in client.get("/characters").json()["items"]] == ["Alice", "bob"]


class TestScenesAndDays:
    def test_scene_by_shooting_day(self, client):
        d = _create(client, "/shooting-days", {"date": "2024-03-20", "location": "Centrum"})
        s = _create(client, "/scenes", {"scene_number": 1, "shooting_day": d["id"]})

        assert [x["id"] for x in client.get(f"/shooting-days/{d['id']}/scenes").json()] == [s["id"]]
        assert [x["id"] for x in client.get("/scenes", params={"shooting_day": d["id"]}).json()["items"]] == [s["id"]]

        client.patch(f"/scenes/{s['id']}", json={"shooting_day": None})
        assert client.get(f"/shooting-days/{d['id']}/scenes").json() == []

    def test_scene_links(self, client):
        s = _create(client, "/scenes", {"scene_number": 3})
        c = _create(client, "/characters", {"name": "Alice"})
        k = _create(client, "/costumes", {})

        assert client.put(f"/scenes/{s['id']}/characters/{c['id']}").json()["characters"] == [c["id"]]
        assert client.put(f"/scenes/{s['id']}/costumes/{k['id']}").json()["scenes"] == [s["id"]]
        assert [x["id"] for x in client.get(f"/scenes/{s['id']}/costumes").json()] == [k["id"]]
        assert [x["id"] for x in client.get(f"/characters/{c['id']}/scenes").json()] == [s["id"]]

    def test_default_day_and_overview(self, client):
        d = client.post("/shooting-days/default").json()
        assert d["status"] == "Planned"
        assert client.post("/shooting-days/default").json()["id"] == d["id"]

        overview = client.get(f"/shooting-days/{d['id']}/overview").json()
        assert overview["shooting_day"]["id"] == d["id"]
        assert overview["scenes"] == []

    def test_overview_missing_day(self, client):
        assert client.get("/shooting-days/ghost/overview").status_code == 404


def test_sync_is_a_no_op(client):
    r = client.post("/sync")
    assert r.status_code == 200
    assert r.json()["status"] == "not_implemented"
