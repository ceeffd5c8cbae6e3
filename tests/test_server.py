"""Tests for the reference annotation store (Flask test client)."""

import json

import pytest

from gloss_annote.config import ServerConfig
from gloss_annote.push import parse_sse_events
from gloss_annote.server import create_app
from gloss_annote.server.events import EventBroadcaster
from gloss_annote.server.storage import derive_status

TASKS = [
    {"categoryName": "Daily", "tasks": [{"id": "t1", "video": "t1.mp4", "glosses": ["A", "B"]}]},
    {"categoryName": "Numbers", "tasks": [{"id": "t2", "video": "t2.mp4", "glosses": ["ONE"]}]},
]


@pytest.fixture
def app(tmp_path):
    (tmp_path / "tasks.json").write_text(json.dumps(TASKS), encoding="utf-8")
    (tmp_path / "videos").mkdir()
    (tmp_path / "videos" / "t1.mp4").write_bytes(b"fake video data")

    config = ServerConfig(data_dir=str(tmp_path), password="letmein", secret_key="test-secret")
    app = create_app(config)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth(client):
    token = client.post("/api/login", json={"password": "letmein"}).get_json()["token"]
    return {"Authorization": f"Bearer {token}"}


def _ann(id, task_id="t1", gloss="A", start=0.0, end=1.0):
    return {"id": id, "taskId": task_id, "gloss": gloss, "startTime": start, "endTime": end}


def _statuses(client, auth):
    cats = client.get("/api/tasks", headers=auth).get_json()
    return {t["id"]: t["status"] for c in cats for t in c["tasks"]}


class TestLogin:
    def test_wrong_password(self, client):
        resp = client.post("/api/login", json={"password": "nope"})
        assert resp.status_code == 401
        assert "error" in resp.get_json()

    def test_token_required(self, client, auth):
        assert client.get("/api/tasks").status_code == 401
        assert client.get("/api/tasks", headers={"Authorization": "Bearer forged"}).status_code == 401
        assert client.get("/api/tasks", headers=auth).status_code == 200

    def test_missing_secret_is_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            create_app(ServerConfig(data_dir=str(tmp_path), password="pw", secret_key=""))


class TestTasks:
    def test_categories_with_derived_status(self, client, auth):
        cats = client.get("/api/tasks", headers=auth).get_json()
        assert [c["categoryName"] for c in cats] == ["Daily", "Numbers"]
        assert cats[0]["tasks"][0]["glosses"] == ["A", "B"]
        assert _statuses(client, auth) == {"t1": "pending", "t2": "pending"}

    def test_status_follows_coverage(self, client, auth):
        client.post("/api/annotations/import", json=[_ann("a")], headers=auth)
        assert _statuses(client, auth)["t1"] == "partial"
        client.post("/api/annotations/import", json=[_ann("b", gloss="B", start=1.0, end=2.0)], headers=auth)
        assert _statuses(client, auth)["t1"] == "complete"

    def test_stored_status_wins(self, client, auth):
        resp = client.put("/api/tasks/t2/status", json={"status": "complete"}, headers=auth)
        assert resp.status_code == 200
        assert resp.get_json() == {"taskId": "t2", "status": "complete"}
        assert _statuses(client, auth)["t2"] == "complete"

        client.put("/api/tasks/t2/status", json={"status": "partial"}, headers=auth)
        assert _statuses(client, auth)["t2"] == "partial"

    def test_unknown_status_or_task(self, client, auth):
        assert client.put("/api/tasks/t1/status", json={"status": "archived"}, headers=auth).status_code == 400
        assert client.put("/api/tasks/nope/status", json={"status": "complete"}, headers=auth).status_code == 404


class TestAnnotations:
    def test_import_and_list(self, client, auth):
        resp = client.post("/api/annotations/import", json=[_ann("a"), _ann("b", gloss="B", start=1.0, end=3.0)], headers=auth)
        assert resp.status_code == 201
        listed = client.get("/api/annotations", headers=auth).get_json()
        assert [a["id"] for a in listed] == ["a", "b"]
        assert listed[1] == _ann("b", gloss="B", start=1.0, end=3.0)

    def test_import_overwrites_existing_id(self, client, auth):
        client.post("/api/annotations/import", json=[_ann("a")], headers=auth)
        client.post("/api/annotations/import", json=[_ann("a", end=2.5)], headers=auth)
        listed = client.get("/api/annotations", headers=auth).get_json()
        assert len(listed) == 1
        assert listed[0]["endTime"] == 2.5

    @pytest.mark.parametrize(
        "payload",
        [
            [],
            {"id": "a"},
            [{"id": "a", "taskId": "t1", "gloss": "A", "startTime": 0.0}],
            [_ann("ok"), _ann("bad", start=3.0, end=1.0)],
        ],
    )
    def test_import_rejects_invalid_payload(self, client, auth, payload):
        resp = client.post("/api/annotations/import", json=payload, headers=auth)
        assert resp.status_code == 400
        assert "error" in resp.get_json()
        assert client.get("/api/annotations", headers=auth).get_json() == []

    def test_delete_task_annotations(self, client, auth):
        client.post("/api/annotations/import", json=[_ann("a"), _ann("x", task_id="t2", gloss="ONE")], headers=auth)
        resp = client.delete("/api/tasks/t1/annotations", headers=auth)
        assert resp.status_code == 204
        assert [a["id"] for a in client.get("/api/annotations", headers=auth).get_json()] == ["x"]

    def test_mutations_broadcast(self, app, client, auth):
        events = app.extensions["gloss_events"]
        q = events.subscribe()

        client.post("/api/annotations/import", json=[_ann("a")], headers=auth)
        client.delete("/api/tasks/t1/annotations", headers=auth)
        client.put("/api/tasks/t1/status", json={"status": "pending"}, headers=auth)

        assert [q.get_nowait() for _ in range(3)] == ["annotations_updated"] * 3
        assert q.empty()

    def test_rejected_import_does_not_broadcast(self, app, client, auth):
        q = app.extensions["gloss_events"].subscribe()
        client.post("/api/annotations/import", json=[], headers=auth)
        assert q.empty()


class TestVideos:
    def test_signed_url_serves_video(self, client, auth):
        resp = client.get("/api/signed-video-url/t1", headers=auth)
        assert resp.status_code == 200
        url = resp.get_json()["url"]
        assert "/api/videos/" in url

        path = url.split("localhost", 1)[1]
        video = client.get(path)
        assert video.status_code == 200
        assert video.data == b"fake video data"

    def test_unknown_task(self, client, auth):
        assert client.get("/api/signed-video-url/nope", headers=auth).status_code == 404

    def test_tampered_or_expired_link(self, app, client, auth):
        url = client.get("/api/signed-video-url/t1", headers=auth).get_json()["url"]
        path = url.split("localhost", 1)[1]

        assert client.get(path + "x").status_code == 403

        app.config["STORE_CONFIG"].video_url_ttl_s = -1
        assert client.get(path).status_code == 403

    def test_missing_file(self, client, auth):
        url = client.get("/api/signed-video-url/t2", headers=auth).get_json()["url"]
        assert client.get(url.split("localhost", 1)[1]).status_code == 404


class TestEvents:
    def test_requires_token(self, client):
        assert client.get("/api/events").status_code == 401

    def test_stream_format(self):
        events = EventBroadcaster(keepalive_s=0.01)
        q = events.subscribe()
        stream = events.stream(q)

        chunks = [next(stream)]
        chunks.append(next(stream))
        events.publish()
        while not chunks[-1].startswith("event:"):
            chunks.append(next(stream))
        events.close()
        chunks.extend(stream)

        assert chunks[0] == ": connected\n\n"
        assert chunks[1] == ": keep-alive\n\n"
        lines = "".join(chunks).split("\n")
        assert list(parse_sse_events(lines)) == ["annotations_updated"]
        assert events.subscriber_count() == 0


def test_derive_status():
    assert derive_status(["A", "B"], set()) == "pending"
    assert derive_status(["A", "B"], {"A"}) == "partial"
    assert derive_status(["A", "B"], {"A", "B", "C"}) == "complete"
