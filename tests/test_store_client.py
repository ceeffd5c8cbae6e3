"""Unit tests for the REST client (the requests session is mocked)."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from gloss_annote.domain import Segment
from gloss_annote.store_client import AuthenticationError, StoreClient, StoreError


def _response(status, body=None):
    resp = requests.Response()
    resp.status_code = status
    resp.encoding = "utf-8"
    resp._content = json.dumps(body).encode("utf-8") if body is not None else b""
    return resp


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return StoreClient("http://store:3001/", token="tok", session=session, timeout_s=5)


class TestLogin:
    def test_login_stores_token(self, session):
        session.post.return_value = _response(200, {"token": "abc"})
        client = StoreClient("http://store:3001", session=session)

        assert client.login("pw") == "abc"
        assert client.token == "abc"
        args, kwargs = session.post.call_args
        assert args[0] == "http://store:3001/api/login"
        assert kwargs["json"] == {"password": "pw"}

    def test_wrong_password(self, session):
        session.post.return_value = _response(401, {"error": "Invalid password"})
        client = StoreClient("http://store:3001", session=session)
        with pytest.raises(AuthenticationError, match="Invalid password"):
            client.login("nope")
        assert client.token is None

    def test_unreachable(self, session):
        session.post.side_effect = requests.ConnectionError("refused")
        client = StoreClient("http://store:3001", session=session)
        with pytest.raises(StoreError, match="Cannot reach"):
            client.login("pw")


class TestAuthenticatedCalls:
    def test_fetch_tasks_sends_bearer_token(self, client, session):
        session.request.return_value = _response(
            200,
            [{"categoryName": "Daily", "tasks": [{"id": "t1", "video": "a.mp4", "glosses": ["A"], "status": "partial"}]}],
        )
        cats = client.fetch_tasks()

        assert cats[0].name == "Daily"
        assert cats[0].tasks[0].status == "partial"
        args, kwargs = session.request.call_args
        assert args == ("GET", "http://store:3001/api/tasks")
        assert kwargs["headers"]["Authorization"] == "Bearer tok"
        assert kwargs["timeout"] == 5.0

    def test_unauthorized_drops_token(self, session):
        callback = MagicMock()
        client = StoreClient("http://store:3001", token="old", session=session, on_unauthorized=callback)
        session.request.return_value = _response(401, {"error": "Authentication required"})

        with pytest.raises(AuthenticationError) as exc:
            client.fetch_annotations()

        assert exc.value.status_code == 401
        assert client.token is None
        callback.assert_called_once_with()

    def test_server_error(self, client, session):
        session.request.return_value = _response(500, {"error": "disk full"})
        with pytest.raises(StoreError, match="disk full") as exc:
            client.delete_task_annotations("t1")
        assert exc.value.status_code == 500
        assert not isinstance(exc.value, AuthenticationError)

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.Timeout("slow")
        with pytest.raises(StoreError):
            client.fetch_tasks()

    def test_import_sends_wire_format(self, client, session):
        session.request.return_value = _response(201, {"imported": 1})
        client.import_annotations([Segment("a", "t1", "A", 0.0, 1.0)])

        args, kwargs = session.request.call_args
        assert args == ("POST", "http://store:3001/api/annotations/import")
        assert kwargs["json"] == [{"id": "a", "taskId": "t1", "gloss": "A", "startTime": 0.0, "endTime": 1.0}]

    def test_delete_and_status_paths(self, client, session):
        session.request.return_value = _response(204)
        client.delete_task_annotations("t1")
        assert session.request.call_args[0] == ("DELETE", "http://store:3001/api/tasks/t1/annotations")

        session.request.return_value = _response(200, {"taskId": "t1", "status": "complete"})
        assert client.update_task_status("t1", "complete") == "complete"
        args, kwargs = session.request.call_args
        assert args == ("PUT", "http://store:3001/api/tasks/t1/status")
        assert kwargs["json"] == {"status": "complete"}

    def test_signed_video_url(self, client, session):
        session.request.return_value = _response(200, {"url": "http://store:3001/api/videos/xyz"})
        signed = client.signed_video_url("t1")
        assert signed.url == "http://store:3001/api/videos/xyz"
        assert signed.ttl == 180.0
        assert not signed.is_expired(now=signed.fetched_at + 10)

    def test_events_url(self, client):
        assert client.events_url() == "http://store:3001/api/events"
