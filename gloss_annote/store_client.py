# gloss_annote/store_client.py
from __future__ import annotations

import time
from typing import Callable, List, Optional

import requests

from .domain import Segment, SignedVideoUrl, TaskCategory
from .logger import logger
from .persistence import annotations_payload


class StoreError(Exception):
    """Transport failure or a non-2xx answer from the Store."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(StoreError):
    """401/403: the token is missing, expired or was rejected."""


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
    except ValueError:
        pass
    text = (resp.text or "").strip()
    return text or f"HTTP {resp.status_code}"


class StoreClient:
    """
    Thin REST client for the annotation Store.

    Every call except login() sends "Authorization: Bearer <token>". On 401/403
    the token is dropped, on_unauthorized() is called and AuthenticationError
    is raised; the caller sends the user back to the login step. Nothing is
    retried.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout_s: float = 15.0,
        session: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
        video_url_ttl_s: float = 180.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_s = float(timeout_s)
        self.session = session or requests.Session()
        self.on_unauthorized = on_unauthorized
        self.video_url_ttl_s = float(video_url_ttl_s)

    # ---------------- Plumbing ----------------

    def url(self, path: str) -> str:
        return f"{self.base_url}/api{path}"

    def auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, authenticated: bool = True, **kwargs) -> requests.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if authenticated:
            headers.update(self.auth_headers())
        try:
            resp = self.session.request(
                method, self.url(path), headers=headers, timeout=self.timeout_s, **kwargs
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise StoreError(f"Cannot reach the server: {e}") from e

        if authenticated and resp.status_code in (401, 403):
            logger.info("%s %s -> %s; dropping token", method, path, resp.status_code)
            self.token = None
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise AuthenticationError(_error_message(resp), resp.status_code)

        if not (200 <= resp.status_code < 300):
            msg = _error_message(resp)
            logger.warning("%s %s -> %s: %s", method, path, resp.status_code, msg)
            raise StoreError(msg, resp.status_code)
        return resp

    # ---------------- Endpoints ----------------

    def login(self, password: str) -> str:
        """POST /login. Stores and returns the token; wrong password -> AuthenticationError."""
        try:
            resp = self.session.post(
                self.url("/login"), json={"password": password}, timeout=self.timeout_s
            )
        except requests.RequestException as e:
            raise StoreError(f"Cannot reach the server: {e}") from e
        if resp.status_code == 401:
            raise AuthenticationError(_error_message(resp), 401)
        if not resp.ok:
            raise StoreError(_error_message(resp), resp.status_code)
        self.token = str(resp.json()["token"])
        return self.token

    def fetch_tasks(self) -> List[TaskCategory]:
        resp = self._request("GET", "/tasks")
        return [TaskCategory.from_dict(d) for d in resp.json()]

    def fetch_annotations(self) -> List[Segment]:
        resp = self._request("GET", "/annotations")
        return [Segment.from_dict(d) for d in resp.json()]

    def import_annotations(self, segments: List[Segment]) -> None:
        self._request("POST", "/annotations/import", json=annotations_payload(segments))

    def delete_task_annotations(self, task_id: str) -> None:
        self._request("DELETE", f"/tasks/{task_id}/annotations")

    def update_task_status(self, task_id: str, status: str) -> str:
        resp = self._request("PUT", f"/tasks/{task_id}/status", json={"status": status})
        return str(resp.json().get("status", status))

    def signed_video_url(self, task_id: str) -> SignedVideoUrl:
        resp = self._request("GET", f"/signed-video-url/{task_id}")
        return SignedVideoUrl(
            url=str(resp.json()["url"]),
            fetched_at=time.monotonic(),
            ttl=self.video_url_ttl_s,
        )

    def events_url(self) -> str:
        return self.url("/events")
