# gloss_annote/push.py
from __future__ import annotations

from typing import Callable, Iterable, Iterator, Optional

import requests
from PyQt5.QtCore import QThread, pyqtSignal

from .logger import logger


ANNOTATIONS_UPDATED = "annotations_updated"


def parse_sse_events(lines: Iterable[str]) -> Iterator[str]:
    """
    Yields the event name of every complete Server-Sent Event in lines.

    Comment lines (":" prefix, used for keep-alives) are ignored. An event
    without an "event:" field is named "message".
    """
    name: Optional[str] = None
    has_data = False
    for raw in lines:
        line = raw.rstrip("\r") if raw is not None else ""
        if not line:
            if name is not None or has_data:
                yield name or "message"
            name = None
            has_data = False
            continue
        if line.startswith(":"):
            continue
        key, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if key == "event":
            name = value
        elif key == "data":
            has_data = True


class PushListener(QThread):
    """
    Background subscriber to the Store's push channel.

    The channel carries a single payload-less event, "annotations updated";
    receipt means "refetch everything". Signals are delivered to the UI thread
    through Qt's queued connections; this thread never touches UI state.

    Drops in the connection are retried after reconnect_delay_ms. A 401/403
    stops the listener and emits unauthorized().
    """

    annotations_updated = pyqtSignal()
    unauthorized = pyqtSignal()
    connection_changed = pyqtSignal(bool)

    def __init__(
        self,
        url: str,
        token_provider: Callable[[], Optional[str]],
        reconnect_delay_ms: int = 3000,
        session: Optional[requests.Session] = None,
        parent=None,
    ):
        super().__init__(parent)
        self._url = url
        self._token_provider = token_provider
        self._reconnect_delay_ms = int(reconnect_delay_ms)
        self._session = session or requests.Session()
        self._stopping = False
        self._response: Optional[requests.Response] = None

    def stop(self) -> None:
        self._stopping = True
        resp = self._response
        if resp is not None:
            # Unblocks iter_lines() in run()
            resp.close()
        self.wait(5000)

    def run(self) -> None:
        while not self._stopping:
            token = self._token_provider()
            headers = {"Accept": "text/event-stream"}
            if token:
                headers["Authorization"] = f"Bearer {token}"
            try:
                with self._session.get(self._url, headers=headers, stream=True, timeout=(10, None)) as resp:
                    if resp.status_code in (401, 403):
                        logger.info("Push channel rejected the token (%s)", resp.status_code)
                        self.unauthorized.emit()
                        return
                    resp.raise_for_status()
                    self._response = resp
                    self.connection_changed.emit(True)
                    logger.info("Push channel connected: %s", self._url)
                    for name in parse_sse_events(resp.iter_lines(decode_unicode=True)):
                        if self._stopping:
                            break
                        if name == ANNOTATIONS_UPDATED:
                            self.annotations_updated.emit()
            except (requests.RequestException, AttributeError, ValueError) as e:
                # AttributeError/ValueError: the response was closed under iter_lines() by stop()
                if self._stopping:
                    break
                logger.warning("Push channel dropped: %s", e)
            finally:
                self._response = None

            if self._stopping:
                break
            self.connection_changed.emit(False)
            self.msleep(self._reconnect_delay_ms)
