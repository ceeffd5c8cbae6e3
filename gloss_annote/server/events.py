# gloss_annote/server/events.py
from __future__ import annotations

import queue
import threading
from typing import Iterator, List, Optional

from ..logger import logger


ANNOTATIONS_UPDATED = "annotations_updated"


class EventBroadcaster:
    """
    Fan-out of payload-less events to every connected SSE client.
    Each subscriber owns a queue; None in a queue ends its stream.
    """

    def __init__(self, keepalive_s: float = 15.0):
        self.keepalive_s = float(keepalive_s)
        self._lock = threading.Lock()
        self._subscribers: List[queue.Queue] = []

    def subscribe(self) -> queue.Queue:
        q: queue.Queue = queue.Queue()
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: str = ANNOTATIONS_UPDATED) -> int:
        with self._lock:
            subs = list(self._subscribers)
        for q in subs:
            q.put(event)
        logger.debug("Broadcast %s to %d clients", event, len(subs))
        return len(subs)

    def close(self) -> None:
        with self._lock:
            subs = list(self._subscribers)
        for q in subs:
            q.put(None)

    def stream(self, q: Optional[queue.Queue] = None) -> Iterator[str]:
        """SSE text for one subscriber: the events, with keep-alive comments in between."""
        q = q or self.subscribe()
        try:
            yield ": connected\n\n"
            while True:
                try:
                    event = q.get(timeout=self.keepalive_s)
                except queue.Empty:
                    yield ": keep-alive\n\n"
                    continue
                if event is None:
                    break
                yield f"event: {event}\ndata: \n\n"
        finally:
            self.unsubscribe(q)
