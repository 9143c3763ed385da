"""EventBus — thread-safe pub/sub between the arena clock and its viewers.

The Round, CollisionEngine, EnemySpawner and FrameRecorder publish on it
from the clock thread; the WebSocket bridge drains it from its own
thread.  Each subscriber gets a bounded queue.  When a slow subscriber
falls behind, its oldest message is dropped: a stale frame is worth less
than the newest one.
"""

from __future__ import annotations

import queue
import threading

DEFAULT_QUEUE_SIZE = 256


class EventBus:
    """Simple thread-safe pub/sub for pushing events to subscribers."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._lock = threading.Lock()
        self._queue_size = queue_size
        self._subscribers: list[tuple[queue.Queue, frozenset[str] | None]] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, event_types: set[str] | None = None) -> queue.Queue:
        """Subscribe to events.  Returns a Queue of ``{"type", "data"}`` dicts.

        With *event_types*, only those event types are delivered.
        """
        q: queue.Queue = queue.Queue(maxsize=self._queue_size)
        wanted = frozenset(event_types) if event_types else None
        with self._lock:
            self._subscribers.append((q, wanted))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, w) for s, w in self._subscribers if s is not q]

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            for q, wanted in self._subscribers:
                if wanted is not None and event_type not in wanted:
                    continue
                try:
                    q.put_nowait(msg)
                except queue.Full:
                    try:
                        q.get_nowait()
                    except queue.Empty:
                        pass
                    try:
                        q.put_nowait(msg)
                    except queue.Full:
                        pass
