from __future__ import annotations

import threading
from typing import Any, Callable


class EventBus:
    """Publish/subscribe bus for render progress events.

    Progress is reported here and nowhere else: handlers observe a run,
    they never take part in its synchronization.  All operations are
    guarded by a lock so a bus can be shared between a render thread and
    a UI thread.

    Event types emitted by :class:`~wavprintlib.pipeline.Pipeline`:
    ``signal.loaded``, ``plan.ready``, ``pixel.complete``,
    ``image.assembled``, ``image.written``.  The render queue adds
    ``job.start`` and ``job.complete``.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[Callable[..., Any]]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            self._handlers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: str, handler: Callable[..., Any]) -> None:
        with self._lock:
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)

    def has_subscribers(self, event_type: str) -> bool:
        """True if *event_type* has at least one handler."""
        with self._lock:
            return bool(self._handlers.get(event_type))

    def emit(self, event_type: str, **data: Any) -> None:
        with self._lock:
            handlers = list(self._handlers.get(event_type, []))
        for handler in handlers:
            handler(**data)
