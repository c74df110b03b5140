"""Synchronous, typed publish/subscribe channel for leak-test events."""

from __future__ import annotations

import sys
import threading
import time
import traceback
from enum import Enum
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from leakprobe.leakprobe_snapshots import Snapshot


class EventKind(Enum):
    WARNING = "warning"
    ERROR = "error"
    SNAPSHOT = "snapshot"


class EventRecord(NamedTuple):
    kind: EventKind
    message: str
    occurred_at: float
    # The stored snapshot, for SNAPSHOT events only.
    snapshot: Optional[Snapshot] = None


EventHandler = Callable[[EventRecord], None]


class EventBus:
    """Delivers events to subscribers in-process, before publish() returns.

    Every published event is also appended to an event log. As with the
    snapshot store, the log is an immutable tuple swapped on write, so
    observers can read it from any thread; writers serialize on a lock so
    events published from other threads are never dropped.
    """

    def __init__(self) -> None:
        self.__handlers: Dict[EventKind, Tuple[EventHandler, ...]] = {
            kind: () for kind in EventKind
        }
        self.__log: Tuple[EventRecord, ...] = ()
        self.__log_lock = threading.Lock()

    def subscribe(self, kind: EventKind, handler: EventHandler) -> None:
        """Register a handler; handlers for a kind run in registration order."""
        kind = self._check_kind(kind)
        self.__handlers[kind] = self.__handlers[kind] + (handler,)

    def unsubscribe(self, kind: EventKind, handler: EventHandler) -> None:
        kind = self._check_kind(kind)
        handlers: List[EventHandler] = list(self.__handlers[kind])
        if handler in handlers:
            handlers.remove(handler)
        self.__handlers[kind] = tuple(handlers)

    def publish(
        self, kind: EventKind, message: str, snapshot: Optional[Snapshot] = None
    ) -> EventRecord:
        """Log the event, then dispatch it to every current subscriber."""
        kind = self._check_kind(kind)
        record = EventRecord(kind, message, time.time(), snapshot)
        with self.__log_lock:
            self.__log = self.__log + (record,)
        for handler in self.__handlers[kind]:
            try:
                handler(record)
            except Exception:
                # A failing subscriber must not starve the ones after it.
                print(
                    f"leakprobe: {kind.value} event handler {handler!r} failed:",
                    file=sys.stderr,
                )
                print(traceback.format_exc(), file=sys.stderr)
        return record

    def events(self) -> Tuple[EventRecord, ...]:
        return self.__log

    def clear(self) -> None:
        """Drop the event log; subscriptions are kept."""
        with self.__log_lock:
            self.__log = ()

    @staticmethod
    def _check_kind(kind: EventKind) -> EventKind:
        if not isinstance(kind, EventKind):
            raise TypeError(f"event kind must be an EventKind, not {kind!r}")
        return kind
