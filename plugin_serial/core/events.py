from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List

Subscriber = Callable[["Event", Any], None]


class Event(str, Enum):
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    DEVICE_LIST_UPDATED = "DEVICE_LIST_UPDATED"


@dataclass
class EventRecord:
    seq: int
    ts: float
    event: Event
    payload: Any

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seq": self.seq,
            "ts": self.ts,
            "time": time.strftime("%H:%M:%S", time.localtime(self.ts)),
            "event": self.event.value,
            "payload": self.payload,
        }


class EventBus:
    """Fan-out of session events to subscribers.

    Notes:
      - Callbacks run on the notifying thread (a caller or the watcher).
      - A failing callback is logged and skipped; the others still run.
      - The last `max_records` events are kept for hosts that poll.
    """

    def __init__(self, logger=None, max_records: int = 500):
        self.logger = logger
        self.max_records = int(max_records)

        self._lock = Lock()
        self._subscribers: List[Subscriber] = []
        self._records: List[EventRecord] = []
        self._seq = 0

    def subscribe(self, callback: Subscriber) -> Subscriber:
        with self._lock:
            self._subscribers.append(callback)
        return callback

    def unsubscribe(self, callback: Subscriber) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def notify(self, event: Event, payload: Any = None) -> EventRecord:
        with self._lock:
            self._seq += 1
            rec = EventRecord(seq=self._seq, ts=time.time(), event=event, payload=payload)
            self._records.append(rec)
            if len(self._records) > self.max_records:
                self._records = self._records[-self.max_records:]
            subscribers = list(self._subscribers)

        for cb in subscribers:
            try:
                cb(event, payload)
            except Exception as e:
                if self.logger:
                    self.logger.exception("Subscriber failed on %s: %s", event.value, e)

        return rec

    def since(self, seq: int = 0) -> List[EventRecord]:
        with self._lock:
            return [r for r in self._records if r.seq > seq]
