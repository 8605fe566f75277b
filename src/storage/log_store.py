"""
In-memory, append-only event log.

One store per feature. Entries are never mutated or reordered; views may
present them newest-first but the stored order is append order. Nothing
persists across restarts; use the spreadsheet exporter for that.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Tuple

from models.event import Column, DetectionEvent

AppendListener = Callable[[DetectionEvent], None]


class LogStore:
    def __init__(self, name: str):
        self.name = name
        self._entries: List[DetectionEvent] = []
        self._listeners: List[AppendListener] = []
        self._lock = threading.Lock()

    def append(self, event: DetectionEvent) -> None:
        self.record(event)
        self.notify(event)

    def record(self, event: DetectionEvent) -> None:
        """Append without running listeners; pair with notify()."""
        with self._lock:
            self._entries.append(event)
            count = len(self._entries)
        logging.info(f"[{self.name}] logged {event.kind} (entries={count})")

    def notify(self, event: DetectionEvent) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logging.warning(f"[{self.name}] log listener error: {e}")

    def subscribe(self, listener: AppendListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def entries(self, newest_first: bool = False) -> Tuple[DetectionEvent, ...]:
        with self._lock:
            snapshot = tuple(self._entries)
        return tuple(reversed(snapshot)) if newest_first else snapshot

    def rows(self, columns: Iterable[Column], newest_first: bool = False) -> List[Dict[str, object]]:
        columns = tuple(columns)
        return [e.to_row(columns) for e in self.entries(newest_first=newest_first)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
