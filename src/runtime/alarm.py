from __future__ import annotations

import logging
import sys
import threading
import time
from typing import List, Tuple


class LoggingAlarm:
    """
    Alarm side channel for emergency alerts.

    There is no speaker on a headless deployment, so the alarm is a WARNING
    log line plus an optional terminal bell. Recent triggers are kept for the
    status endpoint.
    """

    def __init__(self, bell: bool = False, history_size: int = 20):
        self.bell = bell
        self.history_size = history_size
        self._history: List[Tuple[float, str]] = []
        self._lock = threading.Lock()

    def trigger(self, label: str, message: str) -> None:
        logging.warning(f"EMERGENCY ALARM: {label} - {message}")
        if self.bell:
            sys.stdout.write("\a")
            sys.stdout.flush()
        with self._lock:
            self._history.append((time.time(), label))
            del self._history[:-self.history_size]

    @property
    def history(self) -> List[Tuple[float, str]]:
        with self._lock:
            return list(self._history)
