"""
Repeating timer thread.

Fires a callback on a fixed schedule until cancelled. If a callback overruns
one or more deadlines, the missed ticks are dropped rather than queued.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional


class RepeatingTimer:
    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        name: str = "timer",
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.callback = callback
        self.name = name
        self.dropped_ticks = 0
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError(f"Timer {self.name} already started")
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Stop firing. Does not wait for a callback that is already running."""
        self._stop_event.set()

    def _run(self) -> None:
        next_deadline = self._clock() + self.interval
        while not self._stop_event.wait(max(0.0, next_deadline - self._clock())):
            try:
                self.callback()
            except Exception:
                logging.exception(f"Timer {self.name} callback failed")

            next_deadline += self.interval
            now = self._clock()
            if now >= next_deadline:
                missed = int((now - next_deadline) // self.interval) + 1
                next_deadline += missed * self.interval
                self.dropped_ticks += missed
                logging.debug(f"Timer {self.name} dropped {missed} tick(s) after a slow callback")
