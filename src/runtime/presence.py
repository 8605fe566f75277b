"""
Presence (movement) tracking.

No classifier and no loop: the operator marks when a student enters and
leaves the camera view, and each enter/leave pair becomes one log row with
the dwell time written out in words.
"""

from __future__ import annotations

import logging
import math
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from detection.policies import epoch_ms
from export.spreadsheet import SpreadsheetExporter
from models.event import Column, DetectionEvent
from models.labels import PRESENCE_RECORDED
from storage.log_store import LogStore

from .features import LoggedFeature

MINUTES_IN_DAY = 1440
MINUTES_IN_MONTH = 43200
MINUTES_IN_YEAR = 525600


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def format_distance_strict(end: datetime, start: datetime) -> str:
    """
    Distance between two instants in the largest whole unit.

    Seconds under a minute, then minutes, hours, days (under 30), months
    (under a year) and years, each rounded half-up: "0 seconds",
    "1 minute", "3 hours".
    """
    ms = abs((end - start).total_seconds()) * 1000.0
    minutes = ms / 60000.0

    if minutes < 1:
        value, unit = _round_half_up(ms / 1000.0), "second"
    elif minutes < 60:
        value, unit = _round_half_up(minutes), "minute"
    elif minutes < MINUTES_IN_DAY:
        value, unit = _round_half_up(minutes / 60), "hour"
    elif minutes < MINUTES_IN_MONTH:
        value, unit = _round_half_up(minutes / MINUTES_IN_DAY), "day"
    elif minutes < MINUTES_IN_YEAR:
        value, unit = _round_half_up(minutes / MINUTES_IN_MONTH), "month"
    else:
        value, unit = _round_half_up(minutes / MINUTES_IN_YEAR), "year"

    return f"{value} {unit}" if value == 1 else f"{value} {unit}s"


class PresenceTracker(LoggedFeature):
    name = "presence"
    title = "Student Movement Tracking"
    sheet_name = "Movement Logs"
    file_base_name = "movement_tracking_logs"
    columns = (
        Column("Date", "date"),
        Column("Time In", "started_time"),
        Column("Time Out", "time"),
        Column("Duration", "derived_text"),
        Column("Student Name/USN", "subject_label"),
        Column("Image", "image_ref"),
    )

    def __init__(
        self,
        exporter: SpreadsheetExporter,
        log_store: Optional[LogStore] = None,
        auto_export: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(log_store or LogStore(self.name), exporter, auto_export=auto_export)
        self._clock = clock
        self._lock = threading.Lock()
        self._started_at: Optional[datetime] = None
        self._subject: Optional[str] = None

    @property
    def is_tracking(self) -> bool:
        with self._lock:
            return self._started_at is not None

    def enter(self, subject: Optional[str] = None) -> bool:
        """Start the stopwatch. Returns False if already tracking."""
        with self._lock:
            if self._started_at is not None:
                return False
            self._started_at = self._clock()
            self._subject = subject
        logging.info(f"[{self.name}] tracking started")
        return True

    def elapsed_text(self) -> str:
        with self._lock:
            started_at = self._started_at
        if started_at is None:
            return "0 seconds"
        return format_distance_strict(self._clock(), started_at)

    def leave(self) -> Optional[DetectionEvent]:
        with self._lock:
            started_at, subject = self._started_at, self._subject
            if started_at is None:
                return None
            self._started_at = None
            self._subject = None

        ended_at = self._clock()
        ms = epoch_ms(ended_at)
        event = DetectionEvent(
            timestamp=ended_at,
            kind=PRESENCE_RECORDED,
            subject_label=subject or f"Student_{ms}",
            derived_text=format_distance_strict(ended_at, started_at),
            image_ref=f"presence_{ms}.jpg",
            started_at=started_at,
        )
        self.log_store.append(event)
        logging.info(f"[{self.name}] tracking stopped after {event.derived_text}")
        return event

    def status(self) -> Dict[str, Any]:
        status = super().status()
        status.update({
            "tracking": self.is_tracking,
            "elapsed": self.elapsed_text(),
        })
        return status
