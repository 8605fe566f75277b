"""
Tests for presence tracking and duration formatting.
"""

from datetime import datetime, timedelta

import pytest

from export.spreadsheet import SpreadsheetExporter
from runtime.presence import PresenceTracker, format_distance_strict

T0 = datetime(2024, 5, 6, 9, 30, 0)


class TestFormatDistanceStrict:
    @pytest.mark.parametrize("delta,expected", [
        (timedelta(0), "0 seconds"),
        (timedelta(seconds=1), "1 second"),
        (timedelta(seconds=45), "45 seconds"),
        (timedelta(seconds=59), "59 seconds"),
        (timedelta(minutes=1), "1 minute"),
        (timedelta(minutes=1, seconds=29), "1 minute"),
        (timedelta(minutes=1, seconds=30), "2 minutes"),
        (timedelta(minutes=59), "59 minutes"),
        (timedelta(hours=3), "3 hours"),
        (timedelta(hours=1, minutes=30), "2 hours"),
        (timedelta(days=1), "1 day"),
        (timedelta(days=45), "2 months"),
        (timedelta(days=400), "1 year"),
    ])
    def test_units(self, delta, expected):
        assert format_distance_strict(T0 + delta, T0) == expected

    def test_order_does_not_matter(self):
        assert format_distance_strict(T0, T0 + timedelta(minutes=5)) == "5 minutes"


class Clock:
    def __init__(self):
        self.now = T0

    def __call__(self):
        return self.now


class TestPresenceTracker:
    def _tracker(self, tmp_path, clock, auto_export=False):
        return PresenceTracker(SpreadsheetExporter(str(tmp_path)), auto_export=auto_export, clock=clock)

    def test_enter_leave_logs_row(self, tmp_path):
        clock = Clock()
        tracker = self._tracker(tmp_path, clock)

        assert tracker.enter() is True
        clock.now = T0 + timedelta(minutes=3, seconds=10)
        event = tracker.leave()

        ms = int(clock.now.timestamp() * 1000)
        assert event.to_row(tracker.columns) == {
            "Date": "2024-05-06",
            "Time In": "09:30:00",
            "Time Out": "09:33:10",
            "Duration": "3 minutes",
            "Student Name/USN": f"Student_{ms}",
            "Image": f"presence_{ms}.jpg",
        }
        assert len(tracker.log_store) == 1
        assert not tracker.is_tracking

    def test_named_subject(self, tmp_path):
        clock = Clock()
        tracker = self._tracker(tmp_path, clock)
        tracker.enter("Asha / 1RV20CS001")
        clock.now = T0 + timedelta(seconds=20)
        assert tracker.leave().subject_label == "Asha / 1RV20CS001"

    def test_double_enter_keeps_start(self, tmp_path):
        clock = Clock()
        tracker = self._tracker(tmp_path, clock)
        tracker.enter()
        clock.now = T0 + timedelta(minutes=2)
        assert tracker.enter() is False
        clock.now = T0 + timedelta(minutes=5)
        assert tracker.leave().derived_text == "5 minutes"

    def test_leave_when_idle(self, tmp_path):
        tracker = self._tracker(tmp_path, Clock())
        assert tracker.leave() is None
        assert len(tracker.log_store) == 0

    def test_elapsed_text(self, tmp_path):
        clock = Clock()
        tracker = self._tracker(tmp_path, clock)
        assert tracker.elapsed_text() == "0 seconds"
        tracker.enter()
        clock.now = T0 + timedelta(seconds=42)
        assert tracker.elapsed_text() == "42 seconds"
        assert tracker.status()["tracking"] is True

    def test_auto_export(self, tmp_path):
        clock = Clock()
        tracker = self._tracker(tmp_path, clock, auto_export=True)
        tracker.enter()
        clock.now = T0 + timedelta(seconds=5)
        tracker.leave()
        assert (tmp_path / "movement_tracking_logs.xlsx").exists()
