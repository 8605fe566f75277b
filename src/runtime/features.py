"""
Dashboard features.

A feature bundles one detection loop (controller + policy), its log store and
its export settings, plus the operator actions that only make sense for that
feature (registering a uniform, enrolling students, marking attendance,
simulating an emergency).
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from camera.base import CaptureDevice
from detection.controller import DetectionLoopController, ResultCallback
from detection.policies import (
    EMERGENCY_TREATMENTS,
    AttendancePolicy,
    Decision,
    DetectionPolicy,
    EmergencyPolicy,
    TickOutcome,
    UniformPolicy,
    epoch_ms,
)
from detection.timer import RepeatingTimer
from errors import CaptureUnavailable, DeviceUnavailable, FeatureBusy, RegistrationRequired
from export.spreadsheet import SpreadsheetExporter
from models.config import FeatureConfig
from models.event import Column, DetectionEvent, DetectionResult, Student
from models.labels import ATTENDANCE_MARKED
from models.snapshot import Snapshot
from storage.log_store import LogStore

DEFAULT_SEMESTER = "7th Sem"


class LoggedFeature:
    """Log, columns and export shared by every feature."""

    name: str = ""
    title: str = ""
    sheet_name: str = ""
    file_base_name: str = ""
    columns: Tuple[Column, ...] = ()

    def __init__(self, log_store: LogStore, exporter: SpreadsheetExporter, auto_export: bool = False):
        self.log_store = log_store
        self.exporter = exporter
        self.auto_export = auto_export
        if auto_export:
            log_store.subscribe(self._export_on_append)

    def _export_on_append(self, event: DetectionEvent) -> None:
        self.export()

    def rows(self, newest_first: bool = False) -> List[Dict[str, Any]]:
        return self.log_store.rows(self.columns, newest_first=newest_first)

    def export(self) -> Optional[Path]:
        return self.exporter.export(self.rows(), self.sheet_name, self.file_base_name)

    def render_export(self) -> Optional[bytes]:
        return self.exporter.render(self.rows(), self.sheet_name)

    def status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "log_count": len(self.log_store),
            "auto_export": self.auto_export,
        }

    def close(self) -> None:
        pass


class Feature(LoggedFeature):
    """A feature driven by a periodic detection loop."""

    def __init__(
        self,
        config: FeatureConfig,
        device: CaptureDevice,
        policy: DetectionPolicy,
        exporter: SpreadsheetExporter,
        log_store: Optional[LogStore] = None,
        timer_factory: Callable[..., Any] = RepeatingTimer,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(log_store or LogStore(config.name), exporter, auto_export=config.auto_export)
        self.config = config
        self.name = config.name
        self.device = device
        self.policy = policy
        self.title = policy.title
        self.sheet_name = policy.sheet_name
        self.file_base_name = policy.file_base_name
        self.columns = policy.columns
        self._clock = clock
        self.controller = DetectionLoopController(
            config.name,
            device,
            policy,
            self.log_store,
            timer_factory=timer_factory,
            clock=clock,
        )

    @property
    def is_active(self) -> bool:
        return self.controller.is_active

    def start(self, on_result: Optional[ResultCallback] = None) -> bool:
        return self.controller.start(self.config.cadence_ms, on_result=on_result)

    def stop(self) -> None:
        self.controller.stop()

    def close(self) -> None:
        self.controller.close()

    def capture_now(self) -> Snapshot:
        """Capture for an explicit operator action; raises instead of skipping."""
        if not self.device.is_active:
            raise DeviceUnavailable("Camera is not active. Please start the camera first.")
        image = self.device.capture()
        if image is None:
            raise CaptureUnavailable("Could not capture an image from the camera.")
        return image

    def status(self) -> Dict[str, Any]:
        status = super().status()
        status.update({
            "enabled": self.config.enabled,
            "active": self.controller.is_active,
            "cadence_ms": self.config.cadence_ms,
            "current_label": self.controller.current_label,
            "stats": self.controller.stats.to_dict(),
        })
        status.update(self.policy.display())
        return status


class UniformFeature(Feature):
    policy: UniformPolicy

    def register_uniform(self) -> Snapshot:
        """Capture the current frame as the uniform reference image."""
        if self.controller.is_active:
            raise FeatureBusy("Stop detection before registering a new uniform.")
        reference = self.capture_now()
        self.policy.register(reference)
        logging.info(f"[{self.name}] uniform registered ({len(reference.jpeg)} bytes)")
        return reference


class EmergencyFeature(Feature):
    policy: EmergencyPolicy

    def simulate(self, label: str) -> TickOutcome:
        """
        Push an operator-chosen emergency through the decision table.

        The cooldown applies exactly as for a detected emergency; check
        ``outcome.decision`` to see whether the alert fired.
        """
        if label not in EMERGENCY_TREATMENTS:
            raise ValueError(f"Unknown emergency type: {label}")
        image = self.capture_now()
        outcome = self.controller.resolve(DetectionResult(label=label), image)
        if outcome.decision is Decision.SUPPRESS:
            logging.info(f"[{self.name}] simulated {label} suppressed by cooldown")
        return outcome

    def active_alert(self) -> Optional[Dict[str, str]]:
        return self.policy.active_alert()


class AttendanceFeature(Feature):
    policy: AttendancePolicy

    def __init__(self, *args: Any, subjects: Sequence[str] = (), **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.subjects = list(subjects or self.config.subjects)

    @property
    def students(self) -> Tuple[Student, ...]:
        return self.policy.roster

    def register_student(self, name: str, usn: str) -> Student:
        name = (name or "").strip()
        usn = (usn or "").strip()
        if not name or not usn:
            raise ValueError("Please enter both name and USN.")
        image = self.capture_now()
        student = Student(
            id=f"S{epoch_ms(self._clock())}",
            name=name,
            usn=usn,
            semester=DEFAULT_SEMESTER,
            face_image=image.data_uri,
        )
        self.policy.enroll(student)
        logging.info(f"[{self.name}] registered student {student.name} ({student.usn})")
        return student

    def mark_attendance(self, subject: str) -> DetectionEvent:
        if subject not in self.subjects:
            raise ValueError(f"Unknown subject: {subject}")
        student = self.policy.claim()
        if student is None:
            raise RegistrationRequired("No recognised student to mark attendance for.")
        event = DetectionEvent(
            timestamp=self._clock(),
            kind=ATTENDANCE_MARKED,
            subject_label=student.name,
            subject_id=student.usn,
            derived_text=subject,
        )
        self.log_store.append(event)
        return event

    def status(self) -> Dict[str, Any]:
        status = super().status()
        status["subjects"] = list(self.subjects)
        return status
