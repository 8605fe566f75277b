"""
Per-feature decision tables for the detection loop.

A policy knows how to classify a frame for its feature, what to do with the
result (log it, alert, only display it, suppress it, or ignore it), how to
turn a logged result into a DetectionEvent, and which spreadsheet columns
describe its log.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from classifiers.base import Classifier
from errors import RegistrationRequired
from models.event import Column, DetectionEvent, DetectionResult, Student
from models.labels import EmergencyType, MaskStatus, RecognitionStatus, UniformStatus
from models.snapshot import Snapshot


class Decision(str, Enum):
    LOG = "log"
    ALERT = "alert"
    DISPLAY = "display"
    SUPPRESS = "suppress"
    IGNORE = "ignore"

    @property
    def records(self) -> bool:
        return self in (Decision.LOG, Decision.ALERT)


@dataclass(frozen=True)
class TickOutcome:
    result: DetectionResult
    decision: Decision
    event: Optional[DetectionEvent] = None


def epoch_ms(ts: datetime) -> int:
    return int(ts.timestamp() * 1000)


class DetectionPolicy(ABC):
    feature: str = ""
    title: str = ""
    sheet_name: str = ""
    file_base_name: str = ""
    image_prefix: str = "image"
    columns: Tuple[Column, ...] = ()

    def __init__(self, classifier: Classifier, capture_dir: Optional[str] = None):
        self.classifier = classifier
        self.capture_dir = capture_dir

    def check_ready(self) -> None:
        """Raise RegistrationRequired if reference data is missing."""

    def metadata(self) -> Dict[str, Any]:
        return {}

    def classify(self, image: Snapshot) -> DetectionResult:
        return self.classifier.classify(image, **self.metadata())

    @abstractmethod
    def decide(self, result: DetectionResult) -> Decision:
        ...

    def build_event(self, result: DetectionResult, timestamp: datetime, image: Optional[Snapshot]) -> DetectionEvent:
        return DetectionEvent(
            timestamp=timestamp,
            kind=result.label or "",
            subject_label=result.subject.name if result.subject else None,
            subject_id=result.subject.usn if result.subject else None,
            image_ref=self.image_ref(timestamp, image),
        )

    def image_ref(self, timestamp: datetime, image: Optional[Snapshot]) -> str:
        name = f"{self.image_prefix}_{epoch_ms(timestamp)}.jpg"
        if self.capture_dir and image is not None:
            try:
                os.makedirs(self.capture_dir, exist_ok=True)
                with open(os.path.join(self.capture_dir, name), "wb") as f:
                    f.write(image.jpeg)
            except OSError as e:
                logging.warning(f"[{self.feature}] could not save capture {name}: {e}")
        return name

    def admit(self, outcome: TickOutcome) -> TickOutcome:
        """
        Commit the decision for a result that is about to be applied.

        Called under the loop's state lock after the liveness check; state a
        decision opens (a cooldown window) is recorded here and nowhere
        earlier. May downgrade the outcome if a concurrent result got there
        first.
        """
        return outcome

    def on_result(self, outcome: TickOutcome) -> None:
        """Side effects and display state; called once per resolved result."""

    def reset(self) -> None:
        """Clear transient display state when the loop stops."""

    def display(self) -> Dict[str, Any]:
        return {}


class UniformPolicy(DetectionPolicy):
    feature = "uniform"
    title = "Uniform Detection System"
    sheet_name = "Uniform Logs"
    file_base_name = "uniform_detection_logs"
    image_prefix = "image"
    columns = (
        Column("Date", "date"),
        Column("Time", "time"),
        Column("Uniform Status", "kind"),
        Column("Student Image", "image_ref"),
    )

    def __init__(self, classifier: Classifier, capture_dir: Optional[str] = None):
        super().__init__(classifier, capture_dir)
        self.reference: Optional[Snapshot] = None

    def register(self, reference: Snapshot) -> None:
        self.reference = reference

    def check_ready(self) -> None:
        if self.reference is None:
            raise RegistrationRequired("Please register a uniform before starting detection.")

    def metadata(self) -> Dict[str, Any]:
        return {"reference": self.reference}

    def decide(self, result: DetectionResult) -> Decision:
        if result.label in (UniformStatus.GRANTED.value, UniformStatus.DENIED.value):
            return Decision.LOG
        return Decision.IGNORE

    def display(self) -> Dict[str, Any]:
        return {"uniform_registered": self.reference is not None}


MASK_MESSAGES = {
    MaskStatus.WORN.value: "Good, stay safe!",
    MaskStatus.NOT_WORN.value: "Face mask is necessary for safety from pollution.",
}


class MaskPolicy(DetectionPolicy):
    feature = "mask"
    title = "Face Mask Detection System"
    sheet_name = "Mask Detection Logs"
    file_base_name = "mask_detection_logs"
    image_prefix = "mask_capture"
    columns = (
        Column("Date", "date"),
        Column("Time", "time"),
        Column("Mask Status", "kind"),
        Column("Student Image", "image_ref"),
    )

    def __init__(self, classifier: Classifier, capture_dir: Optional[str] = None):
        super().__init__(classifier, capture_dir)
        self.message: Optional[str] = None

    def decide(self, result: DetectionResult) -> Decision:
        if result.label in MASK_MESSAGES:
            return Decision.LOG
        # "Unknown" is shown to the operator but never logged
        return Decision.DISPLAY

    def on_result(self, outcome: TickOutcome) -> None:
        self.message = MASK_MESSAGES.get(outcome.result.label or "")

    def reset(self) -> None:
        self.message = None

    def display(self) -> Dict[str, Any]:
        return {"message": self.message}


EMERGENCY_TREATMENTS = {
    EmergencyType.FALL.value: (
        "Check for consciousness and injuries. Call for medical assistance if needed. "
        "Do not move if a spinal injury is suspected."
    ),
    EmergencyType.SOS.value: (
        "Assess the situation for immediate danger. Approach cautiously and offer help. "
        "Contact security or authorities."
    ),
    EmergencyType.CHEST_PAIN.value: (
        "Possible heart attack. Call ambulance immediately. Have the person sit down and rest. "
        "Loosen any tight clothing. If prescribed, assist with medication (e.g., nitroglycerin)."
    ),
}

Summarizer = Callable[[str, str, Optional[Snapshot], datetime], str]


class EmergencyPolicy(DetectionPolicy):
    """
    Alerting policy with a cooldown window.

    The first alerting result opens a cooldown window. Alerting results that
    arrive inside the window are suppressed: no log entry, no alarm.
    """

    feature = "emergency"
    title = "Emergency Detection System"
    sheet_name = "Emergency Logs"
    file_base_name = "emergency_logs"
    image_prefix = "emergency"
    columns = (
        Column("Date", "date"),
        Column("Time", "time"),
        Column("Type of Emergency", "kind"),
        Column("Suggested Treatment", "derived_text"),
    )

    def __init__(
        self,
        classifier: Classifier,
        alarm: Any = None,
        summarizer: Optional[Summarizer] = None,
        cooldown_seconds: float = 8.0,
        clock: Callable[[], float] = time.monotonic,
        capture_dir: Optional[str] = None,
    ):
        super().__init__(classifier, capture_dir)
        self.alarm = alarm
        self.summarizer = summarizer
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._alert_until: Optional[float] = None
        self._alert: Optional[Tuple[str, str]] = None

    def _cooling_down(self, now: float) -> bool:
        return self._alert_until is not None and now < self._alert_until

    def in_cooldown(self) -> bool:
        with self._lock:
            return self._cooling_down(self._clock())

    def decide(self, result: DetectionResult) -> Decision:
        if result.label not in EMERGENCY_TREATMENTS:
            return Decision.IGNORE
        if self.in_cooldown():
            logging.debug(f"[emergency] suppressed {result.label} during cooldown")
            return Decision.SUPPRESS
        return Decision.ALERT

    def admit(self, outcome: TickOutcome) -> TickOutcome:
        if outcome.decision is not Decision.ALERT:
            return outcome
        label = outcome.result.label or ""
        with self._lock:
            now = self._clock()
            if self._cooling_down(now):
                logging.debug(f"[emergency] suppressed {label}: another alert opened the cooldown first")
                return TickOutcome(result=outcome.result, decision=Decision.SUPPRESS)
            self._alert_until = now + self.cooldown_seconds
            self._alert = (label, EMERGENCY_TREATMENTS[label])
        return outcome

    def build_event(self, result: DetectionResult, timestamp: datetime, image: Optional[Snapshot]) -> DetectionEvent:
        """Raises ClassificationError if the summary responder fails."""
        label = result.label or ""
        treatment = EMERGENCY_TREATMENTS[label]
        summary = treatment
        if self.summarizer is not None:
            summary = self.summarizer(label, treatment, image, timestamp)
        return DetectionEvent(
            timestamp=timestamp,
            kind=label,
            derived_text=summary,
            image_ref=self.image_ref(timestamp, image),
        )

    def on_result(self, outcome: TickOutcome) -> None:
        if outcome.decision is Decision.ALERT and self.alarm is not None:
            label = outcome.result.label or ""
            self.alarm.trigger(label, EMERGENCY_TREATMENTS[label])

    def reset(self) -> None:
        with self._lock:
            self._alert_until = None
            self._alert = None

    def active_alert(self) -> Optional[Dict[str, str]]:
        with self._lock:
            if self._alert is None or not self._cooling_down(self._clock()):
                return None
            label, treatment = self._alert
        return {"type": label, "treatment": treatment}

    def display(self) -> Dict[str, Any]:
        return {"alert": self.active_alert()}


class AttendancePolicy(DetectionPolicy):
    """
    Recognition only updates what the operator sees; attendance is logged
    by an explicit mark action for the recognised student.
    """

    feature = "attendance"
    title = "Facial Recognition Attendance"
    sheet_name = "Attendance"
    file_base_name = "attendance_logs"
    image_prefix = "attendance"
    columns = (
        Column("Date", "date"),
        Column("Time", "time"),
        Column("Name", "subject_label"),
        Column("USN", "subject_id"),
        Column("Subject", "derived_text"),
        Column("Attendance Status", "kind"),
    )

    def __init__(self, classifier: Classifier, capture_dir: Optional[str] = None):
        super().__init__(classifier, capture_dir)
        self._lock = threading.Lock()
        self._roster: List[Student] = []
        self.recognized: Optional[Student] = None
        self.unregistered = False

    @property
    def roster(self) -> Tuple[Student, ...]:
        with self._lock:
            return tuple(self._roster)

    def enroll(self, student: Student) -> None:
        with self._lock:
            self._roster.append(student)

    def check_ready(self) -> None:
        if not self.roster:
            raise RegistrationRequired("Please register students before starting attendance.")

    def metadata(self) -> Dict[str, Any]:
        return {"roster": self.roster}

    def decide(self, result: DetectionResult) -> Decision:
        if result.label == RecognitionStatus.RECOGNIZED.value and result.subject is not None:
            return Decision.DISPLAY
        if result.label == RecognitionStatus.UNREGISTERED.value:
            return Decision.DISPLAY
        return Decision.IGNORE

    def on_result(self, outcome: TickOutcome) -> None:
        if outcome.decision is not Decision.DISPLAY:
            return
        with self._lock:
            self.recognized = outcome.result.subject
            self.unregistered = self.recognized is None

    def claim(self) -> Optional[Student]:
        """Take the recognised student and clear the recognition in one step."""
        with self._lock:
            student = self.recognized
            self.recognized = None
            self.unregistered = False
        return student

    def reset(self) -> None:
        self.claim()

    def display(self) -> Dict[str, Any]:
        with self._lock:
            student = self.recognized
            unregistered = self.unregistered
            roster_size = len(self._roster)
        return {
            "recognized": student.to_dict(include_image=True) if student else None,
            "unregistered": unregistered,
            "roster_size": roster_size,
        }
