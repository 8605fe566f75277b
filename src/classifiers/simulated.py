"""
Simulated classifiers.

These stand in for real detection during demos. Each feature rolls a
uniform random number and walks a cumulative probability table; the first
threshold the roll falls under wins, otherwise the default label is used.
Pass a seed (or a random.Random) for reproducible runs.
"""

from __future__ import annotations

import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

from models.event import DetectionResult, Student
from models.labels import EmergencyType, MaskStatus, RecognitionStatus, UniformStatus
from models.snapshot import Snapshot

from .base import Classifier, Responder

# feature -> ([(cumulative_threshold, label), ...], default_label)
OUTCOME_TABLES: Dict[str, Tuple[List[Tuple[float, Optional[str]]], Optional[str]]] = {
    "emergency": (
        [
            (0.05, EmergencyType.FALL.value),
            (0.10, EmergencyType.SOS.value),
            (0.15, EmergencyType.CHEST_PAIN.value),
        ],
        None,
    ),
    "mask": (
        [
            (0.60, MaskStatus.WORN.value),
            (0.95, MaskStatus.NOT_WORN.value),
        ],
        MaskStatus.UNKNOWN.value,
    ),
    "uniform": (
        [(0.70, UniformStatus.GRANTED.value)],
        UniformStatus.DENIED.value,
    ),
}

# Chance that the attendance camera sees a face that is not on the roster
UNREGISTERED_RATE = 0.2

FEATURE_HELP = {
    "uniform": (
        "Register the uniform by turning on the camera and pressing Register Uniform while a "
        "student wearing it is in view. Then start detection: each check grants or denies "
        "permission and is logged."
    ),
    "mask": (
        "Turn on the camera and start detection. Every few seconds the feed is checked for a "
        "face mask. Worn and Not Worn results are logged; unclear frames are shown but not logged."
    ),
    "emergency": (
        "Start detection to watch for falls, SOS hand signs and chest pain. A detection sounds "
        "an alarm, shows the suggested first aid and logs the event with a summary."
    ),
    "attendance": (
        "Register each student with their name and USN while their face is in view. Start "
        "attendance; when a student is recognised, pick the subject and mark attendance."
    ),
    "presence": (
        "Press Student Enters when a student comes into view and Student Leaves when they go. "
        "The time spent in view is logged."
    ),
}


class SimulatedClassifier(Classifier):
    def __init__(self, feature: str, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        if feature not in OUTCOME_TABLES:
            raise ValueError(f"No simulation table for feature: {feature}")
        self.feature = feature
        self.rng = rng or random.Random(seed)
        self._thresholds, self._default = OUTCOME_TABLES[feature]

    def classify(self, image: Snapshot, **metadata: Any) -> DetectionResult:
        roll = self.rng.random()
        for threshold, label in self._thresholds:
            if roll < threshold:
                return DetectionResult(label=label)
        return DetectionResult(label=self._default)


class SimulatedAttendanceClassifier(Classifier):
    feature = "attendance"

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        self.rng = rng or random.Random(seed)

    def classify(self, image: Snapshot, roster: Sequence[Student] = (), **metadata: Any) -> DetectionResult:
        if not roster or self.rng.random() < UNREGISTERED_RATE:
            return DetectionResult(label=RecognitionStatus.UNREGISTERED.value)
        return DetectionResult(label=RecognitionStatus.RECOGNIZED.value, subject=self.rng.choice(list(roster)))


class SimulatedHelpResponder(Responder):
    def respond(self, feature_name: str = "", **fields: Any) -> str:
        key = feature_name.strip().lower()
        for name, text in FEATURE_HELP.items():
            if name in key:
                return text
        return (
            "GuardianEye monitors the camera feed for uniform compliance, face masks, "
            "emergencies, attendance and presence time. Ask about any of these features."
        )


class SimulatedSummaryResponder(Responder):
    def respond(
        self,
        emergency_type: str = "",
        suggested_treatment: str = "",
        date: str = "",
        time: str = "",
        **fields: Any,
    ) -> str:
        return f"{emergency_type} reported on {date} at {time}. {suggested_treatment}"
