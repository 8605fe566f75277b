"""
Scripted classifier: replays a fixed sequence of labels.

Deterministic stand-in for demos and tests. Once the script runs out the
last label repeats (or the script restarts when ``cycle`` is set).
"""

from __future__ import annotations

import threading
from typing import Any, Optional, Sequence

from models.event import DetectionResult, Student
from models.labels import RecognitionStatus
from models.snapshot import Snapshot

from .base import Classifier


class ScriptedClassifier(Classifier):
    def __init__(self, feature: str, labels: Sequence[Optional[str]], cycle: bool = False):
        if not labels:
            raise ValueError("ScriptedClassifier needs at least one label")
        self.feature = feature
        self.labels = list(labels)
        self.cycle = cycle
        self.calls = 0
        self._lock = threading.Lock()

    def _next_label(self) -> Optional[str]:
        with self._lock:
            idx = self.calls
            self.calls += 1
        if self.cycle:
            return self.labels[idx % len(self.labels)]
        return self.labels[min(idx, len(self.labels) - 1)]

    def classify(self, image: Snapshot, roster: Sequence[Student] = (), **metadata: Any) -> DetectionResult:
        label = self._next_label()
        if self.feature != "attendance":
            return DetectionResult(label=label)
        # Attendance scripts name USNs; anything not on the roster is unregistered
        match = next((s for s in roster if s.usn == label), None)
        if match is None:
            return DetectionResult(label=RecognitionStatus.UNREGISTERED.value)
        return DetectionResult(label=RecognitionStatus.RECOGNIZED.value, subject=match)
