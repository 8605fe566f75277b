"""
Classifier and responder interfaces.

A classifier turns a frame (plus optional feature metadata such as the
registered uniform or the attendance roster) into a DetectionResult.
A responder is the text-in/text-out sibling used by the help assistant and
the emergency summary.

Implementations must raise ClassificationError for any transport or parse
failure so the detection loop can treat it as a transient fault.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from models.event import DetectionResult
from models.snapshot import Snapshot


class Classifier(ABC):
    feature: str = ""

    @abstractmethod
    def classify(self, image: Snapshot, **metadata: Any) -> DetectionResult:
        ...


class Responder(ABC):
    @abstractmethod
    def respond(self, **fields: Any) -> str:
        ...
