"""
Classifier strategies.

The backend is chosen once, at construction time, from ``classifier.backend``:
- simulated: seeded random outcomes (default, no network)
- scripted: fixed label sequence per feature
- gemini: hosted generative model over REST
"""

from __future__ import annotations

import random
from typing import Optional

from models.config import ClassifierConfig

from .base import Classifier, Responder
from .gemini import (
    GeminiAttendanceClassifier,
    GeminiClient,
    GeminiEmergencyClassifier,
    GeminiHelpResponder,
    GeminiMaskClassifier,
    GeminiSummaryResponder,
    GeminiUniformClassifier,
)
from .scripted import ScriptedClassifier
from .simulated import (
    SimulatedAttendanceClassifier,
    SimulatedClassifier,
    SimulatedHelpResponder,
    SimulatedSummaryResponder,
)

BACKENDS = ("simulated", "scripted", "gemini")

_GEMINI_CLASSIFIERS = {
    "emergency": GeminiEmergencyClassifier,
    "mask": GeminiMaskClassifier,
    "uniform": GeminiUniformClassifier,
    "attendance": GeminiAttendanceClassifier,
}


def create_classifier(
    feature: str,
    cfg: ClassifierConfig,
    rng: Optional[random.Random] = None,
    client: Optional[GeminiClient] = None,
) -> Classifier:
    if cfg.backend == "gemini":
        if feature not in _GEMINI_CLASSIFIERS:
            raise ValueError(f"No hosted classifier for feature: {feature}")
        return _GEMINI_CLASSIFIERS[feature](client or GeminiClient(cfg.gemini))

    if cfg.backend == "scripted":
        labels = cfg.script.get(feature)
        if labels:
            return ScriptedClassifier(feature, labels, cycle=True)
        # Features without a script fall back to simulation

    rng = rng or random.Random(cfg.seed)
    if feature == "attendance":
        return SimulatedAttendanceClassifier(rng=rng)
    return SimulatedClassifier(feature, rng=rng)


def create_responders(cfg: ClassifierConfig, client: Optional[GeminiClient] = None):
    """Return (help_responder, summary_responder) for the configured backend."""
    if cfg.backend == "gemini":
        client = client or GeminiClient(cfg.gemini)
        return GeminiHelpResponder(client), GeminiSummaryResponder(client)
    return SimulatedHelpResponder(), SimulatedSummaryResponder()


__all__ = [
    "BACKENDS",
    "Classifier",
    "Responder",
    "GeminiClient",
    "ScriptedClassifier",
    "SimulatedClassifier",
    "SimulatedAttendanceClassifier",
    "create_classifier",
    "create_responders",
]
