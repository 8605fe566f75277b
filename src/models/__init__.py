"""
Typed models for the GuardianEye application.
"""

from .snapshot import Snapshot
from .event import Column, DetectionEvent, DetectionResult, Student
from .labels import EmergencyType, MaskStatus, RecognitionStatus, UniformStatus
from .config import (
    Config,
    CameraConfig,
    ClassifierConfig,
    GeminiConfig,
    FeatureConfig,
    ExportConfig,
    WebConfig,
)

__all__ = [
    # Capture
    "Snapshot",
    # Detection
    "Column",
    "DetectionEvent",
    "DetectionResult",
    "Student",
    # Labels
    "EmergencyType",
    "MaskStatus",
    "RecognitionStatus",
    "UniformStatus",
    # Config
    "Config",
    "CameraConfig",
    "ClassifierConfig",
    "GeminiConfig",
    "FeatureConfig",
    "ExportConfig",
    "WebConfig",
]
