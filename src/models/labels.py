"""
Closed label sets returned by the classifiers.
"""

from __future__ import annotations

from enum import Enum


class EmergencyType(str, Enum):
    FALL = "Fall Detected"
    SOS = "SOS Hand Sign"
    CHEST_PAIN = "Chest Pain"


class MaskStatus(str, Enum):
    WORN = "Worn"
    NOT_WORN = "Not Worn"
    UNKNOWN = "Unknown"


class UniformStatus(str, Enum):
    GRANTED = "Granted"
    DENIED = "Denied"


class RecognitionStatus(str, Enum):
    RECOGNIZED = "Recognized"
    UNREGISTERED = "Unregistered"


ATTENDANCE_MARKED = "Marked"
PRESENCE_RECORDED = "Present"
