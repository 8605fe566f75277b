"""
Error taxonomy for GuardianEye.

None of these are fatal to the process. The worst outcome of any of them is
a missed detection tick or a refused user action.
"""

from __future__ import annotations


class GuardianEyeError(Exception):
    """Base class for all domain errors."""


class DeviceUnavailable(GuardianEyeError):
    """Camera is off, missing, or access was denied."""


class CaptureUnavailable(GuardianEyeError):
    """The device is on but did not produce a frame (e.g. toggled mid-cycle)."""


class ClassificationError(GuardianEyeError):
    """Transport or parse failure talking to a classifier or responder."""


class RegistrationRequired(GuardianEyeError):
    """A feature needs reference data (uniform, roster) before it can start."""


class FeatureBusy(GuardianEyeError):
    """The requested action is not allowed while the feature is detecting."""
