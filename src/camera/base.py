"""
Capture device interface.

A capture device owns the camera handle. Detection loops only ever ask it for
the current frame; they never open or release hardware themselves.

Lifecycle:
    1. start() acquires the device (raises DeviceUnavailable on failure)
    2. capture() returns the current frame as a Snapshot, or None
    3. stop() releases the device; safe to call multiple times
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from models.snapshot import Snapshot


class CaptureDevice(ABC):
    @property
    @abstractmethod
    def is_active(self) -> bool:
        """True while the device is acquired and producing frames."""

    @abstractmethod
    def start(self) -> None:
        """
        Acquire the device.

        Raises:
            DeviceUnavailable: If the camera cannot be opened.
        """

    @abstractmethod
    def stop(self) -> None:
        """Release the device."""

    @abstractmethod
    def capture(self) -> Optional[Snapshot]:
        """Encode the current frame, or return None if no frame is available."""

    def __enter__(self) -> "CaptureDevice":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()
