"""
Still-image capture backend.

Serves the same image file on every capture. Used for kiosk demos on
machines without a webcam.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Optional

import cv2
import numpy as np

from camera.base import CaptureDevice
from errors import DeviceUnavailable
from models.snapshot import Snapshot


class StillImageDevice(CaptureDevice):
    def __init__(self, image_path: str, jpeg_quality: int = 90) -> None:
        self.image_path = image_path
        self.jpeg_quality = jpeg_quality
        self._frame: Optional[np.ndarray] = None

    @property
    def is_active(self) -> bool:
        return self._frame is not None

    def start(self) -> None:
        if self._frame is not None:
            return
        if not self.image_path or not os.path.isfile(self.image_path):
            raise DeviceUnavailable(f"Image file not found: {self.image_path}")
        frame = cv2.imread(self.image_path)
        if frame is None:
            raise DeviceUnavailable(f"Could not decode image: {self.image_path}")
        self._frame = frame
        logging.info(f"Camera started (backend=still, image={self.image_path})")

    def stop(self) -> None:
        if self._frame is not None:
            self._frame = None
            logging.info("Camera released")

    def capture(self) -> Optional[Snapshot]:
        frame = self._frame
        if frame is None:
            return None
        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(self.jpeg_quality)])
        if not ok:
            return None
        h, w = frame.shape[:2]
        return Snapshot(jpeg=buf.tobytes(), width=w, height=h, timestamp=time.time())
