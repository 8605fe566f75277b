"""
OpenCV capture backend.

Supports:
- USB webcams (device_id as int, e.g. 0)
- IP cameras / stream URLs (device_id as str)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional, Tuple, Union

import cv2

from camera.base import CaptureDevice
from errors import DeviceUnavailable
from models.snapshot import Snapshot


class OpenCVCaptureDevice(CaptureDevice):
    """
    cv2.VideoCapture wrapper that hands out JPEG snapshots.

    The API thread and every detection loop share one instance, so all
    access to the capture handle goes through a lock.
    """

    def __init__(
        self,
        device_id: Union[int, str] = 0,
        resolution: Tuple[int, int] = (1280, 720),
        jpeg_quality: int = 90,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.device_id = device_id
        self.resolution = resolution
        self.jpeg_quality = jpeg_quality
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay

        self._cap: Optional[cv2.VideoCapture] = None
        self._lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        return self._cap is not None

    def start(self) -> None:
        with self._lock:
            if self._cap is not None:
                return
            self._cap = self._open()
        logging.info(f"Camera started (backend=opencv, id={self.device_id}, res={self.resolution})")

    def _open(self) -> cv2.VideoCapture:
        for attempt in range(1, self.max_retries + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                # Only set properties for USB cameras (integers), not IP streams
                if isinstance(self.device_id, int):
                    cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.resolution[0])
                    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.resolution[1])
                    cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)
                return cap
            cap.release()
            if attempt < self.max_retries:
                logging.warning(
                    f"Failed to open camera device {self.device_id} "
                    f"(attempt {attempt}/{self.max_retries}), retrying..."
                )
                time.sleep(self.retry_delay)
        logging.error(f"Failed to open camera device {self.device_id} after {self.max_retries} attempts")
        raise DeviceUnavailable(
            f"Could not access camera {self.device_id}. Check permissions and that a camera is connected."
        )

    def stop(self) -> None:
        with self._lock:
            if self._cap is None:
                return
            self._cap.release()
            self._cap = None
        logging.info("Camera released")

    def capture(self) -> Optional[Snapshot]:
        with self._lock:
            if self._cap is None:
                return None
            ok, frame = self._cap.read()
        if not ok or frame is None:
            logging.warning(f"Failed to read frame from camera {self.device_id}")
            return None

        ok, buf = cv2.imencode(".jpg", frame, [int(cv2.IMWRITE_JPEG_QUALITY), int(self.jpeg_quality)])
        if not ok:
            logging.warning("Failed to encode JPEG")
            return None
        h, w = frame.shape[:2]
        return Snapshot(jpeg=buf.tobytes(), width=w, height=h, timestamp=time.time())
