"""
Capture device factory.

This is the single entrypoint the rest of the project should use to create a camera.
"""

from __future__ import annotations

from typing import Any, Dict

from .base import CaptureDevice
from .backends.opencv import OpenCVCaptureDevice
from .backends.still import StillImageDevice


def create_device_from_config(camera_cfg: Dict[str, Any]) -> CaptureDevice:
    backend = camera_cfg.get("backend", "opencv")
    jpeg_quality = int(camera_cfg.get("jpeg_quality", 90))

    if backend == "still":
        return StillImageDevice(camera_cfg.get("image_path") or "", jpeg_quality=jpeg_quality)

    # Default: OpenCV (USB/stream URL)
    return OpenCVCaptureDevice(
        device_id=camera_cfg.get("device_id", 0),
        resolution=tuple(camera_cfg.get("resolution", [1280, 720])),
        jpeg_quality=jpeg_quality,
        max_retries=int(camera_cfg.get("max_retries", 3)),
    )
