"""
Tests for capture devices (cv2 is mocked; no camera needed).
"""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from camera.backends.opencv import OpenCVCaptureDevice
from camera.backends.still import StillImageDevice
from camera.camera import create_device_from_config
from errors import DeviceUnavailable


def _encoded(payload=b"jpeg"):
    return True, np.frombuffer(payload, dtype=np.uint8)


class TestOpenCVCaptureDevice:
    def test_start_and_capture(self):
        frame = np.zeros((720, 1280, 3), dtype=np.uint8)
        cap = MagicMock()
        cap.isOpened.return_value = True
        cap.read.return_value = (True, frame)

        with patch("camera.backends.opencv.cv2") as cv2:
            cv2.VideoCapture.return_value = cap
            cv2.imencode.return_value = _encoded(b"\xff\xd8jpeg")
            device = OpenCVCaptureDevice(device_id=0, jpeg_quality=80)
            device.start()
            snapshot = device.capture()

        assert device.is_active
        assert snapshot.jpeg == b"\xff\xd8jpeg"
        assert snapshot.size == (1280, 720)
        cap.set.assert_any_call(cv2.CAP_PROP_FRAME_WIDTH, 1280)

    def test_start_retries_then_raises(self):
        cap = MagicMock()
        cap.isOpened.return_value = False

        with patch("camera.backends.opencv.cv2") as cv2:
            cv2.VideoCapture.return_value = cap
            device = OpenCVCaptureDevice(device_id=0, max_retries=3, retry_delay=0)
            with pytest.raises(DeviceUnavailable):
                device.start()

        assert cv2.VideoCapture.call_count == 3
        assert not device.is_active

    def test_stream_url_skips_resolution(self):
        cap = MagicMock()
        cap.isOpened.return_value = True

        with patch("camera.backends.opencv.cv2") as cv2:
            cv2.VideoCapture.return_value = cap
            OpenCVCaptureDevice(device_id="rtsp://cam/stream").start()

        cap.set.assert_not_called()

    def test_failed_read_returns_none(self):
        cap = MagicMock()
        cap.isOpened.return_value = True
        cap.read.return_value = (False, None)

        with patch("camera.backends.opencv.cv2") as cv2:
            cv2.VideoCapture.return_value = cap
            device = OpenCVCaptureDevice()
            device.start()
            assert device.capture() is None

    def test_stop_releases_handle(self):
        cap = MagicMock()
        cap.isOpened.return_value = True

        with patch("camera.backends.opencv.cv2") as cv2:
            cv2.VideoCapture.return_value = cap
            device = OpenCVCaptureDevice()
            device.start()
            device.stop()
            device.stop()

        cap.release.assert_called_once()
        assert not device.is_active
        assert device.capture() is None


class TestStillImageDevice:
    def test_missing_file(self, tmp_path):
        device = StillImageDevice(str(tmp_path / "nope.jpg"))
        with pytest.raises(DeviceUnavailable):
            device.start()

    def test_serves_image(self, tmp_path):
        path = tmp_path / "demo.jpg"
        path.write_bytes(b"placeholder")
        frame = np.zeros((10, 20, 3), dtype=np.uint8)

        with patch("camera.backends.still.cv2") as cv2:
            cv2.imread.return_value = frame
            cv2.imencode.return_value = _encoded(b"still")
            with StillImageDevice(str(path)) as device:
                snapshot = device.capture()
            assert not device.is_active

        assert snapshot.jpeg == b"still"
        assert snapshot.size == (20, 10)

    def test_undecodable_image(self, tmp_path):
        path = tmp_path / "broken.jpg"
        path.write_bytes(b"not an image")

        with patch("camera.backends.still.cv2") as cv2:
            cv2.imread.return_value = None
            with pytest.raises(DeviceUnavailable):
                StillImageDevice(str(path)).start()


def test_factory_selects_backend():
    assert isinstance(create_device_from_config({"backend": "still", "image_path": "x.jpg"}), StillImageDevice)
    device = create_device_from_config({"device_id": 2, "resolution": [640, 480]})
    assert isinstance(device, OpenCVCaptureDevice)
    assert device.resolution == (640, 480)
