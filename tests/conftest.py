"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import threading
from datetime import datetime, timedelta

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from camera.base import CaptureDevice  # noqa: E402
from classifiers.base import Classifier  # noqa: E402
from errors import DeviceUnavailable  # noqa: E402
from models.event import DetectionResult  # noqa: E402
from models.snapshot import Snapshot  # noqa: E402


class FakeDevice(CaptureDevice):
    """Capture device that returns a tiny fixed JPEG payload."""

    def __init__(self, active=True, frames=None, fail_start=False):
        self._active = active
        self.frames = frames
        self.fail_start = fail_start
        self.captures = 0
        self.stop_calls = 0

    @property
    def is_active(self):
        return self._active

    def start(self):
        if self.fail_start:
            raise DeviceUnavailable("no camera")
        self._active = True

    def stop(self):
        self.stop_calls += 1
        self._active = False

    def capture(self):
        if not self._active:
            return None
        self.captures += 1
        if self.frames is not None:
            return self.frames.pop(0) if self.frames else None
        return Snapshot(jpeg=b"\xff\xd8fake\xff\xd9", width=4, height=3, timestamp=float(self.captures))


class ManualTimer:
    """Timer double: fire() runs the callback on the calling thread."""

    instances = []

    def __init__(self, interval, callback, name="timer"):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.started = False
        self.cancelled = False
        ManualTimer.instances.append(self)

    @property
    def is_alive(self):
        return self.started and not self.cancelled

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self, times=1):
        for _ in range(times):
            if self.is_alive:
                self.callback()


class StepClock:
    """Deterministic wall clock; each call advances by `step`."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.now = start or datetime(2024, 5, 6, 9, 30, 0)
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class MonotonicClock:
    """Manually advanced monotonic clock for cooldown tests."""

    def __init__(self, t=100.0):
        self.t = t

    def __call__(self):
        return self.t

    def advance(self, seconds):
        self.t += seconds


class FixedClassifier(Classifier):
    """Always returns the same label; optionally raises instead."""

    def __init__(self, label, error=None, feature="mask"):
        self.feature = feature
        self.label = label
        self.error = error
        self.calls = 0
        self.last_metadata = None

    def classify(self, image, **metadata):
        self.calls += 1
        self.last_metadata = metadata
        if self.error is not None:
            raise self.error
        return DetectionResult(label=self.label)


class BlockingClassifier(Classifier):
    """Blocks inside classify() until released; used for overlap tests."""

    feature = "mask"

    def __init__(self, label="Worn"):
        self.label = label
        self.entered = threading.Event()
        self.release = threading.Event()

    def classify(self, image, **metadata):
        self.entered.set()
        self.release.wait(5)
        return DetectionResult(label=self.label)


class BlockingSummarizer:
    """Emergency summarizer that blocks until released."""

    def __init__(self, text="summary"):
        self.text = text
        self.entered = threading.Event()
        self.release = threading.Event()

    def __call__(self, label, treatment, image, when):
        self.entered.set()
        self.release.wait(5)
        return self.text


@pytest.fixture
def fake_device():
    return FakeDevice()


@pytest.fixture
def manual_timer():
    ManualTimer.instances = []
    return ManualTimer


@pytest.fixture
def step_clock():
    return StepClock()


@pytest.fixture
def monotonic_clock():
    return MonotonicClock()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]

classifier:
  backend: "simulated"
  seed: 7

features:
  mask:
    cadence_ms: 2500
  emergency:
    cadence_ms: 4000
    cooldown_seconds: 8

export:
  output_dir: "exports"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "jpeg_quality": 90,
        },
        "classifier": {
            "backend": "simulated",
            "seed": 42,
        },
        "features": {
            "uniform": {"cadence_ms": 3000},
            "mask": {"cadence_ms": 2500},
            "emergency": {"cadence_ms": 4000, "cooldown_seconds": 8},
            "attendance": {"cadence_ms": 5000},
            "presence": {},
        },
        "export": {"output_dir": "exports"},
        "web": {"host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
