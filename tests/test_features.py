"""
Tests for feature-level operator actions and runtime wiring.
"""

import pytest

from conftest import FakeDevice, FixedClassifier
from detection.policies import AttendancePolicy, Decision, EmergencyPolicy, MaskPolicy, UniformPolicy
from errors import CaptureUnavailable, DeviceUnavailable, FeatureBusy, RegistrationRequired
from export.spreadsheet import SpreadsheetExporter
from models.config import Config, FeatureConfig
from models.event import DetectionResult
from runtime.context import create_context_from_config
from runtime.features import AttendanceFeature, EmergencyFeature, Feature, UniformFeature


def _feature(cls, name, policy, manual_timer, step_clock, device=None, tmp_path=None, **cfg):
    return cls(
        FeatureConfig(name=name, **cfg),
        device or FakeDevice(),
        policy,
        SpreadsheetExporter(str(tmp_path) if tmp_path else "exports"),
        timer_factory=manual_timer,
        clock=step_clock,
    )


class TestUniformFeature:
    def test_register_then_detect(self, manual_timer, step_clock):
        feature = _feature(
            UniformFeature, "uniform", UniformPolicy(FixedClassifier("Denied", feature="uniform")),
            manual_timer, step_clock, cadence_ms=3000,
        )
        with pytest.raises(RegistrationRequired):
            feature.start()

        feature.register_uniform()
        assert feature.start() is True
        manual_timer.instances[0].fire(2)

        assert [r["Uniform Status"] for r in feature.rows()] == ["Denied", "Denied"]
        assert feature.status()["uniform_registered"] is True

    def test_register_refused_while_detecting(self, manual_timer, step_clock):
        feature = _feature(
            UniformFeature, "uniform", UniformPolicy(FixedClassifier("Granted", feature="uniform")),
            manual_timer, step_clock,
        )
        feature.register_uniform()
        feature.start()
        with pytest.raises(FeatureBusy):
            feature.register_uniform()

    def test_register_requires_camera(self, manual_timer, step_clock):
        feature = _feature(
            UniformFeature, "uniform", UniformPolicy(FixedClassifier("Granted", feature="uniform")),
            manual_timer, step_clock, device=FakeDevice(active=False),
        )
        with pytest.raises(DeviceUnavailable):
            feature.register_uniform()

    def test_register_capture_failure(self, manual_timer, step_clock):
        feature = _feature(
            UniformFeature, "uniform", UniformPolicy(FixedClassifier("Granted", feature="uniform")),
            manual_timer, step_clock, device=FakeDevice(frames=[]),
        )
        with pytest.raises(CaptureUnavailable):
            feature.register_uniform()


class TestAttendanceFeature:
    def _attendance(self, manual_timer, step_clock, label="Recognized", device=None):
        return _feature(
            AttendanceFeature, "attendance", AttendancePolicy(FixedClassifier(label, feature="attendance")),
            manual_timer, step_clock, device=device,
        )

    def test_register_student(self, manual_timer, step_clock):
        feature = self._attendance(manual_timer, step_clock)
        student = feature.register_student(" Asha ", "1RV20CS001")

        assert student.name == "Asha"
        assert student.semester == "7th Sem"
        assert student.id.startswith("S")
        assert student.face_image.startswith("data:image/jpeg;base64,")
        assert feature.students == (student,)

    @pytest.mark.parametrize("name,usn", [("", "1RV20CS001"), ("Asha", " ")])
    def test_register_requires_name_and_usn(self, manual_timer, step_clock, name, usn):
        feature = self._attendance(manual_timer, step_clock)
        with pytest.raises(ValueError):
            feature.register_student(name, usn)

    def test_mark_attendance_flow(self, manual_timer, step_clock):
        feature = self._attendance(manual_timer, step_clock)
        student = feature.register_student("Asha", "1RV20CS001")
        feature.start()
        feature.controller.resolve(DetectionResult(label="Recognized", subject=student))
        assert len(feature.log_store) == 0

        event = feature.mark_attendance("Cloud Computing")

        assert event.to_row(feature.columns) == {
            "Date": event.date,
            "Time": event.time,
            "Name": "Asha",
            "USN": "1RV20CS001",
            "Subject": "Cloud Computing",
            "Attendance Status": "Marked",
        }
        assert feature.policy.recognized is None

    def test_mark_without_recognition(self, manual_timer, step_clock):
        feature = self._attendance(manual_timer, step_clock)
        with pytest.raises(RegistrationRequired):
            feature.mark_attendance("Cloud Computing")

    def test_mark_unknown_subject(self, manual_timer, step_clock):
        feature = self._attendance(manual_timer, step_clock)
        student = feature.register_student("Asha", "1RV20CS001")
        feature.policy.recognized = student
        with pytest.raises(ValueError):
            feature.mark_attendance("Astrology")
        assert feature.policy.recognized == student

    def test_stop_clears_recognition(self, manual_timer, step_clock):
        feature = self._attendance(manual_timer, step_clock, label="Unregistered")
        feature.register_student("Asha", "1RV20CS001")
        feature.start()
        manual_timer.instances[0].fire()
        assert feature.status()["unregistered"] is True

        feature.stop()

        status = feature.status()
        assert status["unregistered"] is False
        assert status["recognized"] is None


class TestEmergencyFeature:
    def _emergency(self, manual_timer, step_clock, monotonic_clock, device=None):
        policy = EmergencyPolicy(
            FixedClassifier(None, feature="emergency"), cooldown_seconds=8, clock=monotonic_clock
        )
        return _feature(EmergencyFeature, "emergency", policy, manual_timer, step_clock, device=device)

    def test_simulate_honours_cooldown(self, manual_timer, step_clock, monotonic_clock):
        feature = self._emergency(manual_timer, step_clock, monotonic_clock)

        first = feature.simulate("Fall Detected")
        second = feature.simulate("Chest Pain")

        assert first.decision is Decision.ALERT
        assert second.decision is Decision.SUPPRESS
        assert [r["Type of Emergency"] for r in feature.rows()] == ["Fall Detected"]
        assert feature.active_alert()["type"] == "Fall Detected"

    def test_simulate_unknown_label(self, manual_timer, step_clock, monotonic_clock):
        feature = self._emergency(manual_timer, step_clock, monotonic_clock)
        with pytest.raises(ValueError):
            feature.simulate("Earthquake")

    def test_simulate_requires_camera(self, manual_timer, step_clock, monotonic_clock):
        feature = self._emergency(manual_timer, step_clock, monotonic_clock, device=FakeDevice(active=False))
        with pytest.raises(DeviceUnavailable):
            feature.simulate("Fall Detected")


class TestAutoExport:
    def test_export_after_each_append(self, manual_timer, step_clock, tmp_path):
        feature = _feature(
            Feature, "mask", MaskPolicy(FixedClassifier("Worn")), manual_timer, step_clock,
            tmp_path=tmp_path, auto_export=True,
        )
        feature.start()
        manual_timer.instances[0].fire()

        assert (tmp_path / "mask_detection_logs.xlsx").exists()

    def test_no_export_by_default(self, manual_timer, step_clock, tmp_path):
        feature = _feature(
            Feature, "mask", MaskPolicy(FixedClassifier("Worn")), manual_timer, step_clock, tmp_path=tmp_path,
        )
        feature.start()
        manual_timer.instances[0].fire()

        assert list(tmp_path.iterdir()) == []
        assert feature.export() == tmp_path / "mask_detection_logs.xlsx"


class TestRuntimeContext:
    def test_builds_enabled_features(self, valid_config, manual_timer, step_clock):
        valid_config["features"]["mask"]["enabled"] = False
        ctx = create_context_from_config(
            Config.from_dict(valid_config), device=FakeDevice(), timer_factory=manual_timer, clock=step_clock,
        )

        assert set(ctx.features) == {"uniform", "emergency", "attendance"}
        assert set(ctx.all_features()) == {"uniform", "emergency", "attendance", "presence"}
        with pytest.raises(KeyError):
            ctx.feature("mask")

    def test_close_stops_loops_then_device(self, valid_config, manual_timer, step_clock):
        device = FakeDevice()
        ctx = create_context_from_config(
            Config.from_dict(valid_config), device=device, timer_factory=manual_timer, clock=step_clock,
        )
        ctx.feature("mask").start()
        ctx.feature("emergency").start()

        ctx.close()

        assert not ctx.feature("mask").is_active
        assert not ctx.feature("emergency").is_active
        assert all(t.cancelled for t in manual_timer.instances)
        assert device.stop_calls == 1

    def test_seeded_simulation_logs(self, valid_config, manual_timer, step_clock):
        valid_config["classifier"] = {"backend": "scripted", "script": {"emergency": [None, "SOS Hand Sign"]}}
        ctx = create_context_from_config(
            Config.from_dict(valid_config), device=FakeDevice(), timer_factory=manual_timer, clock=step_clock,
        )
        emergency = ctx.feature("emergency")
        emergency.start()
        manual_timer.instances[0].fire(2)

        rows = emergency.rows()
        assert len(rows) == 1
        assert rows[0]["Type of Emergency"] == "SOS Hand Sign"
        assert rows[0]["Suggested Treatment"].startswith("SOS Hand Sign reported on")
        assert len(ctx.alarm.history) == 1
