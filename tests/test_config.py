"""
Smoke tests for configuration loading and validation.
"""

import pytest

from main import load_config, validate_config
from models.config import Config, FeatureConfig


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "classifier", "features", "log_path", "log_level"])
    def test_missing_section(self, valid_config, section):
        """Each required section is enforced."""
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error.lower()

    def test_invalid_device_id_type(self, valid_config):
        """device_id with invalid type fails."""
        valid_config["camera"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_stream_url_device_id(self, valid_config):
        """A stream URL is a valid device_id."""
        valid_config["camera"]["device_id"] = "rtsp://camera.local/stream"

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_still_backend_needs_image(self, valid_config):
        valid_config["camera"] = {"backend": "still"}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "image_path" in error

    def test_unknown_camera_backend(self, valid_config):
        valid_config["camera"]["backend"] = "picamera2"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "camera.backend" in error

    def test_unknown_classifier_backend(self, valid_config):
        valid_config["classifier"]["backend"] = "yolo"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "classifier.backend" in error

    def test_empty_script_rejected(self, valid_config):
        valid_config["classifier"] = {"backend": "scripted", "script": {"mask": []}}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "script.mask" in error

    def test_non_positive_cadence(self, valid_config):
        """cadence_ms must be a positive integer."""
        valid_config["features"]["mask"]["cadence_ms"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "cadence_ms" in error

    def test_unknown_feature(self, valid_config):
        valid_config["features"]["fire"] = {}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "fire" in error

    def test_invalid_log_level(self, valid_config):
        """Invalid log level fails."""
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for layered config loading."""

    def test_defaults_only(self, temp_config_dir):
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["classifier"]["seed"] == 7
        assert config["features"]["mask"]["cadence_ms"] == 2500

    def test_local_overrides_deep_merge(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
features:
  mask:
    cadence_ms: 1000
    auto_export: true
""")
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["features"]["mask"] == {"cadence_ms": 1000, "auto_export": True}
        assert config["features"]["emergency"]["cooldown_seconds"] == 8
        assert config["camera"]["device_id"] == 0

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "kiosk.yaml"
        explicit.write_text("""
log_level: DEBUG
camera:
  backend: still
  image_path: demo.jpg
""")
        config = load_config(str(explicit))

        assert config["log_level"] == "DEBUG"
        assert config["camera"]["backend"] == "still"
        assert config["camera"]["resolution"] == [640, 480]


class TestTypedConfig:
    def test_from_dict_defaults(self, valid_config):
        config = Config.from_dict(valid_config)

        assert config.feature("mask").cadence_ms == 2500
        assert config.feature("emergency").cooldown_seconds == 8.0
        assert config.feature("attendance").subjects[0] == "Machine Learning"
        assert config.classifier.seed == 42
        assert config.classifier.gemini.api_key_env == "GEMINI_API_KEY"
        assert config.web.host == "127.0.0.1"

    def test_missing_feature_uses_default_cadence(self):
        config = Config.from_dict({})
        assert config.feature("uniform").cadence_ms == 3000
        assert config.feature("attendance").cadence_ms == 5000

    def test_round_trip(self, valid_config):
        config = Config.from_dict(valid_config)
        assert Config.from_dict(config.to_dict()) == config

    def test_feature_config_subjects(self):
        fc = FeatureConfig.from_dict("attendance", {"subjects": ["Compilers"]})
        assert fc.subjects == ["Compilers"]
