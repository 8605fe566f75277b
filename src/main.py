"""
GuardianEye: campus safety dashboard service.

Starts the capture device, builds one detection loop per enabled feature,
and serves the dashboard API with uvicorn.

Usage:
    python src/main.py --config config/config.yaml

Arguments:
    --config: Path to configuration file
    --host / --port: Override web.host / web.port
    --no-camera: Do not start the camera at boot (start it from the dashboard)
"""

import os
import sys
import argparse
import logging
import yaml
import uvicorn
from dotenv import load_dotenv
from typing import Dict, Any, Tuple, Optional

from classifiers import BACKENDS
from models.config import Config, FEATURE_NAMES
from errors import DeviceUnavailable
from ops.logging import setup_logging
from runtime.context import create_context_from_config
from web.app import create_app
from web.state import state as web_state


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        base_path = os.path.join(os.path.dirname(config_path), "default.yaml")
        base_cfg: Dict[str, Any] = {}
        if os.path.exists(base_path):
            with open(base_path, "r") as f:
                base_cfg = yaml.safe_load(f) or {}

        local_overrides_path = os.path.join(os.path.dirname(config_path), "config.yaml")
        local_cfg: Dict[str, Any] = {}
        if os.path.exists(local_overrides_path):
            with open(local_overrides_path, "r") as f:
                local_cfg = yaml.safe_load(f) or {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not the local override file itself
        if os.path.exists(config_path) and os.path.abspath(config_path) != os.path.abspath(local_overrides_path):
            with open(config_path, "r") as f:
                explicit_cfg = yaml.safe_load(f) or {}
            merged = _deep_merge(merged, explicit_cfg)

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'classifier', 'features', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Validate camera settings
    camera = config.get('camera', {}) or {}
    backend = camera.get('backend', 'opencv')
    if backend not in ('opencv', 'still'):
        return False, "camera.backend must be one of: opencv, still"
    if backend == 'still':
        if not isinstance(camera.get('image_path'), str) or not camera.get('image_path'):
            return False, "camera.image_path is required when camera.backend is 'still'"
    else:
        if 'device_id' not in camera:
            return False, "Missing camera.device_id"
        if not isinstance(camera['device_id'], (int, str)):
            return False, "camera.device_id must be an integer (index) or string (URL)"
        if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
            return False, "camera.device_id integer must be non-negative"

    if 'resolution' in camera:
        if not isinstance(camera['resolution'], list) or len(camera['resolution']) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(isinstance(x, int) and x > 0 for x in camera['resolution']):
            return False, "camera.resolution values must be positive integers"

    quality = camera.get('jpeg_quality', 90)
    if not isinstance(quality, int) or not (1 <= quality <= 100):
        return False, "camera.jpeg_quality must be an integer between 1 and 100"

    # Validate classifier settings
    classifier = config.get('classifier', {}) or {}
    if classifier.get('backend', 'simulated') not in BACKENDS:
        return False, f"classifier.backend must be one of: {', '.join(BACKENDS)}"
    seed = classifier.get('seed')
    if seed is not None and not isinstance(seed, int):
        return False, "classifier.seed must be an integer"
    script = classifier.get('script') or {}
    if not isinstance(script, dict):
        return False, "classifier.script must be a mapping of feature -> list of labels"
    for name, labels in script.items():
        if not isinstance(labels, list) or not labels:
            return False, f"classifier.script.{name} must be a non-empty list"
    gemini = classifier.get('gemini', {}) or {}
    if 'timeout_seconds' in gemini:
        t = gemini['timeout_seconds']
        if not isinstance(t, (int, float)) or t <= 0:
            return False, "classifier.gemini.timeout_seconds must be a positive number"

    # Validate per-feature settings
    features = config.get('features', {}) or {}
    for name, fcfg in features.items():
        if name not in FEATURE_NAMES:
            return False, f"Unknown feature: {name}"
        fcfg = fcfg or {}
        if 'cadence_ms' in fcfg:
            if not isinstance(fcfg['cadence_ms'], int) or fcfg['cadence_ms'] <= 0:
                return False, f"features.{name}.cadence_ms must be a positive integer"
        if 'cooldown_seconds' in fcfg:
            c = fcfg['cooldown_seconds']
            if not isinstance(c, (int, float)) or c < 0:
                return False, f"features.{name}.cooldown_seconds must be a non-negative number"
        if 'subjects' in fcfg:
            subjects = fcfg['subjects']
            if not isinstance(subjects, list) or not all(isinstance(s, str) and s for s in subjects):
                return False, f"features.{name}.subjects must be a list of names"

    # Validate web settings
    web = config.get('web', {}) or {}
    if 'port' in web and (not isinstance(web['port'], int) or not (0 < web['port'] < 65536)):
        return False, "web.port must be a valid TCP port"

    # Validate log settings
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    if config['log_level'] not in valid_log_levels:
        return False, f"log_level must be one of: {', '.join(valid_log_levels)}"

    return True, None


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='GuardianEye - Campus Safety Dashboard')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--host', type=str, default=None,
                        help='Override web.host')
    parser.add_argument('--port', type=int, default=None,
                        help='Override web.port')
    parser.add_argument('--no-camera', action='store_true',
                        help='Do not start the camera at boot')
    args = parser.parse_args()

    # GEMINI_API_KEY and friends may live in a local .env file
    load_dotenv()

    # Load configuration
    raw_config = load_config(args.config)

    # Validate configuration
    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    # Setup logging
    setup_logging(raw_config['log_path'], raw_config['log_level'])

    config = Config.from_dict(raw_config)
    host = args.host or config.web.host
    port = args.port or config.web.port

    logging.info("Starting GuardianEye")

    ctx = create_context_from_config(config)
    try:
        if not args.no_camera:
            try:
                ctx.device.start()
            except DeviceUnavailable as e:
                # The dashboard can retry from /api/camera/start
                logging.error(f"Camera unavailable at startup: {e}")

        web_state.set_context(ctx)

        logging.info(f"Web interface starting on {host}:{port}")
        uvicorn.run(
            create_app(),
            host=host,
            port=port,
            log_level=config.log_level.lower(),
        )
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        ctx.close()
        logging.info("GuardianEye stopped")


if __name__ == "__main__":
    main()
