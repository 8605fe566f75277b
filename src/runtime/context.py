from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from camera.base import CaptureDevice
from camera.camera import create_device_from_config
from classifiers import create_classifier, create_responders
from classifiers.gemini import GeminiClient
from detection.policies import AttendancePolicy, EmergencyPolicy, MaskPolicy, UniformPolicy
from detection.timer import RepeatingTimer
from export.spreadsheet import SpreadsheetExporter
from models.config import Config

from .alarm import LoggingAlarm
from .assistant import Assistant
from .features import AttendanceFeature, EmergencyFeature, Feature, LoggedFeature, UniformFeature
from .presence import PresenceTracker


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: Config
    device: CaptureDevice
    exporter: SpreadsheetExporter
    assistant: Assistant
    alarm: LoggingAlarm
    presence: PresenceTracker
    features: Dict[str, Feature] = field(default_factory=dict)

    def feature(self, name: str) -> Feature:
        """Look up a loop-driven feature; KeyError if unknown or disabled."""
        return self.features[name]

    def logged_feature(self, name: str) -> LoggedFeature:
        if name == self.presence.name:
            return self.presence
        return self.feature(name)

    def all_features(self) -> Dict[str, LoggedFeature]:
        out: Dict[str, LoggedFeature] = dict(self.features)
        out[self.presence.name] = self.presence
        return out

    def close(self) -> None:
        """Stop every detection loop, then release the camera."""
        for feature in self.features.values():
            try:
                feature.close()
            except Exception as e:
                logging.warning(f"Error stopping feature {feature.name}: {e}")
        self.device.stop()
        logging.info("Runtime closed")


def create_context_from_config(
    config: Config,
    device: Optional[CaptureDevice] = None,
    client: Optional[GeminiClient] = None,
    timer_factory: Callable[..., Any] = RepeatingTimer,
    clock: Callable[[], datetime] = datetime.now,
) -> RuntimeContext:
    """Wire device, classifiers, policies and features from a typed Config."""
    device = device or create_device_from_config(config.camera.to_dict())
    exporter = SpreadsheetExporter(config.export.output_dir)
    capture_dir = config.export.capture_dir

    if config.classifier.backend == "gemini" and client is None:
        client = GeminiClient(config.classifier.gemini)
    rng = random.Random(config.classifier.seed)
    help_responder, summary_responder = create_responders(config.classifier, client=client)
    assistant = Assistant(help_responder, summary_responder)
    alarm = LoggingAlarm()

    def classifier_for(name: str):
        return create_classifier(name, config.classifier, rng=rng, client=client)

    def build(name: str) -> Feature:
        cfg = config.feature(name)
        common = dict(timer_factory=timer_factory, clock=clock)
        if name == "uniform":
            return UniformFeature(cfg, device, UniformPolicy(classifier_for(name), capture_dir), exporter, **common)
        if name == "mask":
            return Feature(cfg, device, MaskPolicy(classifier_for(name), capture_dir), exporter, **common)
        if name == "emergency":
            policy = EmergencyPolicy(
                classifier_for(name),
                alarm=alarm,
                summarizer=assistant.summarize_emergency,
                cooldown_seconds=cfg.cooldown_seconds,
                capture_dir=capture_dir,
            )
            return EmergencyFeature(cfg, device, policy, exporter, **common)
        if name == "attendance":
            return AttendanceFeature(cfg, device, AttendancePolicy(classifier_for(name), capture_dir), exporter, **common)
        raise ValueError(f"Unknown feature: {name}")

    features: Dict[str, Feature] = {}
    for name in ("uniform", "mask", "emergency", "attendance"):
        if config.feature(name).enabled:
            features[name] = build(name)
        else:
            logging.info(f"Feature {name} disabled by config")

    presence_cfg = config.feature("presence")
    presence = PresenceTracker(exporter, auto_export=presence_cfg.auto_export, clock=clock)

    logging.info(
        f"Runtime ready: features={list(features)} classifier={config.classifier.backend} "
        f"camera={config.camera.backend}"
    )
    return RuntimeContext(
        config=config,
        device=device,
        exporter=exporter,
        assistant=assistant,
        alarm=alarm,
        presence=presence,
        features=features,
    )
