"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

FEATURE_NAMES = ("uniform", "mask", "emergency", "attendance", "presence")

DEFAULT_CADENCE_MS = {
    "uniform": 3000,
    "mask": 2500,
    "emergency": 4000,
    "attendance": 5000,
}

DEFAULT_SUBJECTS = [
    "Machine Learning",
    "Cloud Computing",
    "Cyber Security",
    "Data Science",
    "Project Management",
]


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    jpeg_quality: int = 90
    max_retries: int = 3
    image_path: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [1280, 720]),
            jpeg_quality=d.get("jpeg_quality", 90),
            max_retries=d.get("max_retries", 3),
            image_path=d.get("image_path"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "jpeg_quality": self.jpeg_quality,
            "max_retries": self.max_retries,
        }
        if self.image_path is not None:
            d["image_path"] = self.image_path
        return d


@dataclass
class GeminiConfig:
    """Hosted generative model settings."""
    model_name: str = "gemini-2.0-flash"
    api_key_env: str = "GEMINI_API_KEY"
    timeout_seconds: float = 15.0
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeminiConfig":
        return cls(
            model_name=d.get("model_name", "gemini-2.0-flash"),
            api_key_env=d.get("api_key_env", "GEMINI_API_KEY"),
            timeout_seconds=float(d.get("timeout_seconds", 15.0)),
            base_url=d.get("base_url", "https://generativelanguage.googleapis.com/v1beta"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model_name": self.model_name,
            "api_key_env": self.api_key_env,
            "timeout_seconds": self.timeout_seconds,
            "base_url": self.base_url,
        }


@dataclass
class ClassifierConfig:
    """
    Classifier strategy selection.

    backend: "simulated" (seeded RNG), "scripted" (fixed label sequence per
    feature) or "gemini" (hosted model).
    """
    backend: str = "simulated"
    seed: Optional[int] = None
    script: Dict[str, List[Optional[str]]] = field(default_factory=dict)
    gemini: GeminiConfig = field(default_factory=GeminiConfig)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassifierConfig":
        return cls(
            backend=d.get("backend", "simulated"),
            seed=d.get("seed"),
            script=d.get("script") or {},
            gemini=GeminiConfig.from_dict(d.get("gemini") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "backend": self.backend,
            "seed": self.seed,
            "gemini": self.gemini.to_dict(),
        }
        if self.script:
            d["script"] = self.script
        return d


@dataclass
class FeatureConfig:
    """Per-feature settings. Unused keys are ignored by features that don't need them."""
    name: str
    enabled: bool = True
    cadence_ms: int = 3000
    auto_export: bool = False
    cooldown_seconds: float = 8.0
    subjects: List[str] = field(default_factory=lambda: list(DEFAULT_SUBJECTS))

    @classmethod
    def from_dict(cls, name: str, d: Dict[str, Any]) -> "FeatureConfig":
        return cls(
            name=name,
            enabled=d.get("enabled", True),
            cadence_ms=int(d.get("cadence_ms", DEFAULT_CADENCE_MS.get(name, 3000))),
            auto_export=d.get("auto_export", False),
            cooldown_seconds=float(d.get("cooldown_seconds", 8.0)),
            subjects=list(d.get("subjects") or DEFAULT_SUBJECTS),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "cadence_ms": self.cadence_ms,
            "auto_export": self.auto_export,
            "cooldown_seconds": self.cooldown_seconds,
            "subjects": self.subjects,
        }


@dataclass
class ExportConfig:
    """Spreadsheet export locations."""
    output_dir: str = "exports"
    capture_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExportConfig":
        return cls(
            output_dir=d.get("output_dir", "exports"),
            capture_dir=d.get("capture_dir"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"output_dir": self.output_dir, "capture_dir": self.capture_dir}


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(host=d.get("host", "0.0.0.0"), port=int(d.get("port", 5000)))

    def to_dict(self) -> Dict[str, Any]:
        return {"host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    features: Dict[str, FeatureConfig] = field(
        default_factory=lambda: {name: FeatureConfig(name=name) for name in FEATURE_NAMES}
    )
    export: ExportConfig = field(default_factory=ExportConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/guardianeye.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        features_dict = d.get("features") or {}
        features = {
            name: FeatureConfig.from_dict(name, features_dict.get(name) or {})
            for name in FEATURE_NAMES
        }
        return cls(
            camera=CameraConfig.from_dict(d.get("camera") or {}),
            classifier=ClassifierConfig.from_dict(d.get("classifier") or {}),
            features=features,
            export=ExportConfig.from_dict(d.get("export") or {}),
            web=WebConfig.from_dict(d.get("web") or {}),
            log_path=d.get("log_path", "logs/guardianeye.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def feature(self, name: str) -> FeatureConfig:
        return self.features.get(name) or FeatureConfig(name=name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or displaying)."""
        return {
            "camera": self.camera.to_dict(),
            "classifier": self.classifier.to_dict(),
            "features": {name: fc.to_dict() for name, fc in self.features.items()},
            "export": self.export.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
