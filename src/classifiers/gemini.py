"""
Hosted-model classifiers (Gemini REST API).

Every call is a single generateContent request with a JSON response schema.
The answer is validated against the flow's pydantic model. Any transport,
HTTP, or validation failure is raised as ClassificationError.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

import requests
from pydantic import BaseModel, ValidationError

from errors import ClassificationError
from models.config import GeminiConfig
from models.event import DetectionResult, Student
from models.labels import RecognitionStatus
from models.snapshot import Snapshot

from .base import Classifier, Responder
from .flows import (
    ANALYZE_EMERGENCY,
    ANALYZE_MASK,
    CHECK_UNIFORM,
    CONTEXTUAL_HELP,
    RECOGNIZE_STUDENT,
    SUMMARIZE_EMERGENCY,
    PromptFlow,
)


class GeminiClient:
    def __init__(self, config: GeminiConfig, api_key: Optional[str] = None, session: Optional[requests.Session] = None):
        self.config = config
        self.api_key = api_key if api_key is not None else os.getenv(config.api_key_env, "")
        self.session = session or requests.Session()
        model_name = config.model_name
        # Accept both "gemini-x" and "models/gemini-x"
        path_name = model_name if model_name.startswith("models/") else f"models/{model_name}"
        self.url = f"{config.base_url.rstrip('/')}/{path_name}:generateContent"
        if not self.api_key:
            logging.warning(f"Gemini API key not set (env {config.api_key_env}); requests will fail")

    def generate(self, flow: PromptFlow, images: Sequence[Snapshot] = (), **fields: Any) -> BaseModel:
        parts: List[Dict[str, Any]] = [{"text": flow.render(**fields)}]
        for image in images:
            parts.append({"inline_data": {"mime_type": image.mime_type, "data": image.base64}})

        payload = {
            "contents": [{"parts": parts}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": flow.response_schema,
            },
        }
        headers = {"Content-Type": "application/json", "x-goog-api-key": self.api_key}

        try:
            response = self.session.post(
                self.url, headers=headers, json=payload, timeout=self.config.timeout_seconds
            )
        except requests.RequestException as e:
            raise ClassificationError(f"{flow.name}: request failed: {e}") from e

        if response.status_code != 200:
            raise ClassificationError(f"{flow.name}: API error {response.status_code}: {response.text[:200]}")

        try:
            data = response.json()
            text = data["candidates"][0]["content"]["parts"][0]["text"]
            return flow.output_model.model_validate(json.loads(text))
        except (KeyError, IndexError, TypeError, ValueError, ValidationError) as e:
            raise ClassificationError(f"{flow.name}: unexpected response: {e}") from e


class GeminiEmergencyClassifier(Classifier):
    feature = "emergency"

    def __init__(self, client: GeminiClient):
        self.client = client

    def classify(self, image: Snapshot, **metadata: Any) -> DetectionResult:
        out = self.client.generate(ANALYZE_EMERGENCY, [image])
        return DetectionResult(label=out.emergency_type.value if out.emergency_type else None)


class GeminiMaskClassifier(Classifier):
    feature = "mask"

    def __init__(self, client: GeminiClient):
        self.client = client

    def classify(self, image: Snapshot, **metadata: Any) -> DetectionResult:
        out = self.client.generate(ANALYZE_MASK, [image])
        return DetectionResult(label=out.mask_status.value)


class GeminiUniformClassifier(Classifier):
    feature = "uniform"

    def __init__(self, client: GeminiClient):
        self.client = client

    def classify(self, image: Snapshot, reference: Optional[Snapshot] = None, **metadata: Any) -> DetectionResult:
        if reference is None:
            raise ClassificationError("checkUniform: no registered uniform to compare against")
        out = self.client.generate(CHECK_UNIFORM, [reference, image])
        return DetectionResult(label=out.uniform_status.value)


class GeminiAttendanceClassifier(Classifier):
    feature = "attendance"

    def __init__(self, client: GeminiClient):
        self.client = client

    def classify(self, image: Snapshot, roster: Sequence[Student] = (), **metadata: Any) -> DetectionResult:
        roster = list(roster)
        listing = "\n".join(f"{i + 1}. {s.name} (USN {s.usn})" for i, s in enumerate(roster))
        faces = [Snapshot.from_data_uri(s.face_image) for s in roster]
        out = self.client.generate(RECOGNIZE_STUDENT, [*faces, image], roster=listing)
        match = next((s for s in roster if out.usn and s.usn == out.usn), None)
        if match is None:
            return DetectionResult(label=RecognitionStatus.UNREGISTERED.value)
        return DetectionResult(label=RecognitionStatus.RECOGNIZED.value, subject=match)


class GeminiHelpResponder(Responder):
    def __init__(self, client: GeminiClient):
        self.client = client

    def respond(self, feature_name: str = "", **fields: Any) -> str:
        return self.client.generate(CONTEXTUAL_HELP, feature_name=feature_name).help_text


class GeminiSummaryResponder(Responder):
    def __init__(self, client: GeminiClient):
        self.client = client

    def respond(
        self,
        emergency_type: str = "",
        suggested_treatment: str = "",
        image: Optional[Snapshot] = None,
        date: str = "",
        time: str = "",
        **fields: Any,
    ) -> str:
        images = [image] if image is not None else []
        out = self.client.generate(
            SUMMARIZE_EMERGENCY,
            images,
            emergency_type=emergency_type,
            suggested_treatment=suggested_treatment,
            date=date,
            time=time,
        )
        return out.summary
