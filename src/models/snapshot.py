"""
Snapshot model for an encoded camera frame.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Snapshot:
    """
    A single captured frame, already encoded.

    Attributes:
        jpeg: Encoded image bytes.
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was captured.
        mime_type: MIME type of ``jpeg`` (always JPEG for camera captures).
    """
    jpeg: bytes
    width: int
    height: int
    timestamp: float
    mime_type: str = "image/jpeg"

    @property
    def base64(self) -> str:
        return base64.b64encode(self.jpeg).decode("ascii")

    @property
    def data_uri(self) -> str:
        """Encoded as ``data:<mimetype>;base64,<data>`` for browser display."""
        return f"data:{self.mime_type};base64,{self.base64}"

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @classmethod
    def from_data_uri(cls, data_uri: str, timestamp: float = 0.0) -> "Snapshot":
        header, _, payload = data_uri.partition(",")
        if not header.startswith("data:") or ";base64" not in header:
            raise ValueError("Expected a base64 data URI")
        mime_type = header[len("data:"):].split(";", 1)[0] or "image/jpeg"
        return cls(
            jpeg=base64.b64decode(payload),
            width=0,
            height=0,
            timestamp=timestamp,
            mime_type=mime_type,
        )
