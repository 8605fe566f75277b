"""
DetectionEvent and DetectionResult models.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M:%S"


@dataclass(frozen=True)
class Student:
    """
    An enrolled student on the attendance roster.

    Attributes:
        id: Roster id (``S<epoch ms>``).
        name: Display name.
        usn: University seat number.
        semester: Semester label shown in the roster.
        face_image: Data URI of the face captured at registration.
    """
    id: str
    name: str
    usn: str
    semester: str
    face_image: str

    def to_dict(self, include_image: bool = False) -> Dict[str, Any]:
        d = {"id": self.id, "name": self.name, "usn": self.usn, "semester": self.semester}
        if include_image:
            d["face_image"] = self.face_image
        return d


@dataclass(frozen=True)
class DetectionResult:
    """
    Transient output of one classification.

    ``label`` is None for the "no detection" sentinel.
    """
    label: Optional[str]
    subject: Optional[Student] = None


@dataclass(frozen=True)
class DetectionEvent:
    """
    One entry in a feature's log.

    Attributes:
        timestamp: When the event was recorded (time out, for presence).
        kind: Resolved label, e.g. "Worn" or "Chest Pain".
        subject_label: Who the event is about (student name, if known).
        derived_text: Generated or computed text (treatment summary, duration, course).
        subject_id: Secondary subject identifier (USN).
        image_ref: File name of the capture that produced the event.
        started_at: Start of the interval the event covers (presence time in).
    """
    timestamp: datetime
    kind: str
    subject_label: Optional[str] = None
    derived_text: Optional[str] = None
    subject_id: Optional[str] = None
    image_ref: Optional[str] = None
    started_at: Optional[datetime] = None

    @property
    def date(self) -> str:
        return self.timestamp.strftime(DATE_FORMAT)

    @property
    def time(self) -> str:
        return self.timestamp.strftime(TIME_FORMAT)

    @property
    def started_time(self) -> Optional[str]:
        return self.started_at.strftime(TIME_FORMAT) if self.started_at else None

    def value(self, field_name: str) -> Any:
        return getattr(self, field_name)

    def to_row(self, columns: Iterable["Column"]) -> Dict[str, Any]:
        """Flatten to an ordered ``{header: value}`` dict for tables and export."""
        return {c.header: c.value_of(self) for c in columns}

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "kind": self.kind,
            "subject_label": self.subject_label,
            "derived_text": self.derived_text,
            "subject_id": self.subject_id,
            "image_ref": self.image_ref,
            "started_at": self.started_at.isoformat() if self.started_at else None,
        }


@dataclass(frozen=True)
class Column:
    """Maps a spreadsheet header onto a DetectionEvent attribute."""
    header: str
    field: str

    def value_of(self, event: DetectionEvent) -> Any:
        value = event.value(self.field)
        return "" if value is None else value
