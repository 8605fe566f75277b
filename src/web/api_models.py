from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class FeatureSummary(BaseModel):
    name: str
    title: str
    active: bool = Field(False, description="True while the detection loop is running")
    cadence_ms: Optional[int] = Field(None, description="Detection cadence; None for presence")
    log_count: int = 0


class StartResponse(BaseModel):
    started: bool = Field(..., description="False if the loop was already active")
    cadence_ms: int


class RegisterStudentRequest(BaseModel):
    name: str
    usn: str


class MarkAttendanceRequest(BaseModel):
    subject: str


class SimulateEmergencyRequest(BaseModel):
    emergency_type: str = Field(..., description="Fall Detected | SOS Hand Sign | Chest Pain")


class SimulateEmergencyResponse(BaseModel):
    """
    Outcome of a simulated emergency.
    ``alerted`` is False when the cooldown window suppressed it.
    """
    alerted: bool
    decision: str
    emergency_type: str
    treatment: Optional[str] = None
    summary: Optional[str] = None


class PresenceEnterRequest(BaseModel):
    subject: Optional[str] = Field(None, description="Student name/USN; generated if omitted")


class HelpRequest(BaseModel):
    feature_name: str


class HelpResponse(BaseModel):
    help_text: str


class HealthResponse(BaseModel):
    status: str = Field(..., description="running|degraded")
    camera_active: bool
    classifier_backend: str
    active_features: List[str]
    uptime_seconds: Optional[int]
    disk: Dict[str, Optional[float]]
    health: Dict[str, object]
    timestamp: float
