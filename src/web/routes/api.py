from __future__ import annotations

import os
import time
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from detection.policies import Decision
from errors import (
    CaptureUnavailable,
    DeviceUnavailable,
    FeatureBusy,
    GuardianEyeError,
    RegistrationRequired,
)

from ..api_models import (
    FeatureSummary,
    HealthResponse,
    HelpRequest,
    HelpResponse,
    MarkAttendanceRequest,
    PresenceEnterRequest,
    RegisterStudentRequest,
    SimulateEmergencyRequest,
    SimulateEmergencyResponse,
    StartResponse,
)
from ..services.health_service import HealthService
from ..state import state

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _http_error(e: Exception) -> HTTPException:
    """Map domain errors onto HTTP status codes."""
    if isinstance(e, (DeviceUnavailable, RegistrationRequired, FeatureBusy)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, CaptureUnavailable):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _context():
    ctx = state.get_context()
    if ctx is None:
        raise HTTPException(status_code=503, detail="Runtime not initialised")
    return ctx


def _feature(name: str):
    try:
        return _context().feature(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown detection feature: {name}")


def _logged_feature(name: str):
    try:
        return _context().logged_feature(name)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown feature: {name}")


@router.get("/health", response_model=HealthResponse)
def health():
    ctx = _context()
    cfg = ctx.config.to_dict()
    now = time.time()
    start_time = state.get_system_stats_copy().get("start_time") or None

    active = [name for name, f in ctx.features.items() if f.is_active]
    export_dir = ctx.config.export.output_dir
    disk = HealthService.disk_usage(export_dir if os.path.isdir(export_dir) else ".")
    camera_active = ctx.device.is_active
    # Loops that are running without a camera skip every tick
    level = "degraded" if active and not camera_active else "running"

    return HealthResponse(
        status=level,
        camera_active=camera_active,
        classifier_backend=ctx.config.classifier.backend,
        active_features=active,
        uptime_seconds=int(now - start_time) if start_time else None,
        disk=disk,
        health=HealthService(cfg=cfg).get_health_summary(),
        timestamp=now,
    )


@router.get("/features", response_model=List[FeatureSummary])
def list_features():
    ctx = _context()
    out = []
    for name, feature in ctx.all_features().items():
        status = feature.status()
        out.append(FeatureSummary(
            name=name,
            title=status.get("title", ""),
            active=bool(status.get("active", False)),
            cadence_ms=status.get("cadence_ms"),
            log_count=status.get("log_count", 0),
        ))
    return out


@router.post("/camera/start")
def camera_start():
    ctx = _context()
    try:
        ctx.device.start()
    except GuardianEyeError as e:
        raise _http_error(e)
    return {"active": ctx.device.is_active}


@router.post("/camera/stop")
def camera_stop():
    ctx = _context()
    ctx.device.stop()
    return {"active": ctx.device.is_active}


@router.get("/camera/snapshot")
def camera_snapshot():
    ctx = _context()
    if not ctx.device.is_active:
        raise HTTPException(status_code=409, detail="Camera is not active")
    snapshot = ctx.device.capture()
    if snapshot is None:
        raise HTTPException(status_code=503, detail="No frame available")
    return Response(content=snapshot.jpeg, media_type=snapshot.mime_type)


@router.post("/features/{name}/start", response_model=StartResponse)
def feature_start(name: str):
    feature = _feature(name)
    try:
        started = feature.start()
    except (GuardianEyeError, ValueError) as e:
        raise _http_error(e)
    return StartResponse(started=started, cadence_ms=feature.config.cadence_ms)


@router.post("/features/{name}/stop")
def feature_stop(name: str):
    feature = _feature(name)
    feature.stop()
    return {"active": feature.is_active}


@router.get("/features/{name}/status")
def feature_status(name: str) -> Dict[str, Any]:
    return _logged_feature(name).status()


@router.get("/features/{name}/logs")
def feature_logs(name: str, newest_first: bool = True):
    feature = _logged_feature(name)
    return {
        "name": name,
        "columns": [c.header for c in feature.columns],
        "rows": feature.rows(newest_first=newest_first),
    }


@router.get("/features/{name}/export")
def feature_export(name: str):
    feature = _logged_feature(name)
    content = feature.render_export()
    if content is None:
        return Response(status_code=204)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{feature.file_base_name}.xlsx"'},
    )


@router.post("/features/{name}/export")
def feature_export_to_disk(name: str):
    feature = _logged_feature(name)
    path = feature.export()
    if path is None:
        return Response(status_code=204)
    return {"path": str(path)}


@router.post("/uniform/register")
def uniform_register():
    feature = _feature("uniform")
    try:
        reference = feature.register_uniform()
    except (GuardianEyeError, ValueError) as e:
        raise _http_error(e)
    return {"registered": True, "image": reference.data_uri}


@router.post("/attendance/students")
def attendance_register(req: RegisterStudentRequest):
    feature = _feature("attendance")
    try:
        student = feature.register_student(req.name, req.usn)
    except (GuardianEyeError, ValueError) as e:
        raise _http_error(e)
    return student.to_dict(include_image=True)


@router.get("/attendance/students")
def attendance_students():
    feature = _feature("attendance")
    return [s.to_dict() for s in feature.students]


@router.post("/attendance/mark")
def attendance_mark(req: MarkAttendanceRequest):
    feature = _feature("attendance")
    try:
        event = feature.mark_attendance(req.subject)
    except (GuardianEyeError, ValueError) as e:
        raise _http_error(e)
    return event.to_row(feature.columns)


@router.post("/emergency/simulate", response_model=SimulateEmergencyResponse)
def emergency_simulate(req: SimulateEmergencyRequest):
    feature = _feature("emergency")
    try:
        outcome = feature.simulate(req.emergency_type)
    except (GuardianEyeError, ValueError) as e:
        raise _http_error(e)
    alert = feature.active_alert()
    return SimulateEmergencyResponse(
        alerted=outcome.decision is Decision.ALERT,
        decision=outcome.decision.value,
        emergency_type=req.emergency_type,
        treatment=alert["treatment"] if alert else None,
        summary=outcome.event.derived_text if outcome.event else None,
    )


@router.post("/presence/enter")
def presence_enter(req: Optional[PresenceEnterRequest] = None):
    presence = _context().presence
    started = presence.enter(req.subject if req else None)
    return {"started": started, "tracking": presence.is_tracking}


@router.post("/presence/leave")
def presence_leave():
    presence = _context().presence
    event = presence.leave()
    if event is None:
        return {"logged": False}
    return {"logged": True, "row": event.to_row(presence.columns)}


@router.get("/presence/status")
def presence_status():
    return _context().presence.status()


@router.post("/help", response_model=HelpResponse)
def contextual_help(req: HelpRequest):
    try:
        text = _context().assistant.contextual_help(req.feature_name)
    except ValueError as e:
        raise _http_error(e)
    return HelpResponse(help_text=text)
