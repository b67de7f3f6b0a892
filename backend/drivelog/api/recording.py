"""
API routes for recording control, the live feed, position input and preferences.
"""

from fastapi import APIRouter, HTTPException

from drivelog.api.schemas import (
    AuthorizationRequest,
    LiveTelemetryResponse,
    PositionFixRequest,
    PreferencesResponse,
    PreferencesUpdateRequest,
    RecorderStatusResponse,
    SpeedPointResponse,
    StartResponse,
    StopResponse,
)
from drivelog.models.fix import PositionFix
from drivelog.services.recorder import AuthorizationStatus, RecordingController
from drivelog.services.runtime import get_runtime


router = APIRouter(prefix="/recording", tags=["recording"])


def _build_live_response(recorder: RecordingController) -> LiveTelemetryResponse:
    live = recorder.live
    return LiveTelemetryResponse(
        state=recorder.state.value,
        session_id=recorder.active_session_id,
        current_speed_kmh=live.current_speed_kmh,
        total_distance_m=live.total_distance_m,
        rolling_window=[
            SpeedPointResponse(time=p.time, speed_kmh=p.speed_kmh)
            for p in live.rolling_window
        ],
    )


@router.post("/start", response_model=StartResponse)
async def start_recording():
    """
    Start a new recording session.

    Tyre type and driver name are captured from the preferences at this point.
    """
    recorder = get_runtime().recorder
    session = recorder.start()

    if session is None:
        raise HTTPException(status_code=409, detail="Already recording")

    return StartResponse(
        session_id=session.session_id,
        session_start=session.session_start,
        tyre_type=session.tyre_type.value if session.tyre_type else None,
        driver_name=session.driver_name,
    )


@router.post("/stop", response_model=StopResponse)
async def stop_recording():
    """
    Stop the active recording and persist it.

    If the save fails the recorder is still idle afterwards; the failure is
    returned as a 500 and also recorded on the status channel.
    """
    recorder = get_runtime().recorder

    if not recorder.is_recording:
        raise HTTPException(status_code=409, detail="Not recording")

    path = recorder.stop()
    if path is None:
        detail = str(recorder.last_error) if recorder.last_error else "Failed to save session"
        raise HTTPException(status_code=500, detail=detail)

    return StopResponse(state=recorder.state.value, ref=path.name, path=str(path))


@router.get("/live", response_model=LiveTelemetryResponse)
async def get_live_telemetry():
    """Current speed, total distance and rolling speed window."""
    return _build_live_response(get_runtime().recorder)


@router.post("/suspend", response_model=LiveTelemetryResponse)
async def suspend_recording():
    """Host moved to the background: pause ticks, keep the session open."""
    recorder = get_runtime().recorder
    recorder.suspend()
    return _build_live_response(recorder)


@router.post("/resume", response_model=LiveTelemetryResponse)
async def resume_recording():
    """Host became active again: resume ticks for an open session."""
    recorder = get_runtime().recorder
    recorder.resume()
    return _build_live_response(recorder)


@router.post("/authorization", response_model=list[RecorderStatusResponse])
async def update_authorization(request: AuthorizationRequest):
    """Report the location authorization status."""
    recorder = get_runtime().recorder
    recorder.update_authorization(AuthorizationStatus(request.status))
    return _build_status_list(recorder)


@router.get("/status", response_model=list[RecorderStatusResponse])
async def get_status():
    """Status channel history (permission problems, failed saves)."""
    return _build_status_list(get_runtime().recorder)


def _build_status_list(recorder: RecordingController) -> list[RecorderStatusResponse]:
    return [
        RecorderStatusResponse(kind=s.kind, message=s.message, at=s.at)
        for s in recorder.statuses
    ]


# ============================================================================
# Position Input Routes
# ============================================================================

position_router = APIRouter(prefix="/position", tags=["position"])


@position_router.post("", status_code=204)
async def push_position(request: PositionFixRequest):
    """Push the latest fix from the device location provider."""
    source = get_runtime().pushed_source

    if source is None:
        raise HTTPException(status_code=409, detail="Position source does not accept pushed fixes")

    source.push(PositionFix(
        latitude=request.latitude,
        longitude=request.longitude,
        speed_mps=request.speed_mps,
        valid=request.valid,
        timestamp=request.timestamp,
    ))


# ============================================================================
# Preferences Routes
# ============================================================================

preferences_router = APIRouter(prefix="/preferences", tags=["preferences"])


def _build_preferences_response() -> PreferencesResponse:
    prefs = get_runtime().preferences
    return PreferencesResponse(
        tyre_type=prefs.current_tyre_type(),
        driver_name=prefs.current_driver_name(),
    )


@preferences_router.get("", response_model=PreferencesResponse)
async def get_preferences():
    return _build_preferences_response()


@preferences_router.put("", response_model=PreferencesResponse)
async def update_preferences(request: PreferencesUpdateRequest):
    """
    Update tyre type and/or driver name.

    Takes effect from the next recording; an active session keeps the values
    it captured at start.
    """
    changes = request.model_dump(exclude_unset=True)
    get_runtime().preferences.update(**changes)
    return _build_preferences_response()
