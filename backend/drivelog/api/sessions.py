"""
API routes for the archive of persisted sessions.
"""

from fastapi import APIRouter, HTTPException

from drivelog.api.schemas import (
    ExportRequest,
    ExportResponse,
    SamplePointResponse,
    SessionResponse,
    SessionSummaryResponse,
)
from drivelog.errors import InvalidSessionRef, PersistenceFailure, SessionNotFound
from drivelog.services.runtime import get_runtime


router = APIRouter(prefix="/sessions", tags=["sessions"])


def _raise_for_ref_error(e: Exception) -> None:
    if isinstance(e, InvalidSessionRef):
        raise HTTPException(status_code=400, detail=str(e))
    if isinstance(e, SessionNotFound):
        raise HTTPException(status_code=404, detail=str(e))
    raise HTTPException(status_code=500, detail=str(e))


@router.get("", response_model=list[SessionSummaryResponse])
async def list_sessions():
    """
    List all persisted sessions.

    Returns summaries sorted by finalize time (newest first).
    """
    summaries = get_runtime().store.list_sessions()

    return [
        SessionSummaryResponse(
            ref=s.ref,
            session_id=s.session_id,
            session_start=s.session_start,
            session_end=s.session_end,
            sample_count=s.sample_count,
            total_distance_m=s.total_distance_m,
            tyre_type=s.tyre_type,
            driver_name=s.driver_name,
        )
        for s in summaries
    ]


@router.post("/export", response_model=ExportResponse)
async def export_sessions(request: ExportRequest):
    """Resolve selected sessions to file paths for sharing."""
    try:
        paths = get_runtime().store.export_refs(request.refs)
    except (InvalidSessionRef, SessionNotFound) as e:
        _raise_for_ref_error(e)

    return ExportResponse(paths=[str(p) for p in paths])


@router.get("/{ref}", response_model=SessionResponse)
async def get_session(ref: str):
    """Get the full record of one persisted session."""
    try:
        session = get_runtime().store.load_session(ref)
    except (InvalidSessionRef, SessionNotFound, PersistenceFailure) as e:
        _raise_for_ref_error(e)

    return SessionResponse(
        ref=ref,
        session_id=session.session_id,
        session_start=session.session_start,
        session_end=session.session_end,
        data=[SamplePointResponse(**p.to_dict()) for p in session.data],
        tyre_type=session.tyre_type.value if session.tyre_type else None,
        driver_name=session.driver_name,
    )


@router.delete("/{ref}", status_code=204)
async def delete_session(ref: str):
    """Delete one persisted session."""
    try:
        get_runtime().store.delete(ref)
    except (InvalidSessionRef, SessionNotFound) as e:
        _raise_for_ref_error(e)
