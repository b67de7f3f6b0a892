"""
API schemas (Pydantic models) for request/response validation.
"""

from typing import Optional

from pydantic import BaseModel, Field

from drivelog.models.session import TyreType


# ============================================================================
# Recording Schemas
# ============================================================================

class SpeedPointResponse(BaseModel):
    """Rolling window entry for the live chart."""
    time: float
    speed_kmh: float


class LiveTelemetryResponse(BaseModel):
    """Live values published after each sample."""
    state: str
    session_id: Optional[int] = None
    current_speed_kmh: float
    total_distance_m: float
    rolling_window: list[SpeedPointResponse]


class StartResponse(BaseModel):
    """Result of starting a recording."""
    session_id: int
    session_start: float
    tyre_type: Optional[str] = None
    driver_name: Optional[str] = None


class StopResponse(BaseModel):
    """Result of stopping a recording."""
    state: str
    ref: str
    path: str


class RecorderStatusResponse(BaseModel):
    """Status channel event."""
    kind: str
    message: str
    at: float


class AuthorizationRequest(BaseModel):
    """Location authorization status reported by the host."""
    status: str = Field(pattern="^(not_determined|authorized|denied|restricted)$")


# ============================================================================
# Position Schemas
# ============================================================================

class PositionFixRequest(BaseModel):
    """A position fix pushed by the location provider."""
    latitude: float = Field(ge=-90.0, le=90.0, allow_inf_nan=False)
    longitude: float = Field(ge=-180.0, le=180.0, allow_inf_nan=False)
    speed_mps: float = Field(default=-1.0, allow_inf_nan=False)  # negative means unknown
    valid: bool = True
    timestamp: Optional[float] = Field(default=None, allow_inf_nan=False)


# ============================================================================
# Preferences Schemas
# ============================================================================

class PreferencesResponse(BaseModel):
    """Current user preferences."""
    tyre_type: Optional[TyreType] = None
    driver_name: Optional[str] = None


class PreferencesUpdateRequest(BaseModel):
    """Partial preferences update; omitted fields are left unchanged."""
    tyre_type: Optional[TyreType] = None
    driver_name: Optional[str] = None


# ============================================================================
# Session Archive Schemas
# ============================================================================

class SessionSummaryResponse(BaseModel):
    """Summary of a persisted session for listing."""
    ref: str
    session_id: int
    session_start: float
    session_end: Optional[float] = None
    sample_count: int
    total_distance_m: float
    tyre_type: Optional[str] = None
    driver_name: Optional[str] = None


class SamplePointResponse(BaseModel):
    """One sample point, in persisted field order."""
    index: int
    timestamp: float
    longitude: float
    latitude: float
    speed: float
    distance: float


class SessionResponse(BaseModel):
    """Full persisted session record."""
    ref: str
    session_id: int
    session_start: float
    session_end: Optional[float] = None
    data: list[SamplePointResponse]
    tyre_type: Optional[str] = None
    driver_name: Optional[str] = None


class ExportRequest(BaseModel):
    """Sessions selected for sharing."""
    refs: list[str] = Field(min_length=1)


class ExportResponse(BaseModel):
    """Resolved file paths for the selected sessions."""
    paths: list[str]
