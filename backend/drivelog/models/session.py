"""
Session data model.

A session is created empty at start of recording, grows by appending sample
points while active, and is sealed exactly once when recording stops. The
serialized field order is a compatibility contract for downstream readers:

- session keys: session_id, session_start, session_end, data, tyreType, driverName
- sample keys:  index, timestamp, longitude, latitude, speed, distance
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from drivelog.errors import SessionAlreadySealed


ROLLING_WINDOW_CAPACITY = 60


class TyreType(Enum):
    """Tyre fitted to the vehicle for a session."""

    WINTER = "Winter"
    SUMMER = "Summer"
    ALL_SEASON = "All Season"


@dataclass(frozen=True)
class SamplePoint:
    """One persisted telemetry record within a session."""

    index: int
    timestamp: float   # epoch seconds
    longitude: float
    latitude: float
    speed: float       # m/s, >= 0
    distance: float    # cumulative metres since session start

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "timestamp": self.timestamp,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "speed": self.speed,
            "distance": self.distance,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SamplePoint":
        return cls(
            index=int(payload["index"]),
            timestamp=float(payload["timestamp"]),
            longitude=float(payload["longitude"]),
            latitude=float(payload["latitude"]),
            speed=float(payload["speed"]),
            distance=float(payload["distance"]),
        )


@dataclass(frozen=True)
class SpeedPoint:
    """Rolling window entry for the live speed chart. Never persisted."""

    time: float
    speed_kmh: float


@dataclass(frozen=True)
class LiveTelemetry:
    """Snapshot of the values published to the display after each sample."""

    current_speed_kmh: float = 0.0
    total_distance_m: float = 0.0
    rolling_window: tuple[SpeedPoint, ...] = ()


@dataclass
class Session:
    """One complete recording from start to stop."""

    session_id: int
    session_start: float
    session_end: Optional[float] = None
    data: list[SamplePoint] = field(default_factory=list)
    tyre_type: Optional[TyreType] = None
    driver_name: Optional[str] = None

    @property
    def is_sealed(self) -> bool:
        return self.session_end is not None

    @property
    def total_distance_m(self) -> float:
        return self.data[-1].distance if self.data else 0.0

    @property
    def duration_s(self) -> float:
        if self.session_end is None:
            return 0.0
        return self.session_end - self.session_start

    def append(self, point: SamplePoint) -> None:
        """Append a sample; indices must continue the sequence without gaps."""
        if self.is_sealed:
            raise SessionAlreadySealed(f"Session {self.session_id} is finalized")
        expected = len(self.data)
        if point.index != expected:
            raise ValueError(
                f"Sample index {point.index} does not follow {expected - 1} "
                f"in session {self.session_id}"
            )
        self.data.append(point)

    def seal(self, end_time: float) -> None:
        if self.is_sealed:
            raise SessionAlreadySealed(f"Session {self.session_id} is already finalized")
        self.session_end = end_time

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "session_id": self.session_id,
            "session_start": self.session_start,
        }
        if self.session_end is not None:
            payload["session_end"] = self.session_end
        payload["data"] = [p.to_dict() for p in self.data]
        if self.tyre_type is not None:
            payload["tyreType"] = self.tyre_type.value
        if self.driver_name is not None:
            payload["driverName"] = self.driver_name
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Session":
        tyre = payload.get("tyreType")
        end = payload.get("session_end")
        return cls(
            session_id=int(payload["session_id"]),
            session_start=float(payload["session_start"]),
            session_end=float(end) if end is not None else None,
            data=[SamplePoint.from_dict(p) for p in payload.get("data", [])],
            tyre_type=TyreType(tyre) if tyre is not None else None,
            driver_name=payload.get("driverName"),
        )


@dataclass
class SessionSummary:
    """Lightweight summary of a persisted session for listing."""

    ref: str
    session_id: int
    session_start: float
    session_end: Optional[float]
    sample_count: int
    total_distance_m: float
    tyre_type: Optional[str]
    driver_name: Optional[str]

    @classmethod
    def from_session(cls, ref: str, session: Session) -> "SessionSummary":
        return cls(
            ref=ref,
            session_id=session.session_id,
            session_start=session.session_start,
            session_end=session.session_end,
            sample_count=len(session.data),
            total_distance_m=session.total_distance_m,
            tyre_type=session.tyre_type.value if session.tyre_type else None,
            driver_name=session.driver_name,
        )
