"""
Position fix model (source-format, unnormalized).

Location providers report fixes in this structure before the sampling step
normalizes speed and derives distance.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PositionFix:
    """One reported device position and speed reading."""

    latitude: float   # degrees, WGS84
    longitude: float  # degrees, WGS84

    # Instantaneous speed in m/s. Providers use negative values for "unknown".
    speed_mps: float = -1.0

    valid: bool = True
    timestamp: Optional[float] = None  # provider time, epoch seconds
