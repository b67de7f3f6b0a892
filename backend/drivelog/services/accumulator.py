"""
Metric accumulator - incremental per-tick telemetry computation.

Turns each position fix into a sample point: normalizes speed, adds the
geodesic step to the running distance and maintains the rolling speed
window that feeds the live chart.
"""

import logging
import math
from collections import deque
from typing import Callable, Deque, Optional

from drivelog.models.fix import PositionFix
from drivelog.models.session import (
    ROLLING_WINDOW_CAPACITY,
    LiveTelemetry,
    SamplePoint,
    SpeedPoint,
)
from drivelog.utils.coordinates import haversine_distance


logger = logging.getLogger(__name__)

MPS_TO_KMH = 3.6


def normalize_speed(speed_mps: float) -> float:
    """Providers report negative (or non-finite) speed when it is unknown."""
    if speed_mps is None or not math.isfinite(speed_mps) or speed_mps < 0:
        return 0.0
    return float(speed_mps)


class MetricAccumulator:
    """
    Per-session running state for the sampling step.

    State is reset at the start of each session; between resets it only moves
    forward: the index grows by one per accepted fix and the distance never
    decreases.
    """

    def __init__(
        self,
        window_capacity: int = ROLLING_WINDOW_CAPACITY,
        on_update: Optional[Callable[[LiveTelemetry], None]] = None,
    ):
        self._window_capacity = window_capacity
        self._on_update = on_update
        self._window: Deque[SpeedPoint] = deque(maxlen=window_capacity)
        self._last_fix: Optional[PositionFix] = None
        self._total_distance_m = 0.0
        self._current_speed_kmh = 0.0
        self._next_index = 0

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def total_distance_m(self) -> float:
        return self._total_distance_m

    @property
    def last_fix(self) -> Optional[PositionFix]:
        return self._last_fix

    def reset(self, publish: bool = False) -> None:
        """Clear all accumulated state, optionally publishing the cleared values."""
        self._window.clear()
        self._last_fix = None
        self._total_distance_m = 0.0
        self._current_speed_kmh = 0.0
        self._next_index = 0
        if publish:
            self.publish()

    def live(self) -> LiveTelemetry:
        return LiveTelemetry(
            current_speed_kmh=self._current_speed_kmh,
            total_distance_m=self._total_distance_m,
            rolling_window=tuple(self._window),
        )

    def sample(self, fix: Optional[PositionFix], now: float) -> Optional[SamplePoint]:
        """
        Run one sampling step.

        Returns the new sample point, or None when no usable fix is available.
        A skipped tick leaves every counter untouched. Nothing is published
        here; the caller records the point first and then calls publish().
        """
        if fix is None or not fix.valid:
            logger.debug("No position fix available, skipping tick")
            return None
        if not (math.isfinite(fix.latitude) and math.isfinite(fix.longitude)):
            logger.warning(f"Discarding fix with non-finite coordinates: {fix.latitude}, {fix.longitude}")
            return None

        speed = normalize_speed(fix.speed_mps)
        speed_kmh = speed * MPS_TO_KMH

        if self._last_fix is not None:
            step = haversine_distance(
                self._last_fix.latitude, self._last_fix.longitude,
                fix.latitude, fix.longitude,
            )
            self._total_distance_m += step
        self._last_fix = fix

        point = SamplePoint(
            index=self._next_index,
            timestamp=now,
            longitude=fix.longitude,
            latitude=fix.latitude,
            speed=speed,
            distance=self._total_distance_m,
        )
        self._next_index += 1

        # deque(maxlen) drops the oldest entry once full
        self._window.append(SpeedPoint(time=now, speed_kmh=speed_kmh))
        self._current_speed_kmh = speed_kmh
        return point

    def publish(self) -> None:
        """Send the current live values to the update callback."""
        if self._on_update is None:
            return
        try:
            self._on_update(self.live())
        except Exception as e:
            logger.error(f"Live telemetry listener failed: {e}")
