"""
Sample drive generator for demos and testing.

Produces realistic-looking 1 Hz position fixes along synthetic routes, ready
to feed a ReplayPositionSource.
"""

from typing import Optional

import numpy as np

from drivelog.models.fix import PositionFix
from drivelog.utils.coordinates import segment_distances


def _local_to_fixes(
    x_local: np.ndarray,
    y_local: np.ndarray,
    center_lat: float,
    center_lon: float,
    sample_rate_hz: float,
    start_time: float,
) -> list[PositionFix]:
    # Approximate conversion at this latitude
    meters_per_deg_lat = 111000
    meters_per_deg_lon = 111000 * np.cos(np.radians(center_lat))

    lat = center_lat + y_local / meters_per_deg_lat
    lon = center_lon + x_local / meters_per_deg_lon

    # Speed from the geodesic step into each point
    dt = 1.0 / sample_rate_hz
    steps = segment_distances(lat, lon)
    speed_ms = np.concatenate(([steps[0] if len(steps) else 0.0], steps)) / dt

    return [
        PositionFix(
            latitude=float(lat[i]),
            longitude=float(lon[i]),
            speed_mps=float(speed_ms[i]),
            timestamp=start_time + i * dt,
        )
        for i in range(len(lat))
    ]


def generate_figure_eight_drive(
    duration_s: float = 120.0,
    sample_rate_hz: float = 1.0,
    center_lat: float = 32.9857,
    center_lon: float = -89.7898,
    loop_radius_m: float = 150.0,
    start_time: float = 0.0,
    noise_m: float = 0.0,
    seed: Optional[int] = None,
) -> list[PositionFix]:
    """
    Generate fixes along a figure-8 shaped drive.

    Two complete loops over the duration (lemniscate of Gerono).
    """
    n_samples = int(duration_s * sample_rate_hz)
    timestamps = np.arange(n_samples) / sample_rate_hz

    t_param = timestamps / duration_s * 4 * np.pi

    x_local = loop_radius_m * np.cos(t_param)
    y_local = loop_radius_m * np.sin(t_param) * np.cos(t_param)

    if noise_m > 0:
        rng = np.random.default_rng(seed)
        x_local = x_local + rng.normal(0, noise_m, n_samples)
        y_local = y_local + rng.normal(0, noise_m, n_samples)

    return _local_to_fixes(x_local, y_local, center_lat, center_lon, sample_rate_hz, start_time)


def generate_straight_drive(
    n_samples: int = 60,
    speed_mps: float = 15.0,
    sample_rate_hz: float = 1.0,
    center_lat: float = 32.9857,
    center_lon: float = -89.7898,
    heading_deg: float = 0.0,
    start_time: float = 0.0,
) -> list[PositionFix]:
    """
    Generate fixes along a straight line at constant speed.

    heading_deg is a compass heading (0 = north, 90 = east).
    """
    dt = 1.0 / sample_rate_hz
    along = np.arange(n_samples) * speed_mps * dt
    heading = np.radians(heading_deg)

    x_local = along * np.sin(heading)
    y_local = along * np.cos(heading)

    return _local_to_fixes(x_local, y_local, center_lat, center_lon, sample_rate_hz, start_time)


def with_dropouts(fixes: list[PositionFix], every: int) -> list[Optional[PositionFix]]:
    """Insert a missing fix (None) after every `every` fixes."""
    out: list[Optional[PositionFix]] = []
    for i, fix in enumerate(fixes, start=1):
        out.append(fix)
        if every > 0 and i % every == 0:
            out.append(None)
    return out
