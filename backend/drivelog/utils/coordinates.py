"""
Geodesic distance utilities.

Distances are great-circle distances on a spherical Earth using the
haversine formula, which is accurate to well under a metre for the
1-second steps between consecutive fixes.
"""

import numpy as np
from numpy.typing import NDArray

EARTH_MEAN_RADIUS_M = 6371000.0  # Earth's mean radius in meters


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in meters
    """
    lat1_rad = np.radians(lat1)
    lat2_rad = np.radians(lat2)
    dlat = np.radians(lat2 - lat1)
    dlon = np.radians(lon2 - lon1)

    a = np.sin(dlat/2)**2 + np.cos(lat1_rad) * np.cos(lat2_rad) * np.sin(dlon/2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1-a))

    return float(EARTH_MEAN_RADIUS_M * c)


def segment_distances(
    lat: NDArray[np.float64],
    lon: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Great-circle length of each segment of a polyline.

    Args:
        lat: Latitude array in degrees
        lon: Longitude array in degrees

    Returns:
        Array of length len(lat) - 1 with segment lengths in meters
    """
    lat = np.asarray(lat, dtype=np.float64)
    lon = np.asarray(lon, dtype=np.float64)
    if len(lat) < 2:
        return np.zeros(0)

    lat_rad = np.radians(lat)
    dlat = np.diff(lat_rad)
    dlon = np.radians(np.diff(lon))

    a = np.sin(dlat/2)**2 + np.cos(lat_rad[:-1]) * np.cos(lat_rad[1:]) * np.sin(dlon/2)**2
    c = 2 * np.arctan2(np.sqrt(a), np.sqrt(1-a))

    return EARTH_MEAN_RADIUS_M * c


def cumulative_distance(
    lat: NDArray[np.float64],
    lon: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Cumulative distance along a polyline, starting at 0 for the first point.

    Args:
        lat: Latitude array in degrees
        lon: Longitude array in degrees

    Returns:
        Array of the same length as lat with running distance in meters
    """
    if len(lat) == 0:
        return np.zeros(0)
    return np.concatenate(([0.0], np.cumsum(segment_distances(lat, lon))))
