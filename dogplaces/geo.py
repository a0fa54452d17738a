"""Geospatial helpers."""
from __future__ import annotations

import math
from typing import Dict, Iterator

from .models import Point

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push a a hair past 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a: Point, b: Point) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def in_bounds(lat: float, lng: float, bounds: Dict[str, float]) -> bool:
    return (
        bounds["lat_min"] <= lat <= bounds["lat_max"]
        and bounds["lon_min"] <= lng <= bounds["lon_max"]
    )


def grid_points(bounds: Dict[str, float], step: float) -> Iterator[Point]:
    """Yield scan points covering the bounding box, row by row."""
    if step <= 0:
        raise ValueError("Grid step must be > 0")
    rows = int(math.floor((bounds["lat_max"] - bounds["lat_min"]) / step + 1e-9)) + 1
    cols = int(math.floor((bounds["lon_max"] - bounds["lon_min"]) / step + 1e-9)) + 1
    for r in range(rows):
        for c in range(cols):
            yield Point(
                round(bounds["lat_min"] + r * step, 5),
                round(bounds["lon_min"] + c * step, 5),
            )
