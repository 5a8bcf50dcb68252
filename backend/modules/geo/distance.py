"""
modules/geo/distance.py
-----------------------
Great-circle distance and route-polyline position interpolation.
Pure maths, no external HTTP calls.

Geometry convention: a route polyline is a list of [lat, lng] pairs in
driving order (the shape returned by the routing service).
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

logger = logging.getLogger(__name__)

_EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * _EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def polyline_length_km(geometry: Sequence[Sequence[float]]) -> float:
    """Total along-route length of a polyline."""
    return sum(
        haversine_km(a[0], a[1], b[0], b[1])
        for a, b in zip(geometry, geometry[1:])
    )


def interpolate_route_position(
    geometry: Sequence[Sequence[float]],
    target_km: float,
) -> Optional[tuple[float, float]]:
    """
    Return the (lat, lng) reached after driving `target_km` along the polyline.

    Linear interpolation inside the polyline edge that contains the target.
    Returns None when the polyline has fewer than two points, when
    target_km <= 0, or when target_km lies beyond the end of the route.
    Past-the-end is never clamped to the last point: callers would otherwise
    resolve an out-of-range stop to the destination's name.
    """
    if len(geometry) < 2 or target_km <= 0:
        return None

    accumulated = 0.0
    for (lat1, lng1), (lat2, lng2) in zip(
        (p[:2] for p in geometry), (p[:2] for p in geometry[1:])
    ):
        edge_km = haversine_km(lat1, lng1, lat2, lng2)
        if accumulated + edge_km >= target_km:
            progress = (target_km - accumulated) / edge_km if edge_km > 0 else 0.0
            return (
                lat1 + (lat2 - lat1) * progress,
                lng1 + (lng2 - lng1) * progress,
            )
        accumulated += edge_km

    logger.debug("interpolate_route_position: %.1f km is past route end (%.1f km)", target_km, accumulated)
    return None


def locate_on_route(
    geometry: Sequence[Sequence[float]],
    lat: float,
    lng: float,
) -> Optional[tuple[float, float]]:
    """
    Project a point onto the polyline.

    Returns (km along the route of the closest point, km off-route), or None
    for a polyline with fewer than two points.  The projection inside each
    edge uses a local equirectangular approximation, which is accurate well
    below a kilometre for highway-length edges.
    """
    if len(geometry) < 2:
        return None

    best: Optional[tuple[float, float]] = None
    accumulated = 0.0
    for (lat1, lng1), (lat2, lng2) in zip(
        (p[:2] for p in geometry), (p[:2] for p in geometry[1:])
    ):
        edge_km = haversine_km(lat1, lng1, lat2, lng2)
        kx = math.cos(math.radians((lat1 + lat2) / 2))
        dx, dy = (lng2 - lng1) * kx, lat2 - lat1
        px, py = (lng - lng1) * kx, lat - lat1
        denom = dx * dx + dy * dy
        t = 0.0 if denom == 0 else max(0.0, min(1.0, (px * dx + py * dy) / denom))
        off_km = haversine_km(lat, lng, lat1 + (lat2 - lat1) * t, lng1 + (lng2 - lng1) * t)
        if best is None or off_km < best[1]:
            best = (accumulated + edge_km * t, off_km)
        accumulated += edge_km
    return best
