"""
Shared pytest fixtures for the road-trip planner tests.

Routes used across the suite run due north along the -90 meridian so a km
offset maps to latitude exactly (1 degree = KM_PER_DEG km).
"""

import math
from datetime import datetime
from typing import Optional

import pytest

from db.kv_store import InMemoryKVStore
from modules.hubs.hub_cache import HubCache
from schemas.hub import DiscoveredHub
from schemas.trip import Location, RouteSegment, StopDetails, SuggestedStop, TripConfig

KM_PER_DEG = 6371.0 * math.pi / 180
BASE_LAT = 40.0
ROUTE_LNG = -90.0
DEPARTURE = datetime(2026, 8, 16, 8, 0)


def lat_at(km: float) -> float:
    return BASE_LAT + km / KM_PER_DEG


def _make_segment(
    from_name: str = "Winnipeg",
    to_name: str = "Kenora",
    km: float = 200.0,
    minutes: float = 120.0,
    tz: Optional[str] = None,
    start_km: Optional[float] = None,
    **overrides,
) -> RouteSegment:
    """Segment between named places; with start_km the ends sit on the test meridian."""
    if start_km is None:
        from_loc, to_loc = Location(from_name), Location(to_name)
    else:
        from_loc = Location(from_name, lat_at(start_km), ROUTE_LNG)
        to_loc = Location(to_name, lat_at(start_km + km), ROUTE_LNG)
    return RouteSegment(
        from_loc=from_loc,
        to_loc=to_loc,
        distance_km=km,
        duration_minutes=minutes,
        timezone_abbr=tz,
        **overrides,
    )


def _make_config(**overrides) -> TripConfig:
    values = dict(
        tank_size_litres=60.0,
        fuel_economy_l100km=10.0,
        max_drive_hours_per_day=10.0,
        departure_time=DEPARTURE,
        num_drivers=1,
        gas_price=1.50,
        stop_frequency="balanced",
    )
    values.update(overrides)
    return TripConfig(**values)


def _make_stop(
    id: str,
    kind: str,
    after: int = 0,
    at: datetime = datetime(2026, 8, 16, 11, 0),
    duration: int = 15,
    priority: str = "recommended",
    **overrides,
) -> SuggestedStop:
    values = dict(
        id=id,
        kind=kind,
        reason=f"test {kind} stop",
        after_segment_index=after,
        estimated_time=at,
        duration_minutes=duration,
        priority=priority,
        details=StopDetails(),
    )
    values.update(overrides)
    return SuggestedStop(**values)


def _make_hub(name: str, km: float, radius_km: float = 25.0, source: str = "discovered", **overrides) -> DiscoveredHub:
    values = dict(
        name=name,
        lat=lat_at(km),
        lng=ROUTE_LNG,
        radius_km=radius_km,
        poi_count=10,
        discovered_at="2026-01-01T00:00:00+00:00",
        last_used="2026-01-01T00:00:00+00:00",
        source=source,
        use_count=0,
    )
    values.update(overrides)
    return DiscoveredHub(**values)


@pytest.fixture
def make_segment():
    return _make_segment


@pytest.fixture
def make_config():
    return _make_config


@pytest.fixture
def make_stop():
    return _make_stop


@pytest.fixture
def make_hub():
    return _make_hub


@pytest.fixture
def route_geometry():
    """Factory: [[lat, lng], ...] covering `km` of the test meridian."""
    def build(km: float) -> list[list[float]]:
        return [[lat_at(0), ROUTE_LNG], [lat_at(km / 2), ROUTE_LNG], [lat_at(km), ROUTE_LNG]]
    return build


@pytest.fixture
def store():
    return InMemoryKVStore()


@pytest.fixture
def hub_cache(store):
    """Empty, unseeded cache on an in-memory store."""
    return HubCache(store)


@pytest.fixture
def km_to_lat():
    return lat_at
