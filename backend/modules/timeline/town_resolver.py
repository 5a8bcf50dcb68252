"""
modules/timeline/town_resolver.py
----------------------------------
Replace "~250 km from Winnipeg" stop labels with real town names.

Tiers, cheapest first:
  1. hub cache        known corridor towns
  2. POI discovery    gas / hotel density around the point
  3. reverse geocode  Nominatim, rate-limited

Results (including misses) are memoised per distance bucket so stops a few
km apart share one lookup.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Iterable, Optional, Sequence

import config
from modules.geo.distance import interpolate_route_position
from modules.hubs.hub_cache import HubCache
from modules.tool_usage.reverse_geocoder import reverse_geocode_town
from schemas.hub import PointOfInterest
from schemas.timeline import TimedEvent

logger = logging.getLogger(__name__)

TOWN_BUCKET_KM = 5

Geocoder = Callable[[float, float], Optional[str]]

_SKIP_KINDS = ("departure", "arrival", "drive")
_town_memo: dict[int, Optional[str]] = {}


def bucket_key(km: float) -> int:
    return round(km / TOWN_BUCKET_KM) * TOWN_BUCKET_KM


def clear_town_memo() -> None:
    _town_memo.clear()


def resolve_stop_towns(
    events: Sequence[TimedEvent],
    geometry: Sequence[Sequence[float]],
    cache: HubCache,
    pois: Optional[Iterable[PointOfInterest]] = None,
    geocoder: Optional[Geocoder] = None,
    memo: Optional[dict[int, Optional[str]]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, str]:
    """Map event id → town for every stop event still labelled by distance."""
    result: dict[str, str] = {}
    if len(geometry) < 2:
        return result

    geocode = geocoder or reverse_geocode_town
    towns = _town_memo if memo is None else memo
    poi_list = list(pois) if pois else None
    first_request = True

    for event in events:
        if event.kind in _SKIP_KINDS or not event.location_hint.startswith("~"):
            continue

        key = bucket_key(event.distance_from_origin_km)
        if key in towns:
            if towns[key]:
                result[event.id] = towns[key]
            continue

        pos = interpolate_route_position(geometry, event.distance_from_origin_km)
        if pos is None:
            continue

        name = cache.resolve(pos[0], pos[1], poi_list)
        if name is None:
            if not first_request:
                sleep(config.NOMINATIM_DELAY_SECONDS)
            first_request = False
            name = geocode(pos[0], pos[1])

        towns[key] = name
        if name:
            result[event.id] = name

    cache.flush()
    logger.debug("Resolved %d stop town(s)", len(result))
    return result
