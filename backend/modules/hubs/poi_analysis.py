"""
modules/hubs/poi_analysis.py
-----------------------------
Density-based hub discovery.

A location is a "hub" when at least MIN_POIS_FOR_HUB gas stations / hotels
sit within SEARCH_RADIUS_KM.  The hub is named by majority vote over the
POIs' address data and centred on their centroid; its coverage radius
scales with how many POIs were found.
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from modules.geo.distance import haversine_km
from schemas.hub import DiscoveredHub, PointOfInterest

logger = logging.getLogger(__name__)

MIN_POIS_FOR_HUB = 5
SEARCH_RADIUS_KM = 30.0
HUB_CATEGORIES = frozenset({"gas", "hotel"})

# (min POIs, coverage radius km), checked top-down
RADIUS_TIERS: tuple[tuple[int, float], ...] = (
    (20, 60.0),   # major metro (Chicago, Toronto)
    (10, 40.0),   # medium city (Minneapolis, Calgary)
    (5,  25.0),   # small hub (Fargo, Brandon)
)
DEFAULT_RADIUS_KM = 25.0


def hub_radius_for(poi_count: int) -> float:
    for min_pois, radius in RADIUS_TIERS:
        if poi_count >= min_pois:
            return radius
    return DEFAULT_RADIUS_KM


def _city_vote(poi: PointOfInterest) -> Optional[str]:
    city = poi.tags.get("addr:city")
    if city:
        return city

    # "123 Main St, Fargo, ND" → city is the second-to-last part
    if not poi.address:
        return None
    parts = [p.strip() for p in poi.address.split(",")]
    if len(parts) < 2:
        return None
    city_part = parts[-2]
    if not city_part or city_part[0].isdigit():
        return None
    state = poi.tags.get("addr:state")
    return f"{city_part}, {state}" if state else city_part


def extract_city_name(pois: Iterable[PointOfInterest]) -> Optional[str]:
    """Most frequent place name across the POIs, None if nothing parses."""
    votes = Counter(v for v in (_city_vote(p) for p in pois) if v)
    if not votes:
        return None
    return votes.most_common(1)[0][0]


def analyze_for_hub(
    lat: float,
    lng: float,
    pois: Iterable[PointOfInterest],
    now: Optional[datetime] = None,
) -> Optional[DiscoveredHub]:
    """
    Return a freshly discovered hub around (lat, lng), or None when the area
    is too sparse or no name can be extracted.
    """
    nearby = [
        p for p in pois
        if p.category in HUB_CATEGORIES
        and haversine_km(lat, lng, p.lat, p.lng) <= SEARCH_RADIUS_KM
    ]
    if len(nearby) < MIN_POIS_FOR_HUB:
        return None

    name = extract_city_name(nearby)
    if not name:
        logger.debug("analyze_for_hub: %d POIs near (%.3f, %.3f) but no usable address", len(nearby), lat, lng)
        return None

    stamp = (now or datetime.now(timezone.utc)).isoformat()
    return DiscoveredHub(
        name=name,
        lat=sum(p.lat for p in nearby) / len(nearby),
        lng=sum(p.lng for p in nearby) / len(nearby),
        radius_km=hub_radius_for(len(nearby)),
        poi_count=len(nearby),
        discovered_at=stamp,
        last_used=stamp,
        source="discovered",
        use_count=0,
    )
