"""
schemas/hub.py
--------------
Dataclasses for the self-learning hub cache.

DiscoveredHub lifecycle (source):
  seed        shipped with the app, permanent
  discovered  learned from POI density at runtime, expires after HUB_TTL_DAYS idle
  promoted    a discovered hub used HUB_PROMOTION_USES times, permanent
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

HubSource = Literal["seed", "discovered", "promoted"]


@dataclass
class DiscoveredHub:
    name: str                    # "Fargo, ND"
    lat: float
    lng: float
    radius_km: float             # coverage, scales with poi_count
    poi_count: int               # confidence indicator
    discovered_at: str           # ISO-8601
    last_used: str = ""          # ISO-8601, drives LRU + TTL
    source: HubSource = "discovered"
    use_count: int = 0

    @property
    def is_permanent(self) -> bool:
        return self.source in ("seed", "promoted")

    def to_dict(self) -> dict:
        return {
            "name":         self.name,
            "lat":          self.lat,
            "lng":          self.lng,
            "radius":       self.radius_km,
            "poiCount":     self.poi_count,
            "discoveredAt": self.discovered_at,
            "lastUsed":     self.last_used,
            "source":       self.source,
            "useCount":     self.use_count,
        }

    @classmethod
    def from_dict(cls, data: dict) -> DiscoveredHub:
        """Parse a persisted entry.  Legacy entries have no useCount (treated as 0)."""
        discovered_at = str(data.get("discoveredAt", ""))
        return cls(
            name=str(data["name"]),
            lat=float(data["lat"]),
            lng=float(data["lng"]),
            radius_km=float(data.get("radius", 25)),
            poi_count=int(data.get("poiCount", 0)),
            discovered_at=discovered_at,
            last_used=str(data.get("lastUsed") or discovered_at),
            source=data.get("source", "discovered"),
            use_count=int(data.get("useCount") or 0),
        )


@dataclass(frozen=True)
class PointOfInterest:
    """
    A POI as delivered by the upstream Overpass-style fetcher.

    Only gas stations and hotels feed hub discovery.  `tags` holds raw OSM
    tags (addr:city, addr:state, ...); `address` is a free-text fallback like
    "123 Main St, Fargo, ND".
    """
    name: str
    category: str                 # "gas" | "hotel" | "restaurant" | ...
    lat: float
    lng: float
    address: Optional[str] = None
    tags: dict[str, str] = field(default_factory=dict)
