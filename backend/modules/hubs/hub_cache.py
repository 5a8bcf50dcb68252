"""
modules/hubs/hub_cache.py
--------------------------
Self-learning highway hub cache.

Maps route positions to recognisable town names so fuel stops read
"Fuel up in Fargo, ND" instead of "around km 341".

Resolution tiers:
  1. cache hit: point inside a known hub's radius (linear scan; hub
                counts stay in the low hundreds)
  2. discovery: gas/hotel POI density around the point (poi_analysis)
  3. caller: None tells the caller to fall back to reverse geocoding

Lifecycle rules:
  * No two hubs closer than HUB_DEDUP_KM: later candidates are rejected.
  * Every successful lookup bumps last_used and use_count; a discovered hub
    reaching HUB_PROMOTION_USES is promoted and becomes permanent.
  * Lookups only mark the cache dirty.  flush() does the single write for a
    whole pass: prune discovered hubs idle longer than HUB_TTL_DAYS, cap at
    HUB_CACHE_MAX_SIZE by least-recent use, then persist.
  * The backing store is loaded once, lazily.  Store failures are logged by
    the store adapter and otherwise ignored; memory stays authoritative.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

import config
from db.kv_store import KVStore, make_kv_store
from modules.geo.distance import haversine_km
from modules.hubs.poi_analysis import analyze_for_hub
from modules.hubs.seed_data import seed_hubs
from schemas.hub import DiscoveredHub, PointOfInterest

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_stamp(value: str) -> datetime:
    """ISO-8601 → aware UTC datetime.  Unparseable stamps sort as oldest."""
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class HubCache:
    """In-process hub store with debounced persistence to a KVStore."""

    def __init__(
        self,
        store: KVStore,
        clock: Optional[Callable[[], datetime]] = None,
        *,
        key: str = config.HUB_CACHE_KEY,
        version_key: str = config.HUB_CACHE_VERSION_KEY,
        version: str = config.HUB_CACHE_VERSION,
        max_size: int = config.HUB_CACHE_MAX_SIZE,
        ttl_days: int = config.HUB_TTL_DAYS,
        promotion_uses: int = config.HUB_PROMOTION_USES,
        dedup_km: float = config.HUB_DEDUP_KM,
    ) -> None:
        self._store = store
        self._clock = clock or _utcnow
        self._key = key
        self._version_key = version_key
        self._version = version
        self._max_size = max_size
        self._ttl = timedelta(days=ttl_days)
        self._promotion_uses = promotion_uses
        self._dedup_km = dedup_km

        self._hubs: Optional[list[DiscoveredHub]] = None
        self._dirty = False
        self._lock = threading.RLock()

    # ── loading ───────────────────────────────────────────────────────────

    def _load(self) -> list[DiscoveredHub]:
        if self._hubs is not None:
            return self._hubs
        raw = self._store.get(self._key)
        hubs: list[DiscoveredHub] = []
        if raw:
            try:
                hubs = [DiscoveredHub.from_dict(d) for d in json.loads(raw)]
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("Hub cache payload unreadable, starting empty: %s", exc)
                hubs = []
        self._hubs = hubs
        return hubs

    @property
    def hubs(self) -> list[DiscoveredHub]:
        """Snapshot of the in-memory hub list."""
        with self._lock:
            return list(self._load())

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ── internals ─────────────────────────────────────────────────────────

    def _now_iso(self) -> str:
        return self._clock().isoformat()

    def _touch(self, hub: DiscoveredHub) -> None:
        hub.last_used = self._now_iso()
        hub.use_count += 1
        if hub.source == "discovered" and hub.use_count >= self._promotion_uses:
            hub.source = "promoted"
            logger.info("Hub promoted: %s (%d uses)", hub.name, hub.use_count)
        self._dirty = True

    def _is_duplicate(self, hubs: list[DiscoveredHub], lat: float, lng: float) -> bool:
        return any(haversine_km(h.lat, h.lng, lat, lng) < self._dedup_km for h in hubs)

    def _prune(self, hubs: list[DiscoveredHub]) -> list[DiscoveredHub]:
        cutoff = self._clock() - self._ttl
        kept = [h for h in hubs if h.is_permanent or _parse_stamp(h.last_used) >= cutoff]
        if len(kept) < len(hubs):
            logger.info("Hub cache pruned %d idle discovered hub(s)", len(hubs) - len(kept))
        kept.sort(key=lambda h: _parse_stamp(h.last_used), reverse=True)
        return kept[: self._max_size]

    # ── lookups ───────────────────────────────────────────────────────────

    def find_point_hub(self, lat: float, lng: float) -> Optional[DiscoveredHub]:
        """First hub whose coverage radius contains the point."""
        with self._lock:
            for hub in self._load():
                if haversine_km(lat, lng, hub.lat, hub.lng) <= hub.radius_km:
                    self._touch(hub)
                    return hub
        return None

    def find_window_hub(
        self,
        lat: float,
        lng: float,
        window_km: float = config.HUB_WINDOW_KM,
    ) -> Optional[DiscoveredHub]:
        """Nearest hub centre within `window_km` of the point, regardless of radius."""
        with self._lock:
            best: Optional[DiscoveredHub] = None
            best_dist = float("inf")
            for hub in self._load():
                dist = haversine_km(lat, lng, hub.lat, hub.lng)
                if dist <= window_km and dist < best_dist:
                    best, best_dist = hub, dist
            if best is not None:
                self._touch(best)
            return best

    # ── mutation ──────────────────────────────────────────────────────────

    def cache_discovered_hub(self, hub: DiscoveredHub) -> bool:
        """Add a hub unless one already sits within the dedup distance."""
        with self._lock:
            hubs = self._load()
            if self._is_duplicate(hubs, hub.lat, hub.lng):
                return False
            hub.last_used = self._now_iso()
            hubs.append(hub)
            self._dirty = True
            return True

    def seed(self, seeds: Iterable[DiscoveredHub]) -> int:
        """Add every non-duplicate seed hub; returns how many were added."""
        added = 0
        with self._lock:
            hubs = self._load()
            for hub in seeds:
                if self._is_duplicate(hubs, hub.lat, hub.lng):
                    continue
                if not hub.last_used:
                    hub.last_used = self._now_iso()
                hubs.append(hub)
                added += 1
            if added:
                self._dirty = True
        return added

    def discover(
        self,
        lat: float,
        lng: float,
        pois: Iterable[PointOfInterest],
    ) -> Optional[str]:
        """Run POI-density discovery; a found hub is cached and its name returned."""
        hub = analyze_for_hub(lat, lng, pois, now=self._clock())
        if hub is None:
            return None
        if self.cache_discovered_hub(hub):
            logger.info("Hub discovered: %s (%d POIs, r=%.0f km)", hub.name, hub.poi_count, hub.radius_km)
        return hub.name

    def resolve(
        self,
        lat: float,
        lng: float,
        pois: Optional[Iterable[PointOfInterest]] = None,
    ) -> Optional[str]:
        """Cache first, then discovery.  None means: use an external geocoder."""
        hub = self.find_point_hub(lat, lng)
        if hub is not None:
            return hub.name
        if pois:
            return self.discover(lat, lng, pois)
        return None

    # ── persistence ───────────────────────────────────────────────────────

    def flush(self) -> bool:
        """
        Persist pending changes in a single write.
        Returns True if a write was attempted and the store accepted it.
        """
        with self._lock:
            if not self._dirty:
                return False
            trimmed = self._prune(self._load())
            self._hubs = trimmed
            self._dirty = False
            payload = json.dumps([h.to_dict() for h in trimmed])
        return self._store.set(self._key, payload)

    def initialize(self, seeds: Optional[Iterable[DiscoveredHub]] = None) -> int:
        """
        Version check + seeding, run once at startup.
        A version mismatch wipes the stored hubs (resolution logic changed),
        then seed hubs are (re)added and flushed.
        """
        stored_version = self._store.get(self._version_key)
        if stored_version != self._version:
            logger.info("Hub cache version %s → %s: clearing", stored_version, self._version)
            self.clear()
            self._store.set(self._version_key, self._version)
        added = self.seed(seeds if seeds is not None else seed_hubs())
        self.flush()
        return added

    def clear(self) -> None:
        """Reset memory and remove the persisted entry."""
        with self._lock:
            self._hubs = None
            self._dirty = False
        self._store.remove(self._key)

    def stats(self) -> dict[str, int]:
        hubs = self.hubs
        return {
            "total":      len(hubs),
            "seed":       sum(1 for h in hubs if h.source == "seed"),
            "discovered": sum(1 for h in hubs if h.source == "discovered"),
            "promoted":   sum(1 for h in hubs if h.source == "promoted"),
        }


# ── process-wide default ──────────────────────────────────────────────────────

_default_cache: Optional[HubCache] = None


def get_hub_cache() -> HubCache:
    """Process-wide cache on the configured store, seeded on first use."""
    global _default_cache
    if _default_cache is None:
        cache = HubCache(make_kv_store())
        cache.initialize()
        _default_cache = cache
    return _default_cache


def set_hub_cache(cache: Optional[HubCache]) -> None:
    """Swap the process-wide cache (None = rebuild lazily from config)."""
    global _default_cache
    _default_cache = cache
