import json
from datetime import datetime, timedelta, timezone
from itertools import combinations
from unittest.mock import MagicMock

import pytest
import redis

import config
from db.kv_store import InMemoryKVStore, NullKVStore, RedisKVStore, make_kv_store
from modules.geo.distance import haversine_km
from modules.hubs.hub_cache import HubCache
from schemas.hub import DiscoveredHub, PointOfInterest

T0 = datetime(2026, 3, 1, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def timed_cache(store, clock):
    return HubCache(store, clock=clock)


# ── dedup ─────────────────────────────────────────────────────────────────────

def test_rejects_hub_within_dedup_distance(hub_cache, make_hub):
    assert hub_cache.cache_discovered_hub(make_hub("Kenora, ON", 100))
    assert not hub_cache.cache_discovered_hub(make_hub("Keewatin, ON", 110))
    assert hub_cache.cache_discovered_hub(make_hub("Dryden, ON", 250))
    assert [h.name for h in hub_cache.hubs] == ["Kenora, ON", "Dryden, ON"]


def test_seeded_hubs_are_spread_apart(hub_cache):
    added = hub_cache.initialize()
    hubs = hub_cache.hubs
    assert added == len(hubs) > 50
    for a, b in combinations(hubs, 2):
        assert haversine_km(a.lat, a.lng, b.lat, b.lng) >= config.HUB_DEDUP_KM, (a.name, b.name)
    assert hub_cache.stats()["seed"] == len(hubs)


# ── lookups ───────────────────────────────────────────────────────────────────

def test_find_point_hub_uses_radius(hub_cache, make_hub, km_to_lat):
    hub_cache.cache_discovered_hub(make_hub("Kenora, ON", 100, radius_km=25))
    assert hub_cache.find_point_hub(km_to_lat(120), -90.0).name == "Kenora, ON"
    assert hub_cache.find_point_hub(km_to_lat(130), -90.0) is None


def test_find_window_hub_returns_nearest(hub_cache, make_hub, km_to_lat):
    hub_cache.cache_discovered_hub(make_hub("Kenora, ON", 100))
    hub_cache.cache_discovered_hub(make_hub("Vermilion Bay, ON", 160))
    assert hub_cache.find_window_hub(km_to_lat(150), -90.0).name == "Vermilion Bay, ON"
    assert hub_cache.find_window_hub(km_to_lat(105), -90.0).name == "Kenora, ON"
    assert hub_cache.find_window_hub(km_to_lat(400), -90.0) is None
    assert hub_cache.find_window_hub(km_to_lat(400), -90.0, window_km=250).name == "Vermilion Bay, ON"


def test_promotion_after_three_uses_is_permanent(hub_cache, make_hub, km_to_lat):
    hub_cache.cache_discovered_hub(make_hub("Dryden, ON", 300))
    counts, sources = [], []
    for _ in range(5):
        hub = hub_cache.find_point_hub(km_to_lat(300), -90.0)
        counts.append(hub.use_count)
        sources.append(hub.source)

    assert counts == [1, 2, 3, 4, 5]
    assert sources == ["discovered", "discovered", "promoted", "promoted", "promoted"]
    assert hub_cache.hubs[0].is_permanent


def test_resolve_discovers_from_pois(hub_cache, km_to_lat):
    lat = km_to_lat(300)
    pois = [
        PointOfInterest(f"Station {n}", "gas", lat + n * 0.01, -90.0, tags={"addr:city": "Dryden"})
        for n in range(5)
    ]
    assert hub_cache.resolve(lat, -90.0) is None
    assert hub_cache.resolve(lat, -90.0, pois) == "Dryden"

    hub = hub_cache.hubs[0]
    assert hub.source == "discovered"
    # second lookup is a plain cache hit
    assert hub_cache.resolve(lat, -90.0) == "Dryden"
    assert hub_cache.hubs[0].use_count == 1


# ── TTL ───────────────────────────────────────────────────────────────────────

def test_idle_discovered_hub_is_pruned_on_flush(timed_cache, clock, make_hub):
    timed_cache.seed([make_hub("Seedville, MB", 0, source="seed")])
    timed_cache.cache_discovered_hub(make_hub("Idle Town, ON", 300))
    timed_cache.flush()

    clock.advance(days=config.HUB_TTL_DAYS + 1)
    timed_cache.cache_discovered_hub(make_hub("Fresh Town, ON", 600))
    timed_cache.flush()

    assert {h.name for h in timed_cache.hubs} == {"Seedville, MB", "Fresh Town, ON"}


def test_seed_and_promoted_hubs_survive_long_idle(timed_cache, clock, make_hub):
    timed_cache.seed([make_hub("Seedville, MB", 0, source="seed")])
    timed_cache.cache_discovered_hub(make_hub("Busy Town, ON", 300, source="promoted", use_count=7))
    timed_cache.flush()

    clock.advance(days=3650)
    timed_cache.cache_discovered_hub(make_hub("Fresh Town, ON", 600))
    timed_cache.flush()

    assert {h.name for h in timed_cache.hubs} == {"Seedville, MB", "Busy Town, ON", "Fresh Town, ON"}


def test_reuse_before_expiry_keeps_discovered_hub(timed_cache, clock, make_hub, km_to_lat):
    timed_cache.cache_discovered_hub(make_hub("Ignace, ON", 300))
    clock.advance(days=config.HUB_TTL_DAYS - 1)
    assert timed_cache.find_point_hub(km_to_lat(300), -90.0) is not None

    clock.advance(days=60)
    timed_cache.flush()
    assert [h.name for h in timed_cache.hubs] == ["Ignace, ON"]


def test_flush_caps_size_by_recent_use(store, clock, make_hub, km_to_lat):
    cache = HubCache(store, clock=clock, max_size=2)
    for n, km in enumerate((0, 100, 200)):
        cache.cache_discovered_hub(make_hub(f"Town {n}", km))
        clock.advance(minutes=1)
    cache.find_point_hub(km_to_lat(0), -90.0)
    cache.flush()
    assert {h.name for h in cache.hubs} == {"Town 0", "Town 2"}


# ── persistence ───────────────────────────────────────────────────────────────

def test_lookups_coalesce_into_one_write(hub_cache, store, make_hub, km_to_lat):
    hub_cache.cache_discovered_hub(make_hub("Kenora, ON", 100))
    for km in (90, 100, 110, 120):
        hub_cache.find_point_hub(km_to_lat(km), -90.0)
    assert store.writes == 0
    assert hub_cache.dirty

    assert hub_cache.flush() is True
    assert store.writes == 1
    assert hub_cache.flush() is False
    assert store.writes == 1
    assert store.reads == 1


def test_flushed_hubs_reload_in_a_new_cache(hub_cache, store, make_hub):
    hub_cache.cache_discovered_hub(make_hub("Kenora, ON", 100))
    hub_cache.flush()

    reloaded = HubCache(store)
    assert [h.name for h in reloaded.hubs] == ["Kenora, ON"]
    assert reloaded.hubs[0].to_dict()["radius"] == 25.0


def test_version_mismatch_wipes_stored_hubs(make_hub):
    stored = json.dumps([make_hub("Stale Town", 100).to_dict()])
    store = InMemoryKVStore({config.HUB_CACHE_KEY: stored, config.HUB_CACHE_VERSION_KEY: "1"})
    cache = HubCache(store, version="2")

    assert cache.initialize(seeds=[]) == 0
    assert cache.hubs == []
    assert store.data[config.HUB_CACHE_VERSION_KEY] == "2"
    assert config.HUB_CACHE_KEY not in store.data


def test_matching_version_keeps_stored_hubs(make_hub, clock):
    stored = json.dumps([make_hub("Kept Town", 100).to_dict()])
    store = InMemoryKVStore({config.HUB_CACHE_KEY: stored, config.HUB_CACHE_VERSION_KEY: "2"})
    cache = HubCache(store, clock=clock, version="2")

    assert cache.initialize(seeds=[make_hub("Seed Town", 400, source="seed")]) == 1
    assert {h.name for h in cache.hubs} == {"Kept Town", "Seed Town"}


def test_legacy_entry_without_use_count():
    hub = DiscoveredHub.from_dict({
        "name": "Old Town", "lat": 49.0, "lng": -95.0, "radius": 25,
        "poiCount": 6, "discoveredAt": "2025-11-02T00:00:00+00:00",
    })
    assert hub.use_count == 0
    assert hub.last_used == "2025-11-02T00:00:00+00:00"
    assert hub.source == "discovered"


def test_unreadable_payload_starts_empty():
    cache = HubCache(InMemoryKVStore({config.HUB_CACHE_KEY: "not json"}))
    assert cache.hubs == []


def test_null_store_keeps_cache_working_in_memory(make_hub, km_to_lat):
    cache = HubCache(NullKVStore())
    assert cache.cache_discovered_hub(make_hub("Kenora, ON", 100))
    assert cache.find_point_hub(km_to_lat(100), -90.0).name == "Kenora, ON"
    assert cache.flush() is False
    assert cache.initialize(seeds=[]) == 0


def test_redis_store_degrades_on_connection_errors():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.set.side_effect = redis.ConnectionError("down")
    client.delete.side_effect = redis.TimeoutError("slow")
    kv = RedisKVStore(client=client)

    assert kv.get("k") is None
    assert kv.set("k", "v") is False
    assert kv.remove("k") is False


def test_redis_store_passes_through():
    client = MagicMock()
    client.get.return_value = "[]"
    kv = RedisKVStore(client=client)

    assert kv.get("k") == "[]"
    assert kv.set("k", "v") is True
    client.set.assert_called_once_with("k", "v")


def test_make_kv_store_backends():
    assert isinstance(make_kv_store("memory"), InMemoryKVStore)
    assert isinstance(make_kv_store("NONE"), NullKVStore)
    assert isinstance(make_kv_store("redis"), RedisKVStore)
    with pytest.raises(ValueError):
        make_kv_store("sqlite")


def test_stats_counts_by_source(hub_cache, make_hub):
    hub_cache.seed([make_hub("A", 0, source="seed")])
    hub_cache.cache_discovered_hub(make_hub("B", 100))
    hub_cache.cache_discovered_hub(make_hub("C", 200, source="promoted"))
    assert hub_cache.stats() == {"total": 3, "seed": 1, "discovered": 1, "promoted": 1}
