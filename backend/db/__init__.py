"""
db/
----
Storage access layer for the road-trip planner.

Storage architecture:
  Redis (redis-py): optional shared backing store for the hub cache
    roadtrip-discovered-hubs     JSON array of DiscoveredHub dicts
    roadtrip-hub-cache-version   resolution-logic version string

  The hub cache only needs a get / set / remove string contract (KVStore),
  so an in-process dict or a no-op store can stand in for Redis.

Public exports (import from here for convenience):
    from db import get_redis, make_kv_store
"""

from db.kv_store import InMemoryKVStore, KVStore, NullKVStore, RedisKVStore, make_kv_store
from db.redis_client import get_redis, reset_redis

__all__ = [
    "KVStore",
    "RedisKVStore",
    "InMemoryKVStore",
    "NullKVStore",
    "make_kv_store",
    "get_redis",
    "reset_redis",
]
