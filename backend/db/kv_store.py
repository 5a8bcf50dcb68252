"""
db/kv_store.py
--------------
Minimal string key-value contract used by the hub cache, plus three adapters.

  RedisKVStore     shared, survives restarts
  InMemoryKVStore  per-process dict (default; also what tests use)
  NullKVStore      storage unavailable: every read misses, every write fails

Adapters never raise on backend failure.  A failed read returns None and a
failed write returns False; the caller's in-memory state stays authoritative.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import redis

import config
from db.redis_client import get_redis

logger = logging.getLogger(__name__)


class KVStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> bool: ...
    def remove(self, key: str) -> bool: ...


class RedisKVStore:
    """KV store backed by the shared redis client."""

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        self._client = client

    @property
    def client(self) -> redis.Redis:
        return self._client if self._client is not None else get_redis()

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except (redis.RedisError, OSError) as exc:
            logger.warning("RedisKVStore.get(%s) failed: %s", key, exc)
            return None

    def set(self, key: str, value: str) -> bool:
        try:
            self.client.set(key, value)
            return True
        except (redis.RedisError, OSError) as exc:
            logger.warning("RedisKVStore.set(%s) failed: %s", key, exc)
            return False

    def remove(self, key: str) -> bool:
        try:
            self.client.delete(key)
            return True
        except (redis.RedisError, OSError) as exc:
            logger.warning("RedisKVStore.remove(%s) failed: %s", key, exc)
            return False


class InMemoryKVStore:
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.reads = 0
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        self.reads += 1
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self.writes += 1
        self.data[key] = value
        return True

    def remove(self, key: str) -> bool:
        self.data.pop(key, None)
        return True


class NullKVStore:
    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str) -> bool:
        return False

    def remove(self, key: str) -> bool:
        return False


def make_kv_store(backend: Optional[str] = None) -> KVStore:
    """Build the store named by `backend` (defaults to config.HUB_CACHE_BACKEND)."""
    backend = (backend or config.HUB_CACHE_BACKEND).lower()
    if backend == "redis":
        return RedisKVStore()
    if backend == "memory":
        return InMemoryKVStore()
    if backend == "none":
        return NullKVStore()
    raise ValueError(f"Unknown HUB_CACHE_BACKEND {backend!r} (expected redis | memory | none)")
