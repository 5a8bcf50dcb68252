"""
db/redis_client.py
-------------------
redis-py client singleton used by the hub-cache KV store.

Key schema:

  roadtrip-discovered-hubs        (config.HUB_CACHE_KEY)
      Type : String (JSON array of DiscoveredHub dicts)
      TTL  : none (entries carry their own lastUsed and are pruned on write)

  roadtrip-hub-cache-version      (config.HUB_CACHE_VERSION_KEY)
      Type : String, e.g. "2"

Environment variables (set in config.py):
    REDIS_HOST            default: localhost
    REDIS_PORT            default: 6379
    REDIS_DB              default: 0
    REDIS_PASSWORD        default: ""  (empty = no auth)
    REDIS_SOCKET_TIMEOUT  default: 2.0 seconds
"""

from __future__ import annotations

from typing import Any

import redis

import config

# Module-level singleton; initialised lazily on first call to get_redis()
_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Return the singleton Redis client, creating it on first call."""
    global _client
    if _client is None:
        kwargs: dict[str, Any] = {
            "host":                   config.REDIS_HOST,
            "port":                   config.REDIS_PORT,
            "db":                     config.REDIS_DB,
            "decode_responses":       True,   # return str, not bytes
            "socket_timeout":         config.REDIS_SOCKET_TIMEOUT,
            "socket_connect_timeout": config.REDIS_SOCKET_TIMEOUT,
        }
        if config.REDIS_PASSWORD:
            kwargs["password"] = config.REDIS_PASSWORD
        _client = redis.Redis(**kwargs)
    return _client


def reset_redis() -> None:
    """Drop the singleton so the next get_redis() reconnects with fresh config."""
    global _client
    if _client is not None:
        _client.close()
    _client = None
