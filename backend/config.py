"""
config.py
---------
Central configuration for the road-trip stop planner.
All settings are read from environment variables with typed defaults.

Tuning constants for the simulation itself (buffers, thresholds, meal hours)
live in modules/planning/trip_constants.py; this file only holds
deployment-level knobs (storage, geocoding, logging, API defaults).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the backend directory (if it exists).  Vars already set in the
# shell win, so CI and container overrides are not clobbered.
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str        = os.getenv("LOG_LEVEL", "INFO")
# When true, each simulation / timeline pass appends a JSONL record to LOGS_DIR
STRUCTURED_LOGS: bool = _flag("STRUCTURED_LOGS", "false")
LOGS_DIR: str         = os.getenv("LOGS_DIR", str(Path(__file__).parent / "logs"))

# ── Redis ─────────────────────────────────────────────────────────────────────
# Only used when HUB_CACHE_BACKEND=redis
REDIS_HOST: str     = os.getenv("REDIS_HOST",     "localhost")
REDIS_PORT: int     = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int       = int(os.getenv("REDIS_DB",   "0"))
REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
REDIS_SOCKET_TIMEOUT: float = float(os.getenv("REDIS_SOCKET_TIMEOUT", "2.0"))  # seconds

# ── Hub cache ─────────────────────────────────────────────────────────────────
# Backend: "redis" | "memory" | "none"
HUB_CACHE_BACKEND: str     = os.getenv("HUB_CACHE_BACKEND", "memory")
HUB_CACHE_KEY: str         = os.getenv("HUB_CACHE_KEY",         "roadtrip-discovered-hubs")
HUB_CACHE_VERSION_KEY: str = os.getenv("HUB_CACHE_VERSION_KEY", "roadtrip-hub-cache-version")
# Bump when resolution logic changes. Stale discovered hubs are wiped on init
HUB_CACHE_VERSION: str     = os.getenv("HUB_CACHE_VERSION", "2")

HUB_CACHE_MAX_SIZE: int   = int(os.getenv("HUB_CACHE_MAX_SIZE",   "500"))   # LRU cap
HUB_TTL_DAYS: int         = int(os.getenv("HUB_TTL_DAYS",         "90"))    # discovered-hub idle expiry
HUB_PROMOTION_USES: int   = int(os.getenv("HUB_PROMOTION_USES",   "3"))     # discovered → promoted
HUB_DEDUP_KM: float       = float(os.getenv("HUB_DEDUP_KM",       "20.0"))  # min distance between hub centres
HUB_WINDOW_KM: float      = float(os.getenv("HUB_WINDOW_KM",      "80.0"))  # default find_window_hub search

# ── Reverse geocoding (Nominatim) ─────────────────────────────────────────────
# Last-resort tier for naming stops the hub cache cannot resolve.
NOMINATIM_BASE_URL: str        = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
NOMINATIM_USER_AGENT: str      = os.getenv("NOMINATIM_USER_AGENT", "RoadTripPlanner/1.0")
NOMINATIM_TIMEOUT: int         = int(os.getenv("NOMINATIM_TIMEOUT", "10"))            # seconds
NOMINATIM_DELAY_SECONDS: float = float(os.getenv("NOMINATIM_DELAY_SECONDS", "1.0"))  # usage policy: 1 req/s

# ── API defaults ──────────────────────────────────────────────────────────────
DEFAULT_STOP_FREQUENCY: str    = os.getenv("DEFAULT_STOP_FREQUENCY", "balanced")
DEFAULT_MAX_DRIVE_HOURS: float = float(os.getenv("DEFAULT_MAX_DRIVE_HOURS", "10"))
DEFAULT_GAS_PRICE: float       = float(os.getenv("DEFAULT_GAS_PRICE", "1.50"))    # per litre
