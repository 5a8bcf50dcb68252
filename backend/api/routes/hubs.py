"""
api/routes/hubs.py
------------------
GET /v1/hubs/stats  → counts of cached hubs by lifecycle source
"""
from __future__ import annotations

from fastapi import APIRouter

from modules.hubs.hub_cache import get_hub_cache

router = APIRouter()


@router.get("/stats", summary="Hub cache statistics")
def hub_stats() -> dict:
    return get_hub_cache().stats()
