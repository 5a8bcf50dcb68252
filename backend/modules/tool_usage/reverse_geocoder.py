"""
modules/tool_usage/reverse_geocoder.py
---------------------------------------
Reverse geocoding of a route position to "Town, PR" through Nominatim.

Last resort for naming a stop: the hub cache answers instantly for known
corridors, this call is slow and rate-limited (1 request / second under the
public usage policy; callers pace themselves with NOMINATIM_DELAY_SECONDS).

    GET {NOMINATIM_BASE_URL}/reverse?lat=..&lon=..&format=json&zoom=10&addressdetails=1

zoom=10 asks for city-level results rather than street addresses.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

import requests

import config

logger = logging.getLogger(__name__)

_UNORGANIZED = re.compile(r"^Unorganized\s+", re.IGNORECASE)
_DISTRICT_SUFFIX = re.compile(r"\s+(District|County)$", re.IGNORECASE)
_ISO_COUNTRY_PREFIX = re.compile(r"^[A-Z]+-")


def _nominatim_get(path: str, params: dict) -> dict:
    """GET a Nominatim endpoint.  Raises on HTTP/network error."""
    url = f"{config.NOMINATIM_BASE_URL.rstrip('/')}/{path.lstrip('/')}"
    resp = requests.get(
        url,
        params=params,
        headers={"User-Agent": config.NOMINATIM_USER_AGENT},
        timeout=config.NOMINATIM_TIMEOUT,
    )
    resp.raise_for_status()
    return resp.json()


def format_town(address: dict) -> Optional[str]:
    """
    Pick a readable place name from a Nominatim `address` block.

    city → town → village → hamlet; otherwise the county / district with
    "Unorganized " and " District" / " County" stripped, so
    "Unorganized Kenora District" becomes "Kenora".  The province / state
    code is appended when present ("CA-ON" → "ON").
    """
    name = address.get("city") or address.get("town") or address.get("village") or address.get("hamlet")
    if not name:
        raw = address.get("county") or address.get("municipality") or address.get("state_district")
        if raw:
            name = _DISTRICT_SUFFIX.sub("", _UNORGANIZED.sub("", raw)).strip()
    if not name:
        return None

    iso = address.get("ISO3166-2-lvl4")
    state = _ISO_COUNTRY_PREFIX.sub("", iso) if iso else address.get("state_code")
    return f"{name}, {state}" if state else name


def reverse_geocode_town(lat: float, lng: float) -> Optional[str]:
    """'Dryden, ON' for a coordinate, or None when Nominatim has nothing usable."""
    try:
        data = _nominatim_get("reverse", {
            "lat": lat,
            "lon": lng,
            "format": "json",
            "zoom": 10,
            "addressdetails": 1,
        })
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Reverse geocode failed for (%.4f, %.4f): %s", lat, lng, exc)
        return None

    address = data.get("address") if isinstance(data, dict) else None
    if not address:
        return None
    return format_town(address)
