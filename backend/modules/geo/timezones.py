"""
modules/geo/timezones.py
------------------------
Timezone helpers for North-American road trips.

Two representations are in play:
  * abbreviations ("CDT", "EST"): what the weather provider annotates each
    segment with; the simulation clock shifts by abbreviation offsets
  * IANA names ("America/Winnipeg"): used for display and for parsing a
    local departure time into a real instant

The abbreviation table is deliberately fixed (no DST lookup): an abbreviation
already encodes whether daylight time is in effect.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

# ── Abbreviation → UTC offset (hours) ─────────────────────────────────────────
_UTC_OFFSETS: dict[str, float] = {
    "PST": -8,   "PDT": -7,
    "MST": -7,   "MDT": -6,
    "CST": -6,   "CDT": -5,
    "EST": -5,   "EDT": -4,
    "AST": -4,   "ADT": -3,     # Atlantic (Maritimes)
    "NST": -3.5, "NDT": -2.5,   # Newfoundland
    "AKST": -9,  "AKDT": -8,    # Alaska
    "HST": -10,  "HDT": -9,     # Hawaii
}

_ABBR_TO_IANA: dict[str, str] = {
    "PST": "America/Vancouver", "PDT": "America/Vancouver",
    "MST": "America/Edmonton",  "MDT": "America/Edmonton",
    "CST": "America/Winnipeg",  "CDT": "America/Winnipeg",
    "EST": "America/Toronto",   "EDT": "America/Toronto",
    "AST": "America/Halifax",   "ADT": "America/Halifax",
    "NST": "America/St_Johns",  "NDT": "America/St_Johns",
    "AKST": "America/Anchorage", "AKDT": "America/Anchorage",
    "HST": "Pacific/Honolulu",  "HDT": "Pacific/Honolulu",
}

# Daylight-saving flavour, used when deriving an abbreviation from longitude
_IANA_TO_ABBR: dict[str, str] = {
    "America/Vancouver": "PDT",
    "America/Edmonton":  "MDT",
    "America/Regina":    "CST",   # Saskatchewan: no DST
    "America/Winnipeg":  "CDT",
    "America/Toronto":   "EDT",
    "America/Halifax":   "ADT",
    "America/St_Johns":  "NDT",
    "America/Anchorage": "AKDT",
}


def get_utc_offset_hours(abbr: Optional[str]) -> Optional[float]:
    """UTC offset for a zone abbreviation, None when unknown."""
    if not abbr:
        return None
    return _UTC_OFFSETS.get(abbr.upper())


def get_timezone_shift_hours(from_abbr: Optional[str], to_abbr: Optional[str]) -> float:
    """
    Wall-clock shift when driving from one zone into another.
    Positive = clocks jump forward (CDT → EDT = +1).  0 when either side is
    missing or unknown, or both are the same.
    """
    if not from_abbr or not to_abbr or from_abbr == to_abbr:
        return 0.0
    from_offset = get_utc_offset_hours(from_abbr)
    to_offset = get_utc_offset_hours(to_abbr)
    if from_offset is None or to_offset is None:
        return 0.0
    return float(to_offset - from_offset)


def lng_to_iana(lng: float) -> str:
    """
    Approximate IANA zone from longitude bands along Canadian/US corridors.
    Saskatchewan cannot be told apart from Alberta by longitude alone, so the
    -110 .. -101.5 band maps to America/Regina.
    """
    if lng < -141:
        return "America/Anchorage"
    if lng < -120:
        return "America/Vancouver"
    if lng < -110:
        return "America/Edmonton"
    if lng < -101.5:
        return "America/Regina"
    if lng < -90:
        return "America/Winnipeg"
    if lng < -75:
        return "America/Toronto"
    if lng < -60:
        return "America/Halifax"
    return "America/St_Johns"


def normalize_to_iana(tz: str) -> str:
    """Map an abbreviation to IANA; an IANA name passes through unchanged."""
    return _ABBR_TO_IANA.get(tz.upper(), tz) if tz else tz


def iana_to_abbr(iana: str) -> Optional[str]:
    return _IANA_TO_ABBR.get(iana)


def parse_local_date_in_tz(date_str: str, time_str: str, iana: str) -> datetime:
    """
    Interpret "YYYY-MM-DD" + "HH:MM" as wall-clock time in `iana` and return
    the corresponding aware UTC instant.

    parse_local_date_in_tz("2026-02-28", "09:00", "America/Winnipeg")
      → 2026-02-28 15:00 UTC   (9 AM CST = UTC-6)
    """
    year, month, day = (int(p) for p in date_str.split("-"))
    hours, minutes = (int(p) for p in time_str.split(":")[:2])
    local = datetime(year, month, day, hours, minutes, tzinfo=ZoneInfo(normalize_to_iana(iana)))
    return local.astimezone(timezone.utc)


def format_clock(dt: datetime) -> str:
    """'9:00 AM' / '12:15 PM' from the datetime's own wall-clock fields."""
    hour = dt.hour % 12 or 12
    suffix = "PM" if dt.hour >= 12 else "AM"
    return f"{hour}:{dt.minute:02d} {suffix}"


def format_time_in_zone(dt: datetime, iana: Optional[str] = None) -> str:
    """
    Format an instant as '9:00 AM' in the given zone.
    Aware datetimes are converted into `iana`; naive ones are already local
    wall-clock time and are formatted as-is.
    """
    if iana and dt.tzinfo is not None:
        dt = dt.astimezone(ZoneInfo(normalize_to_iana(iana)))
    return format_clock(dt)
