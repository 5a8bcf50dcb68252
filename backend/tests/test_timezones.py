from datetime import datetime, timezone

import pytest

from modules.geo.timezones import (
    format_clock,
    format_time_in_zone,
    get_timezone_shift_hours,
    get_utc_offset_hours,
    iana_to_abbr,
    lng_to_iana,
    normalize_to_iana,
    parse_local_date_in_tz,
)


@pytest.mark.parametrize("from_abbr, to_abbr, expected", [
    ("CDT", "EDT", 1.0),
    ("EDT", "CDT", -1.0),
    ("CST", "EST", 1.0),
    ("PDT", "MDT", 1.0),
    ("EST", "NST", 1.5),
    ("CDT", "CDT", 0.0),
    ("CDT", None, 0.0),
    (None, "EDT", 0.0),
    ("CDT", "XYZ", 0.0),
])
def test_timezone_shift(from_abbr, to_abbr, expected):
    assert get_timezone_shift_hours(from_abbr, to_abbr) == expected


def test_utc_offsets_are_case_insensitive():
    assert get_utc_offset_hours("cdt") == -5
    assert get_utc_offset_hours("NDT") == -2.5
    assert get_utc_offset_hours("") is None
    assert get_utc_offset_hours("GMT+1") is None


@pytest.mark.parametrize("lng, zone", [
    (-123.1, "America/Vancouver"),
    (-114.0, "America/Edmonton"),
    (-104.6, "America/Regina"),
    (-97.1, "America/Winnipeg"),
    (-89.2, "America/Toronto"),
    (-63.6, "America/Halifax"),
    (-52.7, "America/St_Johns"),
    (-149.9, "America/Anchorage"),
])
def test_lng_to_iana_bands(lng, zone):
    assert lng_to_iana(lng) == zone


def test_normalize_and_reverse():
    assert normalize_to_iana("EDT") == "America/Toronto"
    assert normalize_to_iana("America/Regina") == "America/Regina"
    assert iana_to_abbr("America/Winnipeg") == "CDT"
    assert iana_to_abbr("Europe/Paris") is None


def test_parse_local_date_in_tz_gives_utc_instant():
    instant = parse_local_date_in_tz("2026-02-28", "09:00", "America/Winnipeg")
    assert instant == datetime(2026, 2, 28, 15, 0, tzinfo=timezone.utc)
    # abbreviations are accepted too
    assert parse_local_date_in_tz("2026-07-01", "09:00", "EDT") == datetime(2026, 7, 1, 13, 0, tzinfo=timezone.utc)


def test_format_clock():
    assert format_clock(datetime(2026, 8, 16, 0, 5)) == "12:05 AM"
    assert format_clock(datetime(2026, 8, 16, 9, 0)) == "9:00 AM"
    assert format_clock(datetime(2026, 8, 16, 12, 15)) == "12:15 PM"
    assert format_clock(datetime(2026, 8, 16, 21, 30)) == "9:30 PM"


def test_format_time_in_zone_converts_aware_only():
    aware = datetime(2026, 8, 16, 14, 0, tzinfo=timezone.utc)
    assert format_time_in_zone(aware, "America/Toronto") == "10:00 AM"
    naive = datetime(2026, 8, 16, 14, 0)
    assert format_time_in_zone(naive, "America/Toronto") == "2:00 PM"
