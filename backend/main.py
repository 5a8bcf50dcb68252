"""
main.py
--------
Road-trip planner demo entry point.

Runs the whole core on a sample Trans-Canada trip:
  Stage 1: Route + vehicle input
  Stage 2: Stop simulation (fuel / rest / meal / overnight) + consolidation
  Stage 3: Timed itinerary + fuel/meal combos
  Stage 4: Town names for distance-labelled stops

Run:
  python main.py                 # offline: hub cache only
  python main.py --geocode       # also ask Nominatim for unnamed stops
  python main.py --json          # machine-readable output
  python main.py --replay <trip_id>
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime

import config
from modules.hubs.hub_cache import get_hub_cache
from modules.stops.simulator import StopSimulator
from modules.timeline.builder import build_timed_timeline, format_duration
from modules.timeline.combo import apply_combo_optimization
from modules.timeline.town_resolver import resolve_stop_towns
from schemas.trip import Location, RouteSegment, TripConfig

logger = logging.getLogger(__name__)

# ── Sample route: Winnipeg → Thunder Bay → Sault Ste. Marie ───────────────────
WINNIPEG = Location("Winnipeg, MB", 49.895, -97.138)
THUNDER_BAY = Location("Thunder Bay, ON", 48.382, -89.246)
SAULT_STE_MARIE = Location("Sault Ste. Marie, ON", 46.522, -84.346)

# Coarse Highway 17 polyline, [lat, lng]
SAMPLE_GEOMETRY: list[list[float]] = [
    [49.895, -97.138], [49.767, -94.490], [49.783, -92.838], [49.421, -90.780],
    [48.382, -89.246], [49.017, -88.260], [48.727, -86.380], [48.593, -85.281],
    [47.927, -84.779], [47.300, -84.600], [46.522, -84.346],
]

SAMPLE_SEGMENTS: list[RouteSegment] = [
    RouteSegment(WINNIPEG, THUNDER_BAY, distance_km=700.0, duration_minutes=450.0, timezone_abbr="EDT"),
    RouteSegment(THUNDER_BAY, SAULT_STE_MARIE, distance_km=705.0, duration_minutes=470.0, timezone_abbr="EDT"),
]


def sample_config() -> TripConfig:
    return TripConfig(
        tank_size_litres=60.0,
        fuel_economy_l100km=9.5,
        max_drive_hours_per_day=config.DEFAULT_MAX_DRIVE_HOURS,
        departure_time=datetime(2026, 8, 16, 8, 0),
        num_drivers=1,
        gas_price=config.DEFAULT_GAS_PRICE,
        stop_frequency=config.DEFAULT_STOP_FREQUENCY,
        full_geometry=SAMPLE_GEOMETRY,
    )


def run_demo(geocode: bool = False, as_json: bool = False) -> dict:
    trip_config = sample_config()
    cache = get_hub_cache()

    # ── Stage 1 ────────────────────────────────────────────────────────────
    if not as_json:
        print("\n" + "=" * 60)
        print("  ROAD TRIP PLANNER")
        print("=" * 60)
        print("\n[Stage 1] Route")
        for i, seg in enumerate(SAMPLE_SEGMENTS):
            print(f"  [{i}] {seg.from_loc.name} → {seg.to_loc.name}  "
                  f"{seg.distance_km:.0f} km  {format_duration(seg.duration_minutes)}")
        print(f"  Vehicle: {trip_config.tank_size_litres:.0f} L tank, "
              f"{trip_config.fuel_economy_l100km} L/100km  (range {trip_config.vehicle_range_km:.0f} km)")

    # ── Stage 2 ────────────────────────────────────────────────────────────
    simulator = StopSimulator(SAMPLE_SEGMENTS, trip_config, hub_cache=cache)
    stops = simulator.run()
    if not as_json:
        print(f"\n[Stage 2] Stop suggestions ({len(stops)})")
        for s in stops:
            print(f"  {s.estimated_time:%a %H:%M}  {s.kind:<9} {s.priority:<11} {s.id}")
            print(f"      {s.reason.splitlines()[0]}")

    # ── Stage 3 ────────────────────────────────────────────────────────────
    events = apply_combo_optimization(
        build_timed_timeline(SAMPLE_SEGMENTS, stops, trip_config, trip_id=simulator.trip_id)
    )

    # ── Stage 4 ────────────────────────────────────────────────────────────
    # Offline runs never hit Nominatim, so there is nothing to pace
    if geocode:
        towns = resolve_stop_towns(events, SAMPLE_GEOMETRY, cache)
    else:
        towns = resolve_stop_towns(
            events, SAMPLE_GEOMETRY, cache,
            geocoder=lambda lat, lng: None, sleep=lambda seconds: None,
        )

    if not as_json:
        print(f"\n[Stage 3] Timeline ({len(events)} events)")
        for e in events:
            where = towns.get(e.id, e.location_hint)
            label = e.combo_label or e.kind
            print(f"  {e.arrival_time:%a %H:%M}  {label:<16} {format_duration(e.duration_minutes):>9}  {where}")
        print(f"\n[Stage 4] Hub cache: {cache.stats()}")

    return {
        "trip_id": simulator.trip_id,
        "stops": [s.to_dict() for s in stops],
        "events": [dict(e.to_dict(), town=towns.get(e.id)) for e in events],
    }


if __name__ == "__main__":
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    if "--replay" in sys.argv:
        from modules.observability.replay import replay_trip
        _idx = sys.argv.index("--replay")
        if _idx + 1 >= len(sys.argv):
            print("Usage: python main.py --replay <trip_id>")
            sys.exit(1)
        replay_trip(sys.argv[_idx + 1])
        sys.exit(0)

    _as_json = "--json" in sys.argv
    result = run_demo(geocode="--geocode" in sys.argv, as_json=_as_json)
    if _as_json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
