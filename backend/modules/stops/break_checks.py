"""
modules/stops/break_checks.py
------------------------------
Driver-comfort stops: rest breaks and meal stops.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from modules.geo.timezones import get_timezone_shift_hours
from modules.planning.trip_constants import (
    MEAL_HOURS,
    MEAL_MINUTES,
    REST_BREAK_MINUTES,
    REST_MIN_SEGMENT_MINUTES,
)
from modules.stops.sim_state import SimState
from schemas.trip import RouteSegment, StopDetails, SuggestedStop, TripConfig


def check_rest_break(
    state: SimState,
    segment: RouteSegment,
    index: int,
    config: TripConfig,
    minutes_already_stopped: int = 0,
) -> Optional[SuggestedStop]:
    """
    Suggest a 15-min stretch once the break interval has elapsed.

    minutes_already_stopped is what a fuel stop at the same boundary already
    added to the clock; only the remainder of the break is added on top so a
    fuel + rest pair is not double-counted.  Short hops never get a break.
    """
    hours_since_break = (state.current_time - state.last_break_time).total_seconds() / 3600
    if hours_since_break < state.rest_break_interval or segment.duration_minutes <= REST_MIN_SEGMENT_MINUTES:
        return None

    drivers = f"{config.num_drivers} drivers" if config.num_drivers > 1 else "solo driver"

    state.last_break_time = state.current_time
    remaining = max(0, REST_BREAK_MINUTES - minutes_already_stopped)
    state.current_time = state.current_time + timedelta(minutes=remaining)

    return SuggestedStop(
        id=f"rest-{index}",
        kind="rest",
        reason=(
            f"{hours_since_break:.1f} hours behind the wheel ({drivers}). Take a 15-minute break "
            f"to stretch, use the restroom, and stay alert."
        ),
        after_segment_index=index - 1,
        estimated_time=state.last_break_time,
        duration_minutes=REST_BREAK_MINUTES,
        priority="recommended",
        details=StopDetails(hours_on_road=state.hours_on_road),
        day_number=state.current_day_number,
    )


def _meal_at(start: datetime, hour: float) -> datetime:
    midnight = start.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(hours=hour)


def check_meal_stop(
    state: SimState,
    segment: RouteSegment,
    index: int,
    segment_start_time: datetime,
    arriving_home: bool = False,
) -> Optional[SuggestedStop]:
    """
    Lunch (12:00) or dinner (18:00) falling inside this segment's drive.

    A segment that crosses into another zone is checked against the meal
    hour in both zones, so a CDT → EDT leg still catches noon Eastern.  No
    meal on the final leg home of a round trip.
    """
    if arriving_home:
        return None

    segment_end = segment_start_time + timedelta(minutes=segment.duration_minutes)
    tz_shift = get_timezone_shift_hours(state.current_tz_abbr, segment.timezone_abbr)

    def crosses(ts: datetime) -> bool:
        return segment_start_time < ts <= segment_end

    found: dict[str, datetime] = {}
    for meal, hour in MEAL_HOURS.items():
        origin_ts = _meal_at(segment_start_time, hour)
        dest_ts = _meal_at(segment_start_time, hour - tz_shift) if tz_shift else origin_ts
        if crosses(origin_ts) or crosses(dest_ts):
            found[meal] = origin_ts

    meal = "lunch" if "lunch" in found else "dinner" if "dinner" in found else None
    if meal is None:
        return None

    meal_ts = found[meal]
    hours_until = (meal_ts - segment_start_time).total_seconds() / 3600
    hours_at_meal = state.hours_on_road + hours_until
    label = meal.capitalize()
    clock = "12:00 PM" if meal == "lunch" else "6:00 PM"

    return SuggestedStop(
        id=f"meal-{meal}-{index}",
        kind="meal",
        reason=(
            f"{label} break around {clock}. You'll have driven {hours_at_meal:.1f} hours. "
            f"Refuel yourself and your vehicle with a proper meal."
        ),
        after_segment_index=index,
        estimated_time=meal_ts,
        duration_minutes=MEAL_MINUTES,
        priority="optional",
        details=StopDetails(hours_on_road=hours_at_meal),
        day_number=state.current_day_number,
    )
