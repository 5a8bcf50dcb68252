"""
modules/stops/day_checks.py
----------------------------
Day-boundary and overnight scheduling for the stop simulation.

  handle_day_boundary_reset  fresh morning at the start of a planned driving day
  check_arrival_window       stop early rather than arrive after 9 PM
  drive_segment              burn fuel and hours for one segment
  check_overnight_stop       daily driving limit reached
  apply_timezone_shift       wall-clock jump when entering a new zone

All functions mutate the SimState in place.  The timezone is never reset at
a day boundary: the traveller starts the next day where they slept.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Mapping, Optional

from modules.geo.timezones import format_clock, get_timezone_shift_hours
from modules.planning.trip_constants import LATEST_ARRIVAL_HOUR, OVERNIGHT_MINUTES
from modules.stops.sim_state import SimState
from schemas.trip import RouteSegment, StopDetails, SuggestedStop, TripConfig, TripDay

logger = logging.getLogger(__name__)


def _next_morning(day: datetime, config: TripConfig) -> datetime:
    """The calendar day after `day` at the trip's departure hour."""
    dep = config.departure_time
    return (day + timedelta(days=1)).replace(hour=dep.hour, minute=dep.minute, second=0, microsecond=0)


def _day_start(day: TripDay, config: TripConfig) -> datetime:
    if day.departure_time is not None:
        return day.departure_time
    dep = config.departure_time
    return datetime.fromisoformat(day.date).replace(hour=dep.hour, minute=dep.minute, second=0, microsecond=0)


def _decimal_hour(dt: datetime) -> float:
    return dt.hour + dt.minute / 60


def handle_day_boundary_reset(
    state: SimState,
    flat_index: int,
    day_starts: Mapping[int, TripDay],
    config: TripConfig,
) -> None:
    """Start a new driving day when `flat_index` opens one (multi-day trips)."""
    day = day_starts.get(flat_index)
    if day is None:
        return
    state.start_day(_day_start(day, config), config.tank_size_litres, day.day_number)
    logger.debug("Day %d starts %s", day.day_number, state.current_time.isoformat())


def check_arrival_window(
    state: SimState,
    segment: RouteSegment,
    index: int,
    config: TripConfig,
    days_with_hotel: set[int],
) -> Optional[SuggestedStop]:
    """
    Overnight before `segment` when driving it would land after the check-in
    deadline (local time at the destination), or would run past midnight on
    a leg longer than an hour.  Never fires before the first segment of a day.

    When the current day already has a booked hotel no stop is emitted, but
    the state still rolls over to the next morning.
    """
    if state.total_driving_today == 0:
        return None

    shift = get_timezone_shift_hours(state.current_tz_abbr, segment.timezone_abbr)
    projected = state.current_time + timedelta(minutes=segment.duration_minutes, hours=shift)
    arrival_decimal = _decimal_hour(projected)
    late = arrival_decimal >= LATEST_ARRIVAL_HOUR or (
        segment.duration_minutes > 60 and arrival_decimal < _decimal_hour(state.current_time)
    )
    if not late:
        return None

    stop = None
    if state.current_day_number not in days_with_hotel:
        tz_label = segment.timezone_abbr or state.current_tz_abbr or ""
        tz_suffix = f" {tz_label}" if tz_label else ""
        stop = SuggestedStop(
            id=f"overnight-arrival-{index}",
            kind="overnight",
            reason=(
                f"Stopping for the night, continuing to {segment.to_loc.name} would mean arriving "
                f"around {format_clock(projected)}{tz_suffix}, past the 9 PM check-in window. "
                f"Rest up and depart fresh at {format_clock(config.departure_time)} tomorrow."
            ),
            after_segment_index=index - 1,
            estimated_time=state.current_time,
            duration_minutes=OVERNIGHT_MINUTES,
            priority="required",
            details=StopDetails(hours_on_road=state.hours_on_road),
            day_number=state.current_day_number,
        )

    state.start_day(_next_morning(state.current_time, config), config.tank_size_litres)
    return stop


def drive_segment(
    state: SimState,
    segment: RouteSegment,
    segment_start_time: datetime,
    config: TripConfig,
) -> datetime:
    """Consume fuel and driving hours for `segment`; returns the arrival time."""
    hours = segment.duration_minutes / 60
    state.current_fuel -= config.fuel_for(segment)
    state.hours_on_road += hours
    state.total_driving_today += hours
    return segment_start_time + timedelta(minutes=segment.duration_minutes)


def check_overnight_stop(
    state: SimState,
    index: int,
    config: TripConfig,
    days_with_hotel: set[int],
    arrival_time: datetime,
    is_final_segment: bool,
) -> Optional[SuggestedStop]:
    """
    Overnight after segment `index` once the daily limit is reached.
    Otherwise (or on the final segment) the clock simply moves to arrival.
    """
    if state.total_driving_today < config.max_drive_hours_per_day or is_final_segment:
        state.current_time = arrival_time
        return None

    stop = None
    if state.current_day_number not in days_with_hotel:
        max_hours = config.max_drive_hours_per_day
        max_text = "1 hour" if max_hours == 1 else f"{max_hours:g} hours"
        stop = SuggestedStop(
            id=f"overnight-{index}",
            kind="overnight",
            reason=(
                f"You've reached your daily driving limit ({state.total_driving_today:.1f} hours driven, "
                f"max {max_text}/day). Find a hotel, get dinner, and recharge for tomorrow."
            ),
            after_segment_index=index,
            estimated_time=arrival_time,
            duration_minutes=OVERNIGHT_MINUTES,
            priority="required",
            details=StopDetails(hours_on_road=state.hours_on_road),
            day_number=state.current_day_number,
        )

    state.start_day(_next_morning(arrival_time, config), config.tank_size_litres)
    return stop


def apply_timezone_shift(state: SimState, segment: RouteSegment) -> None:
    """Entering segment.timezone_abbr: CDT → EDT moves the clock forward 1 h."""
    abbr = segment.timezone_abbr
    if not abbr or abbr == state.current_tz_abbr:
        return
    shift = timedelta(hours=get_timezone_shift_hours(state.current_tz_abbr, abbr))
    state.current_time += shift
    state.last_break_time += shift
    state.current_tz_abbr = abbr
