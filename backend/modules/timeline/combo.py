"""
modules/timeline/combo.py
--------------------------
Fuel + meal / fuel + rest combo stops.

A flexible stop (meal, rest) shortly after a mandatory one (fuel) is done at
the fuel stop instead: "lunch at 12, fuel at 12:40 near Dryden: do both at
Dryden, 45 min total instead of 1 h."

Pure function over an event list; never mutates its input.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional, Sequence

from modules.planning.trip_constants import (
    COMBO_FLEX_WINDOW_MINUTES,
    COMBO_FUEL_MEAL_MINUTES,
    COMBO_FUEL_REST_MINUTES,
)
from schemas.timeline import TimedEvent

_FLEXIBLE = ("meal", "rest")


def meal_label(arrival: datetime) -> str:
    """Breakfast before 10:30, dinner from 17:00, lunch in between."""
    if arrival.hour < 10 or (arrival.hour == 10 and arrival.minute < 30):
        return "Breakfast"
    if arrival.hour >= 17:
        return "Dinner"
    return "Lunch"


def _find_flexible(events: list[TimedEvent], fuel_index: int, window_minutes: float) -> Optional[int]:
    """Index of the first meal/rest starting 0..window minutes after the fuel stop ends."""
    fuel = events[fuel_index]
    for j in range(fuel_index + 1, len(events)):
        candidate = events[j]
        if candidate.kind not in _FLEXIBLE:
            continue
        gap = (candidate.arrival_time - fuel.departure_time).total_seconds() / 60
        if gap < 0:
            continue
        if gap > window_minutes:
            return None
        return j
    return None


def _shift(event: TimedEvent, delta: timedelta) -> TimedEvent:
    if not delta:
        return event
    return replace(event, arrival_time=event.arrival_time + delta, departure_time=event.departure_time + delta)


def apply_combo_optimization(
    events: Sequence[TimedEvent],
    flex_window_minutes: float = COMBO_FLEX_WINDOW_MINUTES,
) -> list[TimedEvent]:
    """
    Merge each fuel event with the next meal/rest inside the window.

    The combo takes the fuel stop's place, time and location (45 min with a
    meal, 20 min with a rest).  The flexible event is dropped.  Events
    between the two move by the combo's extra length; events after the
    dropped one additionally move earlier by its duration.
    """
    result = list(events)
    i = 0
    while i < len(result):
        fuel = result[i]
        if fuel.kind != "fuel":
            i += 1
            continue
        j = _find_flexible(result, i, flex_window_minutes)
        if j is None:
            i += 1
            continue

        flex = result[j]
        is_meal = flex.kind == "meal"
        combo_minutes = COMBO_FUEL_MEAL_MINUTES if is_meal else COMBO_FUEL_REST_MINUTES
        saved = max(0.0, fuel.duration_minutes + flex.duration_minutes - combo_minutes)

        combo = replace(
            fuel,
            id=f"combo-{fuel.id}-{flex.id}",
            kind="combo",
            departure_time=fuel.arrival_time + timedelta(minutes=combo_minutes),
            duration_minutes=combo_minutes,
            stops=fuel.stops + flex.stops,
            time_saved_minutes=saved,
            combo_label=f"Fuel + {meal_label(fuel.arrival_time)}" if is_meal else "Fuel + Break",
        )

        extra = timedelta(minutes=combo_minutes - fuel.duration_minutes)
        recovered = timedelta(minutes=flex.duration_minutes)
        result[i] = combo
        for k in range(i + 1, len(result)):
            if k == j:
                continue
            result[k] = _shift(result[k], extra if k < j else extra - recovered)
            # The morning after an overnight starts at a fixed hour
            if result[k].kind == "overnight":
                break
        del result[j]
        i += 1

    return result
