from datetime import datetime, timedelta

import pytest

from modules.timeline.combo import apply_combo_optimization, meal_label
from schemas.timeline import TimedEvent


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 8, 16, hour, minute)


def event(event_id, kind, start, minutes, km=0.0):
    return TimedEvent(
        id=event_id, kind=kind,
        arrival_time=start, departure_time=start + timedelta(minutes=minutes),
        duration_minutes=minutes, distance_from_origin_km=km,
        location_hint="~300 km from Winnipeg",
    )


def fuel_then(kind, minutes, gap_minutes=45):
    """fuel 12:00 → drive → flexible stop → drive → arrival."""
    flex_start = at(12, 15) + timedelta(minutes=gap_minutes)
    return [
        event("event-fuel-1", "fuel", at(12), 15, km=300),
        event("drive-1-1", "drive", at(12, 15), gap_minutes, km=300),
        event(f"event-{kind}-1", kind, flex_start, minutes, km=345),
        event("drive-1-2", "drive", flex_start + timedelta(minutes=minutes), 60, km=345),
        event("arrival", "arrival", flex_start + timedelta(minutes=minutes + 60), 0, km=445),
    ]


def test_fuel_and_lunch_become_one_stop():
    events = fuel_then("meal", 45)
    result = apply_combo_optimization(events)

    assert [e.id for e in result] == ["combo-event-fuel-1-event-meal-1", "drive-1-1", "drive-1-2", "arrival"]
    combo = result[0]
    assert combo.kind == "combo"
    assert combo.combo_label == "Fuel + Lunch"
    assert combo.duration_minutes == 45
    assert combo.time_saved_minutes == 15
    assert (combo.arrival_time, combo.departure_time) == (at(12), at(12, 45))
    assert combo.distance_from_origin_km == 300
    # events between move by the combo's extra 30 min
    assert (result[1].arrival_time, result[1].departure_time) == (at(12, 45), at(13, 30))
    # events after the dropped meal move 15 min earlier overall
    assert result[2].arrival_time == at(13, 30)
    assert result[3].arrival_time == at(14, 30)


def test_fuel_and_rest_become_a_short_break():
    result = apply_combo_optimization(fuel_then("rest", 15))
    combo = result[0]
    assert combo.combo_label == "Fuel + Break"
    assert combo.duration_minutes == 20
    assert combo.time_saved_minutes == 10
    assert result[-1].arrival_time == at(14, 15) - timedelta(minutes=10)


def test_flexible_stop_outside_window_is_left_alone():
    events = fuel_then("meal", 45, gap_minutes=120)
    assert apply_combo_optimization(events) == events


def test_input_is_not_mutated():
    events = fuel_then("meal", 45)
    before = list(events)
    apply_combo_optimization(events)
    assert events == before


def test_combo_shift_stops_at_overnight():
    night_start = at(19)
    events = fuel_then("rest", 15)[:-1] + [
        event("event-overnight-1", "overnight", night_start, 480, km=445),
        event("drive-2", "drive", datetime(2026, 8, 17, 8, 0), 60, km=445),
    ]
    result = apply_combo_optimization(events)

    assert result[-2].arrival_time == night_start - timedelta(minutes=10)
    assert result[-1].arrival_time == datetime(2026, 8, 17, 8, 0)


@pytest.mark.parametrize("clock, label", [
    (at(7), "Breakfast"),
    (at(10, 29), "Breakfast"),
    (at(10, 30), "Lunch"),
    (at(16, 59), "Lunch"),
    (at(17), "Dinner"),
])
def test_meal_label(clock, label):
    assert meal_label(clock) == label
