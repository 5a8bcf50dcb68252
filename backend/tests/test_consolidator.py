from datetime import datetime

from modules.stops.consolidator import consolidate_stops, merge_pair
from schemas.trip import FuelDetails, StopDetails


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 8, 16, hour, minute)


def test_empty_and_single_pass_through(make_stop):
    assert consolidate_stops([]) == []
    only = make_stop("fuel-1", "fuel")
    assert consolidate_stops([only]) == [only]


def test_three_colliding_stops_collapse_into_one(make_stop):
    meal = make_stop("meal-lunch-0", "meal", at=at(12), duration=45, priority="optional")
    fuel = make_stop(
        "fuel-1", "fuel", after=1, at=at(12, 20), duration=15, priority="required",
        details=StopDetails(fuel=FuelDetails(litres=40.0, cost=60.0)),
    )
    rest = make_stop("rest-1", "rest", after=1, at=at(12, 50), duration=15,
                     details=StopDetails(hours_on_road=4.0))

    [merged] = consolidate_stops([meal, fuel, rest])

    assert merged.id == "merged-merged-meal-lunch-0-fuel-1-rest-1"
    assert merged.kind == "fuel"
    assert merged.duration_minutes == 45
    assert merged.priority == "required"
    assert merged.estimated_time == at(12)
    assert merged.after_segment_index == 0
    assert merged.details.fuel.litres == 40.0
    assert merged.details.hours_on_road == 4.0
    assert merged.reason.startswith("test fuel stop")
    assert "\nAlso includes meal stop: test meal stop" in merged.reason
    assert "\nAlso includes rest stop: test rest stop" in merged.reason


def test_window_is_measured_from_the_accumulator(make_stop):
    stops = [
        make_stop("fuel-1", "fuel", at=at(10)),
        make_stop("rest-2", "rest", at=at(10, 50)),
        make_stop("meal-lunch-3", "meal", at=at(11, 10)),
    ]
    out = consolidate_stops(stops)
    assert [s.id for s in out] == ["merged-fuel-1-rest-2", "meal-lunch-3"]


def test_stops_just_outside_window_stay_separate(make_stop):
    stops = [make_stop("fuel-1", "fuel", at=at(10)), make_stop("rest-2", "rest", at=at(11, 1))]
    assert consolidate_stops(stops) == stops
    assert len(consolidate_stops(stops, window_minutes=61)) == 1


def test_consolidation_is_idempotent(make_stop):
    stops = [
        make_stop("fuel-0", "fuel", at=at(9)),
        make_stop("rest-1", "rest", at=at(9, 30)),
        make_stop("meal-lunch-1", "meal", at=at(12), duration=45),
        make_stop("fuel-2", "fuel", at=at(12, 40)),
        make_stop("rest-3", "rest", at=at(14, 30)),
        make_stop("overnight-3", "overnight", at=at(19), duration=480),
    ]
    once = consolidate_stops(stops)
    assert consolidate_stops(once) == once
    assert len(once) == 4


def test_overnight_outranks_fuel(make_stop):
    fuel = make_stop("fuel-3", "fuel", at=at(19), priority="required")
    night = make_stop("overnight-3", "overnight", after=3, at=at(19, 15), duration=480)
    merged = merge_pair(fuel, night)
    assert merged.kind == "overnight"
    assert merged.duration_minutes == 480
    assert merged.priority == "required"
    assert merged.reason.startswith("test overnight stop\nAlso includes fuel stop")
    # anchor and time stay the accumulator's
    assert merged.estimated_time == at(19)
    assert merged.after_segment_index == 0


def test_tie_keeps_the_accumulator(make_stop):
    first = make_stop("rest-1", "rest", reason="first")
    second = make_stop("rest-2", "rest", reason="second")
    merged = merge_pair(first, second)
    assert merged.reason == "first\nAlso includes rest stop: second"


def test_later_details_win_on_collision(make_stop):
    a = make_stop("rest-1", "rest", details=StopDetails(hours_on_road=2.0))
    b = make_stop("rest-2", "rest", details=StopDetails(hours_on_road=3.5))
    assert merge_pair(a, b).details.hours_on_road == 3.5


def test_merge_does_not_mutate_inputs(make_stop):
    a = make_stop("fuel-1", "fuel")
    b = make_stop("meal-lunch-1", "meal", duration=45)
    merge_pair(a, b)
    assert a.id == "fuel-1" and a.duration_minutes == 15
