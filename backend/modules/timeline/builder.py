"""
modules/timeline/builder.py
----------------------------
Turns route segments + the consolidated stop list into a flat, clock-annotated
itinerary:

    departure → drive → stop → drive → … → waypoint → … → arrival

The walk runs over legs: the route segments, or with a day plan the
segments each driving day actually drives (long legs split into TransitPart
slices), the same way the stop simulation walks them.  Stops are matched to
a leg by their original segment anchor and, with a day plan, their day.

Per leg (original segment i):
  1. boundary stops held over from the previous leg.  They are stamped
     after the timezone shift into this leg, like the simulation's fuel and
     rest checks.  When they hold an overnight, or a new driving day starts,
     they close the previous day first and the shift applies to the morning
     clock instead.
  2. new driving day: clock to that day's departure
  3. round-trip destination dwell (before the first return segment)
  4. boundary stops anchored at i-1 on a leg that continues a split segment
     or opens a day
  5. mid-drive stops: en-route stops anchored at i-1 (ordinal > 0), meals
     anchored at i whose time falls inside the drive, and on the first leg
     anything anchored before it.  The drive is split around them by
     elapsed-time fraction; degenerate fractions fall back to even spacing.
  6. waypoint / arrival marker
  7. boundary stops anchored at i (fuel first, overnight last) are held for
     the next leg

Every timestamp is re-derived from the running clock and the stops'
(merged) durations; the stops' own estimated_time is only used to order
and place mid-drive stops.  Overnights jump the clock to the next driving
day's departure.  A seen-set guarantees each stop is emitted at most once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence

from modules.geo.timezones import (
    get_timezone_shift_hours,
    get_utc_offset_hours,
    lng_to_iana,
    normalize_to_iana,
)
from modules.observability.logger import StructuredLogger, get_trip_logger, new_trip_id
from modules.planning.trip_constants import (
    DEGENERATE_FRACTION_HIGH,
    DEGENERATE_FRACTION_LOW,
    LOCATION_HINT_ORIGIN_KM,
    MIN_SUB_DRIVE_KM,
)
from schemas.timeline import EventKind, TimedEvent
from schemas.trip import RouteSegment, SuggestedStop, TripConfig, TripDay

logger = logging.getLogger(__name__)


def format_duration(minutes: float) -> str:
    """45 → '45 min', 60 → '1h', 75 → '1h 15min'."""
    m = round(minutes)
    if m < 60:
        return f"{m} min"
    hours, rem = divmod(m, 60)
    return f"{hours}h" if rem == 0 else f"{hours}h {rem}min"


def segment_timezone(segment: RouteSegment) -> Optional[str]:
    """IANA zone for a segment: its abbreviation when known, else its start longitude."""
    if get_utc_offset_hours(segment.timezone_abbr) is not None:
        return normalize_to_iana(segment.timezone_abbr)
    if segment.from_loc.lat or segment.from_loc.lng:
        return lng_to_iana(segment.from_loc.lng)
    return None


def _boundary_order(stop: SuggestedStop) -> int:
    if stop.kind == "fuel":
        return 0
    if stop.kind == "overnight":
        return 2
    return 1


def _is_meal(stop: SuggestedStop) -> bool:
    """Meals, including merged stops that kept a meal's anchor."""
    return stop.kind == "meal" or stop.id.startswith(("meal-", "merged-meal-"))


@dataclass(frozen=True)
class _Leg:
    segment: RouteSegment
    index: int                  # original route segment index
    flat: int                   # position in the walk; names the drive events
    day: Optional[TripDay]
    last_of_segment: bool       # no later slice of the same segment follows
    last_of_day: bool

    def holds(self, stop: SuggestedStop) -> bool:
        """Stop belongs to this leg's day (always true without a day plan)."""
        return self.day is None or stop.day_number is None or stop.day_number == self.day.day_number


def _build_legs(segments: Sequence[RouteSegment], days: Optional[Sequence[TripDay]]) -> list[_Leg]:
    driving_days = [d for d in (days or []) if d.is_driving_day]
    if not driving_days:
        return [_Leg(seg, i, i, None, True, True) for i, seg in enumerate(segments)]

    planned: list[tuple[RouteSegment, int, TripDay]] = []
    for day in driving_days:
        for pos, seg in enumerate(day.driven_segments(list(segments))):
            planned.append((seg, day.source_index(seg, pos), day))

    legs = []
    for flat, (seg, index, day) in enumerate(planned):
        nxt = planned[flat + 1] if flat + 1 < len(planned) else None
        legs.append(_Leg(
            segment=seg, index=index, flat=flat, day=day,
            last_of_segment=nxt is None or nxt[1] != index,
            last_of_day=nxt is None or nxt[2] is not day,
        ))
    return legs


class _TimelineWalk:
    """Running clock + event list for one build."""

    def __init__(
        self,
        segments: Sequence[RouteSegment],
        config: TripConfig,
        days: Optional[Sequence[TripDay]],
    ) -> None:
        self.segments = segments
        self.config = config
        self.driving_days = [d for d in (days or []) if d.is_driving_day]
        self.origin = segments[0].from_loc.name
        self.clock: datetime = config.departure_time
        self.km = 0.0
        self.tz_abbr = segments[0].timezone_abbr
        self.tz: Optional[str] = (
            lng_to_iana(segments[0].from_loc.lng)
            if segments[0].from_loc.lat or segments[0].from_loc.lng
            else segment_timezone(segments[0])
        )
        self.events: list[TimedEvent] = []
        self.seen: set[str] = set()

    # ── helpers ───────────────────────────────────────────────────────────

    def location_hint(self, km: float) -> str:
        if km < LOCATION_HINT_ORIGIN_KM:
            return self.origin
        return f"~{round(km / 5) * 5} km from {self.origin}"

    def marker(self, event_id: str, kind: EventKind, name: str) -> None:
        self.events.append(TimedEvent(
            id=event_id, kind=kind,
            arrival_time=self.clock, departure_time=self.clock,
            duration_minutes=0, distance_from_origin_km=self.km,
            location_hint=name, timezone=self.tz,
        ))

    def departure_on(self, day: TripDay) -> datetime:
        if day.departure_time is not None:
            return day.departure_time
        dep = self.config.departure_time
        return datetime.combine(datetime.fromisoformat(day.date).date(), dep.time()).replace(second=0, microsecond=0)

    def next_morning(self, after: datetime) -> datetime:
        """Departure of the next driving day after `after`'s date."""
        for day in self.driving_days:
            if datetime.fromisoformat(day.date).date() > after.date():
                return self.departure_on(day)
        dep = self.config.departure_time
        return (after + timedelta(days=1)).replace(hour=dep.hour, minute=dep.minute, second=0, microsecond=0)

    def start_day(self, day: TripDay) -> None:
        """Clock to the day's departure; never backwards."""
        self.clock = max(self.clock, self.departure_on(day))

    # ── emitters ──────────────────────────────────────────────────────────

    def stop(self, stop: SuggestedStop) -> None:
        if stop.id in self.seen:
            return
        self.seen.add(stop.id)
        arrival = self.clock
        departure = arrival + timedelta(minutes=stop.duration_minutes)
        self.events.append(TimedEvent(
            id=f"event-{stop.id}", kind=stop.kind,
            arrival_time=arrival, departure_time=departure,
            duration_minutes=stop.duration_minutes,
            distance_from_origin_km=self.km,
            location_hint=self.location_hint(self.km),
            timezone=self.tz,
            stops=(stop,),
        ))
        self.clock = self.next_morning(arrival) if stop.kind == "overnight" else departure

    def drive(self, km: float, minutes: float, seg_index: int, sub_index: Optional[int] = None) -> None:
        start_km = self.km
        end = self.clock + timedelta(minutes=minutes)
        event_id = f"drive-{seg_index}" if sub_index is None else f"drive-{seg_index}-{sub_index}"
        self.events.append(TimedEvent(
            id=event_id, kind="drive",
            arrival_time=self.clock, departure_time=end,
            duration_minutes=minutes,
            distance_from_origin_km=start_km,
            location_hint=self.location_hint(start_km),
            timezone=self.tz,
            segment_distance_km=km,
            segment_duration_minutes=minutes,
        ))
        self.km += km
        self.clock = end

    def dwell(self, minutes: float, name: str) -> None:
        end = self.clock + timedelta(minutes=minutes)
        self.events.append(TimedEvent(
            id="destination", kind="destination",
            arrival_time=self.clock, departure_time=end,
            duration_minutes=minutes, distance_from_origin_km=self.km,
            location_hint=name, timezone=self.tz,
        ))
        self.clock = end

    def shift_into(self, segment: RouteSegment) -> None:
        """Same wall-clock rule as the simulation; split slices never shift."""
        zone = segment_timezone(segment)
        if zone:
            self.tz = zone
        abbr = segment.timezone_abbr
        if segment.transit_part is not None or not abbr or abbr == self.tz_abbr:
            return
        self.clock += timedelta(hours=get_timezone_shift_hours(self.tz_abbr, abbr))
        self.tz_abbr = abbr

    # ── per-leg ───────────────────────────────────────────────────────────

    def classify(
        self,
        leg: _Leg,
        stops: Sequence[SuggestedStop],
        first: bool,
    ) -> tuple[list[SuggestedStop], list[SuggestedStop], list[SuggestedStop]]:
        """(boundary-before, mid-drive, boundary-after) stops for a leg starting now."""
        seg_start = self.clock
        seg_end = seg_start + timedelta(minutes=leg.segment.duration_minutes)
        before: list[SuggestedStop] = []
        mid: list[SuggestedStop] = []
        post: list[SuggestedStop] = []
        for s in stops:
            if s.dismissed or s.id in self.seen or not leg.holds(s):
                continue
            inside = seg_start < s.estimated_time < seg_end
            if s.after_segment_index == leg.index - 1:
                if s.is_en_route or first or inside:
                    mid.append(s)
                else:
                    before.append(s)
            elif s.after_segment_index == leg.index:
                if s.is_en_route:
                    continue   # belongs to the next segment's drive
                if _is_meal(s) and inside:
                    mid.append(s)
                elif leg.last_of_segment or leg.last_of_day:
                    post.append(s)
        mid.sort(key=lambda s: (s.estimated_time, s.ordinal))
        before.sort(key=_boundary_order)
        post.sort(key=_boundary_order)
        return before, mid, post

    def split_drive(self, leg: _Leg, mid: list[SuggestedStop]) -> None:
        seg_start = self.clock
        seg_km, seg_min = leg.segment.distance_km, leg.segment.duration_minutes
        total_sec = seg_min * 60
        fractions = [
            max(0.0, min(1.0, (s.estimated_time - seg_start).total_seconds() / total_sec))
            if total_sec > 0 else -1.0
            for s in mid
        ]
        if any(f <= DEGENERATE_FRACTION_LOW or f >= DEGENERATE_FRACTION_HIGH for f in fractions):
            n = len(mid)
            fractions = [(k + 1) / (n + 1) for k in range(n)]

        driven_km = driven_min = 0.0
        for m, (stop, fraction) in enumerate(zip(mid, fractions)):
            stop_km, stop_min = seg_km * fraction, seg_min * fraction
            leg_km = max(0.0, stop_km - driven_km)
            leg_min = max(0.0, stop_min - driven_min)
            if leg_km > MIN_SUB_DRIVE_KM:
                self.drive(leg_km, leg_min, leg.flat, m)
            else:
                self.km += leg_km
                self.clock += timedelta(minutes=leg_min)
            driven_km, driven_min = stop_km, stop_min
            self.stop(stop)

        remain_km, remain_min = seg_km - driven_km, seg_min - driven_min
        if remain_km > MIN_SUB_DRIVE_KM:
            self.drive(remain_km, remain_min, leg.flat, len(mid))
        else:
            self.km += remain_km
            self.clock += timedelta(minutes=max(0.0, remain_min))


def build_timed_timeline(
    segments: Sequence[RouteSegment],
    stops: Sequence[SuggestedStop],
    config: TripConfig,
    round_trip_midpoint: Optional[int] = None,
    destination_stay_minutes: float = 0,
    days: Optional[Sequence[TripDay]] = None,
    trip_id: Optional[str] = None,
    trip_logger: Optional[StructuredLogger] = None,
) -> list[TimedEvent]:
    """
    Build the itinerary for `segments` given the (consolidated) `stops`.

    round_trip_midpoint: index of the first return segment; with a positive
    destination_stay_minutes a `destination` dwell event is inserted right
    before it.  days: optional day plan; its driving days' sub-segments are
    walked day by day and overnights skip its rest days.  trip_id: the
    simulation's trip id, so both passes log to one trip file.
    """
    if not segments:
        return []

    walk = _TimelineWalk(segments, config, days)
    legs = _build_legs(segments, days)
    walk.marker("departure", "departure", walk.origin)

    held: list[SuggestedStop] = []
    for k, leg in enumerate(legs):
        prev = legs[k - 1] if k > 0 else None
        new_day = prev is not None and leg.day is not None and leg.day is not prev.day

        if held and (new_day or any(s.kind == "overnight" for s in held)):
            for stop in held:
                walk.stop(stop)
            held = []
        if new_day:
            walk.start_day(leg.day)
        walk.shift_into(leg.segment)
        for stop in held:
            walk.stop(stop)
        held = []

        opens_segment = prev is None or prev.index != leg.index
        if (
            round_trip_midpoint is not None and leg.index == round_trip_midpoint
            and opens_segment and destination_stay_minutes > 0 and leg.index > 0
        ):
            walk.dwell(destination_stay_minutes, segments[leg.index - 1].to_loc.name)

        before, _, _ = walk.classify(leg, stops, first=k == 0)
        for stop in before:
            walk.stop(stop)

        _, mid, post = walk.classify(leg, stops, first=k == 0)
        if mid:
            walk.split_drive(leg, mid)
        else:
            walk.drive(leg.segment.distance_km, leg.segment.duration_minutes, leg.flat)

        if k == len(legs) - 1:
            walk.marker("arrival", "arrival", leg.segment.to_loc.name)
        elif leg.last_of_segment and legs[k + 1].segment.from_loc.name != leg.segment.to_loc.name:
            walk.marker(f"waypoint-{leg.index}", "waypoint", leg.segment.to_loc.name)

        held = post

    for stop in held:
        walk.stop(stop)

    leftovers = [s for s in stops if not s.dismissed and s.id not in walk.seen]
    if leftovers:
        logger.warning("Timeline skipped %d stop(s) with no matching segment: %s",
                       len(leftovers), [s.id for s in leftovers])

    logger.info("Timeline built: %d event(s) for %d leg(s)", len(walk.events), len(legs))
    trip_logger = trip_logger if trip_logger is not None else get_trip_logger()
    if trip_logger is not None:
        trip_logger.append(trip_id or new_trip_id(), "timeline_built", {
            "events": [e.to_dict() for e in walk.events],
        })
    return walk.events
