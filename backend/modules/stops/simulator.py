"""
modules/stops/simulator.py
---------------------------
Stop-suggestion simulation driver.

Walks the route once, segment by segment, threading one SimState through
the stop checks in a fixed order:

    day-boundary reset → arrival window → timezone shift → since-fill
    counters → hub name → fuel → rest → meal → en-route fuel → drive →
    mid-leg fill sync → overnight (daily limit)

With a day plan the walk runs over the days' sub-segments (long legs split
into TransitPart slices).  Every emitted stop is re-anchored to the original
segment index so consumers can line stops up with the user-visible route.

The hub cache is the only shared resource touched; its pending writes are
flushed once at the end of run().
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional, Sequence

from modules.geo.distance import interpolate_route_position, locate_on_route
from modules.hubs.hub_cache import HubCache, get_hub_cache
from modules.observability.logger import StructuredLogger, get_trip_logger, new_trip_id
from modules.planning.trip_constants import (
    DESTINATION_GRACE_KM,
    FREQUENCY_BUFFERS,
    HOTEL_OVERNIGHT_MINUTES,
    MEAL_FUEL_COMBO_WINDOW_HOURS,
)
from modules.stops.break_checks import check_meal_stop, check_rest_break
from modules.stops.consolidator import consolidate_stops
from modules.stops.day_checks import (
    apply_timezone_shift,
    check_arrival_window,
    check_overnight_stop,
    drive_segment,
    handle_day_boundary_reset,
)
from modules.stops.fuel_checks import HubHit, HubResolver, check_fuel_stop, get_en_route_fuel_stops
from modules.stops.sim_state import SimState
from schemas.trip import RouteSegment, StopDetails, SuggestedStop, TripConfig, TripDay

logger = logging.getLogger(__name__)


def _has_coords(segment: RouteSegment) -> bool:
    return not (segment.from_loc.lat == 0 and segment.from_loc.lng == 0)


class StopSimulator:
    """
    One simulation pass over a trip.  Not reusable across trips: build a new
    simulator (and therefore a new SimState) per call.
    """

    def __init__(
        self,
        segments: Sequence[RouteSegment],
        config: TripConfig,
        days: Optional[Sequence[TripDay]] = None,
        hub_cache: Optional[HubCache] = None,
        trip_logger: Optional[StructuredLogger] = None,
        trip_id: Optional[str] = None,
    ) -> None:
        self.segments = list(segments)
        self.config = config
        self.days = list(days) if days is not None else None
        self.hub_cache = hub_cache if hub_cache is not None else get_hub_cache()
        self.trip_logger = trip_logger if trip_logger is not None else get_trip_logger()
        self.trip_id = trip_id or new_trip_id()

        self.safe_range_km = config.vehicle_range_km * (1 - FREQUENCY_BUFFERS[config.stop_frequency])
        self.state = SimState.initial(config, self.segments)
        # Fuel left after each simulated segment (before any overnight refill)
        self.fuel_trace: list[float] = []

        self._sim_segments: list[tuple[RouteSegment, int]] = []
        self._day_starts: dict[int, TripDay] = {}
        self._flatten()

        self._days_with_hotel = {
            d.day_number for d in (self.days or []) if d.overnight is not None
        }

    # ── setup ─────────────────────────────────────────────────────────────

    def _flatten(self) -> None:
        """(segment, original index) pairs plus the flat indices that open a new day."""
        if self.days is None:
            self._sim_segments = [(seg, i) for i, seg in enumerate(self.segments)]
            return

        driving_days = [d for d in self.days if d.is_driving_day]
        for n, day in enumerate(driving_days):
            if n > 0:
                self._day_starts[len(self._sim_segments)] = day
            for pos, seg in enumerate(day.driven_segments(self.segments)):
                self._sim_segments.append((seg, day.source_index(seg, pos)))

    # ── hub lookups ───────────────────────────────────────────────────────

    def _geometry(self) -> Optional[list[list[float]]]:
        geometry = self.config.full_geometry
        return geometry if geometry and len(geometry) > 1 else None

    def _segment_hub_name(self, segment: RouteSegment, segment_start_km: float) -> Optional[str]:
        """Hub near the segment's start point, else near its midpoint on the route."""
        if _has_coords(segment):
            hub = self.hub_cache.find_window_hub(segment.from_loc.lat, segment.from_loc.lng)
            if hub is not None:
                return hub.name
        geometry = self._geometry()
        if geometry is None:
            return None
        pos = interpolate_route_position(geometry, segment_start_km + segment.distance_km * 0.5)
        if pos is None:
            return None
        hub = self.hub_cache.find_window_hub(*pos)
        return hub.name if hub else None

    def _en_route_resolver(self, segment_start_km: float) -> Optional[HubResolver]:
        geometry = self._geometry()
        if geometry is None:
            return None
        cache = self.hub_cache

        def resolve(km_into_segment: float) -> Optional[HubHit]:
            pos = interpolate_route_position(geometry, segment_start_km + km_into_segment)
            if pos is None:
                return None
            hub = cache.find_window_hub(*pos)
            if hub is None:
                return None
            located = locate_on_route(geometry, hub.lat, hub.lng)
            hub_km = located[0] - segment_start_km if located else km_into_segment
            return HubHit(name=hub.name, km=hub_km)

        return resolve

    # ── main loop ─────────────────────────────────────────────────────────

    def _midpoint_overnight(self, flat_index: int, original_index: int) -> Optional[SuggestedStop]:
        """Accepted overnight for a user-booked hotel on the previous driving day."""
        incoming = self._day_starts.get(flat_index)
        if incoming is None or self.days is None:
            return None
        previous = [
            d for d in self.days
            if d.is_driving_day and d.day_number < incoming.day_number
        ]
        if not previous or previous[-1].overnight is None:
            return None
        prev_day = previous[-1]
        return SuggestedStop(
            id=f"overnight-midpoint-day{prev_day.day_number}",
            kind="overnight",
            reason=f"Overnight at {prev_day.overnight}. Check in, rest up, and continue tomorrow.",
            after_segment_index=max(0, original_index - 1),
            estimated_time=self.state.current_time,
            duration_minutes=HOTEL_OVERNIGHT_MINUTES,
            priority="required",
            details=StopDetails(hours_on_road=self.state.total_driving_today),
            day_number=prev_day.day_number,
            accepted=True,
        )

    def run(self) -> list[SuggestedStop]:
        """Simulate the whole trip; returns the consolidated suggestion list."""
        if not self.segments:
            return []

        state, config = self.state, self.config
        suggestions: list[SuggestedStop] = []
        total_km = sum(seg.distance_km for seg in self.segments)
        cumulative_km = 0.0
        round_trip = self.segments[0].from_loc.name == self.segments[-1].to_loc.name
        last_flat = len(self._sim_segments) - 1

        for flat, (segment, orig) in enumerate(self._sim_segments):
            def emit(stop: Optional[SuggestedStop]) -> None:
                if stop is not None:
                    suggestions.append(stop.shifted_to(orig, flat))

            midpoint = self._midpoint_overnight(flat, orig)
            if midpoint is not None:
                suggestions.append(midpoint)

            handle_day_boundary_reset(state, flat, self._day_starts, config)
            emit(check_arrival_window(state, segment, flat, config, self._days_with_hotel))

            # Split slices carry the parent's destination zone; never shift on them
            if segment.transit_part is None:
                apply_timezone_shift(state, segment)

            state.distance_since_last_fill += segment.distance_km
            state.hours_since_last_fill += segment.duration_minutes / 60
            cumulative_km += segment.distance_km

            is_final = orig == len(self.segments) - 1 and flat == last_flat
            in_grace_zone = (total_km - cumulative_km) < DESTINATION_GRACE_KM
            segment_start_km = cumulative_km - segment.distance_km

            fuel = check_fuel_stop(
                state, segment, flat, config, self.safe_range_km,
                in_grace_zone=in_grace_zone,
                hub_name=self._segment_hub_name(segment, segment_start_km),
            )
            emit(fuel.stop)
            emit(check_rest_break(state, segment, flat, config, fuel.minutes_added))

            segment_start_time = state.current_time

            meal = check_meal_stop(
                state, segment, flat, segment_start_time,
                arriving_home=is_final and round_trip,
            )
            if meal is not None:
                window = timedelta(hours=MEAL_FUEL_COMBO_WINDOW_HOURS)
                near_fuel = any(
                    s.kind == "fuel" and abs(s.estimated_time - meal.estimated_time) < window
                    for s in suggestions
                )
                if near_fuel:
                    logger.debug("Dropping %s: fuel stop within combo window", meal.id)
                else:
                    emit(meal)

            en_route = get_en_route_fuel_stops(
                state, segment, flat, config, self.safe_range_km, segment_start_time,
                distance_already_driven=max(0.0, state.distance_since_last_fill - segment.distance_km),
                hub_resolver=self._en_route_resolver(segment_start_km),
            )
            for stop in en_route.stops:
                emit(stop)

            arrival = drive_segment(state, segment, segment_start_time, config)

            # Only the stretch after the last mid-leg fill counts against the tank
            if en_route.last_fill_km is not None and segment.distance_km > 0:
                remaining_km = segment.distance_km - en_route.last_fill_km
                remaining_min = remaining_km / segment.distance_km * segment.duration_minutes
                state.current_fuel = config.tank_size_litres - remaining_km / 100 * config.fuel_economy_l100km
                state.distance_since_last_fill = remaining_km
                state.hours_since_last_fill = remaining_min / 60

            self.fuel_trace.append(state.current_fuel)

            emit(check_overnight_stop(
                state, flat, config, self._days_with_hotel, arrival, is_final,
            ))

        self.hub_cache.flush()
        merged = consolidate_stops(suggestions)

        logger.info(
            "Simulated %d segment(s): %d raw stop(s), %d after consolidation",
            len(self._sim_segments), len(suggestions), len(merged),
        )
        if self.trip_logger is not None:
            self.trip_logger.append(self.trip_id, "stops_generated", {
                "segments": len(self._sim_segments),
                "raw": len(suggestions),
                "stops": [s.to_dict() for s in merged],
            })
        return merged


def generate_smart_stops(
    segments: Sequence[RouteSegment],
    config: TripConfig,
    days: Optional[Sequence[TripDay]] = None,
    hub_cache: Optional[HubCache] = None,
) -> list[SuggestedStop]:
    """Simulate + consolidate in one call."""
    return StopSimulator(segments, config, days=days, hub_cache=hub_cache).run()
