"""
modules/stops/fuel_checks.py
-----------------------------
Fuel decisions for one simulated segment.

check_fuel_stop
    Boundary stop before driving a segment.  Four independent triggers:
      critical  tank would drop below 15% after this segment
      range     km since last fill >= safe range
      comfort   hours since last fill >= comfort interval (not on segment 0)
      low       tank already <= 35% (not on segment 0)
    Inside the destination grace zone only `critical` may fire.  A tank at
    >= 98% never stops.  Always fills to full.

get_en_route_fuel_stops
    Stops placed inside a single leg that is longer than the fuel left, or
    longer than a comfortable 4 h stint.  Each computed km-mark is snapped
    to a nearby hub when one is known so stops land in real towns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional

from modules.planning.trip_constants import (
    COMBO_FUEL_MEAL_MINUTES,
    COMFORT_DRIVING_HOURS,
    COMFORT_TOPUP_FRACTION,
    CRITICAL_FUEL_FRACTION,
    DINNER_WINDOW,
    ENROUTE_FILL_FRACTION,
    FUEL_STOP_MINUTES,
    FULL_TANK_FRACTION,
    HUB_SNAP_BACK_KM,
    HUB_SNAP_FORWARD_KM,
    HUB_SNAP_STEP_KM,
    LOW_TANK_FRACTION,
    LUNCH_WINDOW,
    PROACTIVE_HUB_SCAN_KM,
    PROACTIVE_MARGIN_KM,
    PROACTIVE_MIN_COMFORT_KM,
    SPARSE_SEGMENT_KM,
)
from modules.stops.sim_state import SimState
from schemas.trip import FuelDetails, RouteSegment, StopDetails, SuggestedStop, TripConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HubHit:
    """A hub found near a position inside the current segment."""
    name: str
    km: float           # the hub's own position, km into the segment


# km into the current segment → nearby hub (or None)
HubResolver = Callable[[float], Optional[HubHit]]


@dataclass
class FuelCheckResult:
    stop: Optional[SuggestedStop] = None
    minutes_added: int = 0          # sim-clock time consumed by the stop


@dataclass
class EnRouteResult:
    stops: list[SuggestedStop] = field(default_factory=list)
    last_fill_km: Optional[float] = None   # km into the segment of the final fill


def _meal_window(hour: int) -> Optional[str]:
    if LUNCH_WINDOW[0] <= hour < LUNCH_WINDOW[1]:
        return "lunch"
    if DINNER_WINDOW[0] <= hour < DINNER_WINDOW[1]:
        return "dinner"
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Boundary fuel check
# ─────────────────────────────────────────────────────────────────────────────

def check_fuel_stop(
    state: SimState,
    segment: RouteSegment,
    index: int,
    config: TripConfig,
    safe_range_km: float,
    in_grace_zone: bool = False,
    hub_name: Optional[str] = None,
) -> FuelCheckResult:
    """Decide whether to refuel before driving `segment`; refills the state if so."""
    tank = config.tank_size_litres
    fuel_needed = config.fuel_for(segment)

    critical = (state.current_fuel - fuel_needed) < tank * CRITICAL_FUEL_FRACTION
    range_hit = state.distance_since_last_fill >= safe_range_km
    comfort_due = state.hours_since_last_fill >= state.comfort_refuel_hours and index > 0
    tank_low = state.current_fuel <= tank * LOW_TANK_FRACTION and index > 0

    if in_grace_zone and not critical:
        return FuelCheckResult()
    if state.current_fuel >= tank * FULL_TANK_FRACTION:
        return FuelCheckResult()
    if not (critical or range_hit or comfort_due or tank_low):
        return FuelCheckResult()

    refill = tank - state.current_fuel
    cost = refill * config.gas_price
    tank_pct = round(state.current_fuel / tank * 100)
    litres_left = f"{state.current_fuel:.1f}"
    prefix = f"Fuel up in {hub_name}. " if hub_name else ""

    if critical:
        reason = (
            f"{prefix}Tank at {tank_pct}% ({litres_left}L remaining). ~${cost:.2f} to refill. "
            f"Critical: refuel before continuing to {segment.to_loc.name}."
        )
    elif tank_low and not range_hit and not comfort_due:
        reason = (
            f"{prefix}Tank is at {tank_pct}% ({litres_left}L remaining), getting low. "
            f"~${cost:.2f} to top up now before options get sparse."
        )
    elif comfort_due and not range_hit:
        reason = (
            f"{prefix}{state.hours_since_last_fill:.1f} hours since last fill, good time to top up. "
            f"Tank at {tank_pct}% ({litres_left}L). ~${cost:.2f} to refill."
        )
    else:
        reason = (
            f"{prefix}Tank at {tank_pct}% ({litres_left}L remaining). ~${cost:.2f} to refill. "
            f"You've driven {state.distance_since_last_fill:.0f} km since last fill."
        )

    warning = None
    if segment.distance_km > SPARSE_SEGMENT_KM:
        warning = (
            f"Heads up: limited services for the next {segment.distance_km:.0f} km "
            f"({segment.duration_minutes / 60:.1f} hours). Fuel up and take a break before continuing."
        )

    state.refill(tank)

    meal = _meal_window(state.current_time.hour)
    duration = COMBO_FUEL_MEAL_MINUTES if meal else FUEL_STOP_MINUTES
    if meal:
        reason += f" Good time to grab {meal} too, you're already stopped."

    stop_time = state.current_time
    state.current_time = stop_time + timedelta(minutes=duration)

    stop = SuggestedStop(
        id=f"fuel-{index}",
        kind="fuel",
        reason=reason,
        after_segment_index=index - 1,
        estimated_time=stop_time,
        duration_minutes=duration,
        priority="required" if critical else "recommended",
        details=StopDetails(fuel=FuelDetails(
            litres=refill,
            cost=cost,
            fill_type="full" if (critical or range_hit) else "topup",
            combo_meal=meal is not None,
        )),
        hub_name=hub_name,
        warning=warning,
        day_number=state.current_day_number,
        accepted=True,
    )
    logger.debug("fuel-%d: critical=%s range=%s comfort=%s low=%s", index, critical, range_hit, comfort_due, tank_low)
    return FuelCheckResult(stop=stop, minutes_added=duration)


# ─────────────────────────────────────────────────────────────────────────────
# En-route fuel stops
# ─────────────────────────────────────────────────────────────────────────────

def _steps(limit: float, step: float) -> list[float]:
    out, value = [], step
    while value <= limit:
        out.append(value)
        value += step
    return out


def snap_to_hub(
    mark_km: float,
    segment_km: float,
    resolver: Optional[HubResolver],
    min_km: float = 0.0,
) -> tuple[float, Optional[str]]:
    """
    Move a km-mark to a nearby town.

    Looks at the mark itself, then backward (preferred, up to
    HUB_SNAP_BACK_KM) and finally forward (up to HUB_SNAP_FORWARD_KM) in
    HUB_SNAP_STEP_KM steps.  A found hub is placed at its own route position
    when that lies inside (min_km, segment_km) and not past the forward
    window; otherwise at the probed km.  Returns (km, hub name or None).
    """
    if resolver is None:
        return mark_km, None

    def place(hit: HubHit, probed_km: float) -> tuple[float, str]:
        if min_km < hit.km < segment_km and hit.km <= mark_km + HUB_SNAP_FORWARD_KM:
            return hit.km, hit.name
        return probed_km, hit.name

    hit = resolver(mark_km)
    if hit:
        return place(hit, mark_km)

    for back in _steps(HUB_SNAP_BACK_KM, HUB_SNAP_STEP_KM):
        probe = mark_km - back
        if probe <= min_km:
            break
        hit = resolver(probe)
        if hit:
            return place(hit, probe)

    for fwd in _steps(HUB_SNAP_FORWARD_KM, HUB_SNAP_STEP_KM):
        probe = mark_km + fwd
        if probe >= segment_km:
            break
        hit = resolver(probe)
        if hit:
            return place(hit, probe)

    return mark_km, None


def _find_proactive_hub(
    comfort_km: float,
    segment_km: float,
    resolver: HubResolver,
) -> Optional[tuple[float, str]]:
    """Hub near the ~4 h driving mark, scanning outward ±PROACTIVE_HUB_SCAN_KM."""
    offset = 0.0
    while offset <= PROACTIVE_HUB_SCAN_KM:
        for delta in (0.0, -offset, offset):
            probe = comfort_km + delta
            if probe <= 0 or probe >= segment_km:
                continue
            hit = resolver(probe)
            if hit:
                km = hit.km if 0 < hit.km < segment_km else probe
                return km, hit.name
        offset += HUB_SNAP_STEP_KM
    return None


def get_en_route_fuel_stops(
    state: SimState,
    segment: RouteSegment,
    index: int,
    config: TripConfig,
    safe_range_km: float,
    segment_start_time: datetime,
    distance_already_driven: float = 0.0,
    hub_resolver: Optional[HubResolver] = None,
) -> EnRouteResult:
    """
    Stops inside `segment` (ids fuel-comfort-{i} / fuel-enroute-{i}-{n}).

    distance_already_driven: km on the current tank before this segment.
    Stops are anchored after index-1 with ordinal 1..n so they sort inside
    the segment's drive.  Does not mutate the state; the caller syncs fuel
    from last_fill_km after driving.
    """
    result = EnRouteResult()
    seg_km = segment.distance_km
    if seg_km <= 0 or segment.duration_minutes <= 0:
        return result

    avg_speed = seg_km / (segment.duration_minutes / 60)
    comfort_km = COMFORT_DRIVING_HOURS * avg_speed
    km_until_first = max(0.0, safe_range_km - distance_already_driven)
    comfort_warranted = segment.duration_minutes > COMFORT_DRIVING_HOURS * 60 and comfort_km < seg_km

    def time_at(km: float) -> datetime:
        return segment_start_time + timedelta(minutes=km / seg_km * segment.duration_minutes)

    # Tank covers the leg.
    if km_until_first >= seg_km:
        if not comfort_warranted:
            return result

        # Long but fuel-safe: one mid-leg top-up + stretch.
        km, hub = snap_to_hub(comfort_km, seg_km, hub_resolver)
        when = time_at(km)
        meal = _meal_window(when.hour)
        where = f"in {hub}" if hub else f"around km {round(km)}"
        meal_note = f" Good time to grab {meal} too." if meal else ""
        litres = config.tank_size_litres * COMFORT_TOPUP_FRACTION
        result.stops.append(SuggestedStop(
            id=f"fuel-comfort-{index}",
            kind="fuel",
            reason=(
                f"Long drive ({segment.duration_minutes / 60:.1f}h), good time to top up "
                f"and stretch {where}.{meal_note}"
            ),
            after_segment_index=index - 1,
            ordinal=1,
            estimated_time=when,
            duration_minutes=COMBO_FUEL_MEAL_MINUTES if meal else FUEL_STOP_MINUTES,
            priority="recommended",
            details=StopDetails(fuel=FuelDetails(
                litres=litres,
                cost=litres * config.gas_price,
                fill_type="topup",
                combo_meal=meal is not None,
            )),
            hub_name=hub,
            day_number=state.current_day_number,
            accepted=True,
        ))
        return result

    # Tank does not cover the leg.  A town near the comfort mark may pull the
    # first stop earlier than fuel math strictly requires.
    proactive: Optional[tuple[float, str]] = None
    if (
        hub_resolver is not None
        and comfort_km > PROACTIVE_MIN_COMFORT_KM
        and comfort_km < km_until_first - PROACTIVE_MARGIN_KM
    ):
        proactive = _find_proactive_hub(comfort_km, seg_km, hub_resolver)

    mark = km_until_first
    min_km = 0.0
    ordinal = 1
    litres = config.tank_size_litres * ENROUTE_FILL_FRACTION

    while mark < seg_km:
        if proactive and ordinal == 1:
            km, hub = proactive
        else:
            km, hub = snap_to_hub(mark, seg_km, hub_resolver, min_km=min_km)

        minutes_in = km / seg_km * segment.duration_minutes
        where = (
            f"near {hub}" if hub
            else f"around km {round(km)} into this {seg_km:.0f} km leg (~{minutes_in / 60:.1f}h after departing)"
        )
        result.stops.append(SuggestedStop(
            id=f"fuel-enroute-{index}-{ordinal}",
            kind="fuel",
            reason=f"En-route refuel needed {where}. Your tank cannot cover the full distance without stopping.",
            after_segment_index=index - 1,
            ordinal=ordinal,
            estimated_time=time_at(km),
            duration_minutes=FUEL_STOP_MINUTES,
            priority="required",
            details=StopDetails(fuel=FuelDetails(
                litres=litres,
                cost=litres * config.gas_price,
                fill_type="full",
            )),
            hub_name=hub,
            day_number=state.current_day_number,
        ))
        result.last_fill_km = km
        min_km = km
        # Next fill must come within safe range of this one
        mark = km + safe_range_km
        ordinal += 1

    logger.debug("segment %d: %d en-route fuel stop(s)", index, len(result.stops))
    return result
