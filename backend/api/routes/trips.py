"""
api/routes/trips.py
--------------------
POST /v1/trips/stops     → simulate the trip, return consolidated stop suggestions
POST /v1/trips/timeline  → clock-annotated itinerary (generates stops if omitted)

Both take the same route + vehicle body.  Times in and out are naive ISO-8601
local wall-clock strings ("2026-08-16T09:00").
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

import config
from modules.hubs.hub_cache import get_hub_cache
from modules.observability.logger import new_trip_id
from modules.stops.simulator import StopSimulator
from modules.timeline.builder import build_timed_timeline
from modules.timeline.combo import apply_combo_optimization
from schemas.trip import (
    FuelDetails, Location, RouteSegment, StopDetails, SuggestedStop,
    TransitPart, TripConfig, TripDay,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Request schemas ────────────────────────────────────────────────────────────

class LocationIn(BaseModel):
    name: str
    lat: float = 0.0
    lng: float = 0.0


class SegmentIn(BaseModel):
    from_: LocationIn = Field(..., alias="from")
    to: LocationIn
    distance_km: float = Field(..., ge=0)
    duration_minutes: float = Field(..., ge=0)
    fuel_needed_litres: Optional[float] = None
    fuel_cost: Optional[float] = None
    timezone_abbr: Optional[str] = None
    transit_part: Optional[tuple[int, int]] = Field(None, description="(index, total) of a split leg")
    original_index: Optional[int] = None

    model_config = {"populate_by_name": True}


class DayIn(BaseModel):
    day_number: int = Field(..., ge=1)
    date: str = Field(..., description="ISO-8601 date YYYY-MM-DD")
    segment_indices: list[int] = Field(default_factory=list)
    segments: list[SegmentIn] = Field(default_factory=list)
    overnight: Optional[str] = None
    departure_time: Optional[datetime] = None


class StopIn(BaseModel):
    id: str
    type: str = Field(..., description="fuel | rest | meal | overnight")
    reason: str = ""
    after_segment_index: int
    ordinal: int = 0
    estimated_time: datetime
    duration: int = Field(..., ge=0)
    priority: Literal["required", "recommended", "optional"] = "recommended"
    fuel_needed: Optional[float] = None
    fuel_cost: Optional[float] = None
    fill_type: Literal["full", "topup"] = "full"
    hours_on_road: Optional[float] = None
    hub_name: Optional[str] = None
    day_number: Optional[int] = None
    accepted: bool = False
    dismissed: bool = False


class TripRequest(BaseModel):
    segments: list[SegmentIn]
    tank_size_litres: float = Field(..., gt=0)
    fuel_economy_l100km: float = Field(..., gt=0)
    departure_time: datetime
    max_drive_hours_per_day: float = Field(config.DEFAULT_MAX_DRIVE_HOURS, gt=0)
    num_drivers: int = Field(1, ge=1)
    gas_price: float = Field(config.DEFAULT_GAS_PRICE, ge=0)
    stop_frequency: str = Field(config.DEFAULT_STOP_FREQUENCY, description="conservative | balanced | aggressive")
    full_geometry: Optional[list[list[float]]] = None
    days: Optional[list[DayIn]] = None


class TimelineRequest(TripRequest):
    stops: Optional[list[StopIn]] = None
    round_trip_midpoint: Optional[int] = None
    destination_stay_minutes: float = Field(0, ge=0)
    combine_stops: bool = False


# ── Converters ─────────────────────────────────────────────────────────────────

def _to_location(loc: LocationIn) -> Location:
    return Location(name=loc.name, lat=loc.lat, lng=loc.lng)


def _to_segment(seg: SegmentIn) -> RouteSegment:
    return RouteSegment(
        from_loc=_to_location(seg.from_),
        to_loc=_to_location(seg.to),
        distance_km=seg.distance_km,
        duration_minutes=seg.duration_minutes,
        fuel_needed_litres=seg.fuel_needed_litres,
        fuel_cost=seg.fuel_cost,
        timezone_abbr=seg.timezone_abbr,
        transit_part=TransitPart(*seg.transit_part) if seg.transit_part else None,
        original_index=seg.original_index,
    )


def _to_config(req: TripRequest) -> TripConfig:
    try:
        return TripConfig(
            tank_size_litres=req.tank_size_litres,
            fuel_economy_l100km=req.fuel_economy_l100km,
            max_drive_hours_per_day=req.max_drive_hours_per_day,
            departure_time=req.departure_time.replace(tzinfo=None),
            num_drivers=req.num_drivers,
            gas_price=req.gas_price,
            stop_frequency=req.stop_frequency,
            full_geometry=req.full_geometry,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def _to_days(req: TripRequest) -> Optional[list[TripDay]]:
    if req.days is None:
        return None
    return [
        TripDay(
            day_number=d.day_number,
            date=d.date,
            segment_indices=list(d.segment_indices),
            segments=[_to_segment(s) for s in d.segments],
            overnight=d.overnight,
            departure_time=d.departure_time.replace(tzinfo=None) if d.departure_time else None,
        )
        for d in req.days
    ]


def _to_stop(s: StopIn) -> SuggestedStop:
    fuel = None
    if s.fuel_needed is not None:
        fuel = FuelDetails(litres=s.fuel_needed, cost=s.fuel_cost or 0.0, fill_type=s.fill_type)
    return SuggestedStop(
        id=s.id,
        kind=s.type,
        reason=s.reason,
        after_segment_index=s.after_segment_index,
        ordinal=s.ordinal,
        estimated_time=s.estimated_time.replace(tzinfo=None),
        duration_minutes=s.duration,
        priority=s.priority,
        details=StopDetails(fuel=fuel, hours_on_road=s.hours_on_road),
        hub_name=s.hub_name,
        day_number=s.day_number,
        accepted=s.accepted,
        dismissed=s.dismissed,
    )


def _simulate(
    req: TripRequest,
    segments: list[RouteSegment],
    trip_config: TripConfig,
    trip_id: str,
) -> list[SuggestedStop]:
    simulator = StopSimulator(
        segments, trip_config, days=_to_days(req), hub_cache=get_hub_cache(), trip_id=trip_id,
    )
    return simulator.run()


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.post("/stops", summary="Suggest fuel, rest, meal and overnight stops")
def suggest_stops(req: TripRequest) -> dict:
    if not req.segments:
        raise HTTPException(status_code=422, detail="segments must not be empty")
    segments = [_to_segment(s) for s in req.segments]
    trip_config = _to_config(req)

    trip_id = new_trip_id()
    stops = _simulate(req, segments, trip_config, trip_id)
    return {"trip_id": trip_id, "count": len(stops), "stops": [s.to_dict() for s in stops]}


@router.post("/timeline", summary="Build a clock-annotated itinerary")
def build_timeline(req: TimelineRequest) -> dict:
    if not req.segments:
        raise HTTPException(status_code=422, detail="segments must not be empty")
    segments = [_to_segment(s) for s in req.segments]
    trip_config = _to_config(req)

    trip_id = new_trip_id()
    if req.stops is None:
        stops = _simulate(req, segments, trip_config, trip_id)
    else:
        valid_kinds = ("fuel", "rest", "meal", "overnight")
        bad = [s.id for s in req.stops if s.type not in valid_kinds]
        if bad:
            raise HTTPException(status_code=422, detail=f"Unknown stop type for: {bad}")
        stops = [_to_stop(s) for s in req.stops]

    events = build_timed_timeline(
        segments, stops, trip_config,
        round_trip_midpoint=req.round_trip_midpoint,
        destination_stay_minutes=req.destination_stay_minutes,
        days=_to_days(req),
        trip_id=trip_id,
    )
    if req.combine_stops:
        events = apply_combo_optimization(events)

    return {
        "trip_id": trip_id,
        "stops": [s.to_dict() for s in stops],
        "events": [e.to_dict() for e in events],
    }
