"""
schemas/trip.py
---------------
Dataclass definitions for the route input and stop-suggestion output of the
road-trip simulator.

Inputs (immutable by convention, never mutated by the simulation):
  Location, RouteSegment, TransitPart, TripDay, TripConfig

Outputs:
  SuggestedStop  (+ StopDetails / FuelDetails)
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal, Optional

from modules.planning.trip_constants import STOP_FREQUENCIES

StopKind = Literal["fuel", "rest", "meal", "overnight"]
StopPriority = Literal["required", "recommended", "optional"]
FillType = Literal["full", "topup"]


# ── Route input ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Location:
    name: str
    lat: float = 0.0
    lng: float = 0.0


@dataclass(frozen=True)
class TransitPart:
    """Marks a slice of an originally longer leg that was split across days."""
    index: int
    total: int


@dataclass(frozen=True)
class RouteSegment:
    """
    One drive leg.

    timezone_abbr is the destination's zone abbreviation ("CDT", "EST") as
    reported by the weather provider.  It is not trustworthy for interior
    slices of a split leg (transit_part set), which inherit the parent's
    destination zone.
    """
    from_loc: Location
    to_loc: Location
    distance_km: float
    duration_minutes: float
    fuel_needed_litres: Optional[float] = None
    fuel_cost: Optional[float] = None
    timezone_abbr: Optional[str] = None
    transit_part: Optional[TransitPart] = None
    original_index: Optional[int] = None       # set on split slices: index of the parent leg


@dataclass
class TripDay:
    """
    One calendar day of a multi-day trip.

    segment_indices:  indices into the original segment list driven that day
                      (empty for rest / free days)
    segments:         the sub-segments actually simulated that day; long legs
                      may be split into several TransitPart slices
    overnight:        name of a hotel the user already booked for that night
    departure_time:   explicit departure for the day; falls back to the trip's
                      departure hour on `date`
    """
    day_number: int
    date: str                                  # ISO-8601 YYYY-MM-DD
    segment_indices: list[int] = field(default_factory=list)
    segments: list[RouteSegment] = field(default_factory=list)
    overnight: Optional[str] = None
    departure_time: Optional[datetime] = None

    @property
    def is_driving_day(self) -> bool:
        return len(self.segment_indices) > 0

    def driven_segments(self, route: list[RouteSegment]) -> list[RouteSegment]:
        """What is actually driven that day: the split slices, else the whole legs."""
        return self.segments or [route[i] for i in self.segment_indices]

    def source_index(self, segment: RouteSegment, pos: int) -> int:
        """Original route index of the pos-th segment driven that day."""
        if segment.original_index is not None:
            return segment.original_index
        indices = self.segment_indices
        if len(indices) == len(self.segments) or not self.segments:
            return indices[pos]
        return indices[min(pos, len(indices) - 1)]


@dataclass
class TripConfig:
    """Vehicle and traveller preferences for one simulation pass."""
    tank_size_litres: float
    fuel_economy_l100km: float
    max_drive_hours_per_day: float
    departure_time: datetime                   # naive, local to the origin
    num_drivers: int = 1
    gas_price: float = 0.0                     # per litre
    stop_frequency: str = "balanced"
    full_geometry: Optional[list[list[float]]] = None   # [[lat, lng], ...]

    def __post_init__(self) -> None:
        if self.tank_size_litres <= 0:
            raise ValueError(f"tank_size_litres must be > 0 (got {self.tank_size_litres})")
        if self.fuel_economy_l100km <= 0:
            raise ValueError(f"fuel_economy_l100km must be > 0 (got {self.fuel_economy_l100km})")
        if self.stop_frequency not in STOP_FREQUENCIES:
            raise ValueError(
                f"stop_frequency must be one of {STOP_FREQUENCIES} (got {self.stop_frequency!r})"
            )

    @property
    def vehicle_range_km(self) -> float:
        return self.tank_size_litres / self.fuel_economy_l100km * 100

    def fuel_for(self, segment: RouteSegment) -> float:
        """Litres burned on a segment: precomputed figure if present, else economy math."""
        if segment.fuel_needed_litres is not None:
            return segment.fuel_needed_litres
        return segment.distance_km / 100 * self.fuel_economy_l100km


# ── Stop output ───────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FuelDetails:
    litres: float
    cost: float
    fill_type: FillType = "full"
    combo_meal: bool = False


@dataclass(frozen=True)
class StopDetails:
    """
    Kind-specific payload.  Fuel stops carry `fuel`; every kind may carry
    hours_on_road.  A merged stop keeps the union of both sides.
    """
    fuel: Optional[FuelDetails] = None
    hours_on_road: Optional[float] = None

    def merged(self, later: StopDetails) -> StopDetails:
        """Union of two detail bags; the later stop wins on collision."""
        return StopDetails(
            fuel=later.fuel if later.fuel is not None else self.fuel,
            hours_on_road=(
                later.hours_on_road if later.hours_on_road is not None else self.hours_on_road
            ),
        )


@dataclass
class SuggestedStop:
    """
    One candidate stop emitted by the simulation.

    Ordering key is (after_segment_index, ordinal):
      after_segment_index: original segment this stop follows (-1 = before
                           the first segment)
      ordinal: 0 for boundary stops; 1..n for stops placed inside
               the following segment's drive, in driving order
    """
    id: str
    kind: StopKind
    reason: str
    after_segment_index: int
    estimated_time: datetime
    duration_minutes: int
    priority: StopPriority
    details: StopDetails = field(default_factory=StopDetails)
    ordinal: int = 0
    hub_name: Optional[str] = None
    warning: Optional[str] = None
    day_number: Optional[int] = None
    accepted: bool = False
    dismissed: bool = False

    @property
    def sort_key(self) -> tuple[int, int]:
        return (self.after_segment_index, self.ordinal)

    @property
    def is_en_route(self) -> bool:
        """True for stops placed inside a drive rather than at a segment boundary."""
        return self.ordinal > 0

    def shifted_to(self, original_index: int, flat_index: int) -> SuggestedStop:
        """Re-anchor a stop built against a flattened sub-segment index."""
        return replace(self, after_segment_index=self.after_segment_index + (original_index - flat_index))

    def to_dict(self) -> dict:
        fuel = self.details.fuel
        return {
            "id":                  self.id,
            "type":                self.kind,
            "reason":              self.reason,
            "after_segment_index": self.after_segment_index,
            "ordinal":             self.ordinal,
            "estimated_time":      self.estimated_time.isoformat(),
            "duration":            self.duration_minutes,
            "priority":            self.priority,
            "details": {
                "fuel_needed":   fuel.litres if fuel else None,
                "fuel_cost":     fuel.cost if fuel else None,
                "fill_type":     fuel.fill_type if fuel else None,
                "combo_meal":    fuel.combo_meal if fuel else None,
                "hours_on_road": self.details.hours_on_road,
            },
            "hub_name":            self.hub_name,
            "warning":             self.warning,
            "day_number":          self.day_number,
            "accepted":            self.accepted,
            "dismissed":           self.dismissed,
        }
