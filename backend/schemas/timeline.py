"""
schemas/timeline.py
-------------------
Output rows of the timeline builder.  Built once, never mutated: the combo
optimizer produces new events with dataclasses.replace().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from schemas.trip import SuggestedStop

EventKind = Literal[
    "departure",
    "drive",
    "fuel",
    "meal",
    "rest",
    "overnight",
    "waypoint",
    "arrival",
    "combo",        # fuel merged with a meal or rest
    "destination",  # dwell at a round trip's far end
]


@dataclass(frozen=True)
class TimedEvent:
    id: str
    kind: EventKind
    arrival_time: datetime
    departure_time: datetime
    duration_minutes: float
    distance_from_origin_km: float
    location_hint: str
    timezone: Optional[str] = None                 # IANA zone active at this point
    segment_distance_km: Optional[float] = None    # drive events only
    segment_duration_minutes: Optional[float] = None
    stops: tuple[SuggestedStop, ...] = field(default_factory=tuple)
    time_saved_minutes: Optional[float] = None     # combo events only
    combo_label: Optional[str] = None              # e.g. "Fuel + Lunch"

    def to_dict(self) -> dict:
        return {
            "id":                       self.id,
            "type":                     self.kind,
            "arrival_time":             self.arrival_time.isoformat(),
            "departure_time":           self.departure_time.isoformat(),
            "duration_minutes":         self.duration_minutes,
            "distance_from_origin_km":  round(self.distance_from_origin_km, 1),
            "location_hint":            self.location_hint,
            "timezone":                 self.timezone,
            "segment_distance_km":      self.segment_distance_km,
            "segment_duration_minutes": self.segment_duration_minutes,
            "stop_ids":                 [s.id for s in self.stops],
            "time_saved_minutes":       self.time_saved_minutes,
            "combo_label":              self.combo_label,
        }
