"""
modules/stops/sim_state.py
---------------------------
Mutable state threaded through one stop-simulation pass.

Single owner: a StopSimulator creates one SimState and passes it by
reference to every check function, which mutate it in place.  Never share a
SimState between trips or threads.

Clock convention: current_time / last_break_time are naive datetimes holding
local wall-clock time in current_tz_abbr.  Crossing into a new zone shifts
both by the zone delta (see day_checks.apply_timezone_shift).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from modules.planning.trip_constants import COMFORT_REFUEL_HOURS, REST_INTERVAL_HOURS
from schemas.trip import RouteSegment, TripConfig


@dataclass
class SimState:
    current_fuel: float                 # litres, 0 <= fuel <= tank
    distance_since_last_fill: float     # km
    hours_since_last_fill: float
    current_time: datetime
    hours_on_road: float                # driving hours since the last overnight
    total_driving_today: float          # driving hours counted against the daily max
    last_break_time: datetime
    current_day_number: int
    current_tz_abbr: Optional[str]
    # Derived once from stop_frequency, constant for the pass
    rest_break_interval: float
    comfort_refuel_hours: float

    @classmethod
    def initial(cls, config: TripConfig, segments: Sequence[RouteSegment]) -> SimState:
        """Full tank, day 1, clock at departure, zone of the first segment."""
        freq = config.stop_frequency
        return cls(
            current_fuel=config.tank_size_litres,
            distance_since_last_fill=0.0,
            hours_since_last_fill=0.0,
            current_time=config.departure_time,
            hours_on_road=0.0,
            total_driving_today=0.0,
            last_break_time=config.departure_time,
            current_day_number=1,
            current_tz_abbr=segments[0].timezone_abbr if segments else None,
            rest_break_interval=REST_INTERVAL_HOURS[freq],
            comfort_refuel_hours=COMFORT_REFUEL_HOURS[freq],
        )

    def refill(self, tank_size_litres: float) -> None:
        """Tank to exactly full; since-fill counters to zero."""
        self.current_fuel = tank_size_litres
        self.distance_since_last_fill = 0.0
        self.hours_since_last_fill = 0.0

    def start_day(
        self,
        start: datetime,
        tank_size_litres: float,
        day_number: Optional[int] = None,
    ) -> None:
        """
        Fresh morning: clock to `start`, daily counters and break timer reset,
        full tank.  day_number defaults to the next day.  Timezone is kept:
        the traveller wakes up where they slept.
        """
        self.current_time = start
        self.last_break_time = start
        self.total_driving_today = 0.0
        self.hours_on_road = 0.0
        self.refill(tank_size_litres)
        self.current_day_number = day_number if day_number is not None else self.current_day_number + 1
