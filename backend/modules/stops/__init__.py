"""modules/stops: Stop-suggestion simulation and consolidation."""

from modules.stops.sim_state import SimState
from modules.stops.fuel_checks import (
    EnRouteResult, FuelCheckResult, HubHit,
    check_fuel_stop, get_en_route_fuel_stops, snap_to_hub,
)
from modules.stops.break_checks import check_meal_stop, check_rest_break
from modules.stops.day_checks import (
    apply_timezone_shift, check_arrival_window, check_overnight_stop,
    drive_segment, handle_day_boundary_reset,
)
from modules.stops.consolidator import consolidate_stops, merge_pair
from modules.stops.simulator import StopSimulator, generate_smart_stops

__all__ = [
    "SimState",
    "EnRouteResult",
    "FuelCheckResult",
    "HubHit",
    "check_fuel_stop",
    "get_en_route_fuel_stops",
    "snap_to_hub",
    "check_meal_stop",
    "check_rest_break",
    "apply_timezone_shift",
    "check_arrival_window",
    "check_overnight_stop",
    "drive_segment",
    "handle_day_boundary_reset",
    "consolidate_stops",
    "merge_pair",
    "StopSimulator",
    "generate_smart_stops",
]
