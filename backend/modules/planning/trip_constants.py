"""
modules/planning/trip_constants.py
-----------------------------------
Every magic number used by the stop simulation, consolidation and timeline
passes.  Tune here instead of hunting through the check functions.
"""

from __future__ import annotations

# ── Stop frequency presets ────────────────────────────────────────────────────
# Fraction of the vehicle's theoretical range held back as a safety buffer.
FREQUENCY_BUFFERS: dict[str, float] = {
    "conservative": 0.30,
    "balanced":     0.25,
    "aggressive":   0.20,
}
# Hours behind the wheel before a rest break is suggested.
REST_INTERVAL_HOURS: dict[str, float] = {
    "conservative": 1.5,
    "balanced":     2.0,
    "aggressive":   2.5,
}
# Hours since the last fill before a comfort top-up is suggested.
COMFORT_REFUEL_HOURS: dict[str, float] = {
    "conservative": 2.5,
    "balanced":     3.5,
    "aggressive":   4.5,
}
STOP_FREQUENCIES: tuple[str, ...] = tuple(FREQUENCY_BUFFERS)
DEFAULT_STOP_FREQUENCY: str = "balanced"

# ── Consolidation ─────────────────────────────────────────────────────────────
MERGE_WINDOW_MINUTES: int = 60
# Higher wins when two stops collide: overnight > fuel > meal > rest
MERGE_PRIORITY: dict[str, int] = {
    "overnight": 4,
    "fuel":      3,
    "meal":      2,
    "rest":      1,
}
# Urgency rank of SuggestedStop.priority values (higher = more urgent)
PRIORITY_RANK: dict[str, int] = {
    "optional":    0,
    "recommended": 1,
    "required":    2,
}

# ── Fuel ──────────────────────────────────────────────────────────────────────
CRITICAL_FUEL_FRACTION: float = 0.15   # would drop below this after the segment
LOW_TANK_FRACTION: float      = 0.35   # already at or below this
FULL_TANK_FRACTION: float     = 0.98   # skip any fuel stop above this
DESTINATION_GRACE_KM: float   = 50.0   # only critical fills this close to the end
SPARSE_SEGMENT_KM: float      = 150.0  # warn about limited services beyond this
FUEL_STOP_MINUTES: int        = 15
COMBO_FUEL_MEAL_MINUTES: int  = 45     # fuel stop that doubles as a meal
COMFORT_TOPUP_FRACTION: float = 0.50
ENROUTE_FILL_FRACTION: float  = 0.90
# Clock windows (local hour, [start, end)) where a fuel stop also covers a meal
LUNCH_WINDOW: tuple[int, int]  = (11, 13)
DINNER_WINDOW: tuple[int, int] = (17, 19)

# ── En-route fuel placement ───────────────────────────────────────────────────
COMFORT_DRIVING_HOURS: float   = 4.0
HUB_SNAP_BACK_KM: float        = 140.0  # prefer an earlier town...
HUB_SNAP_FORWARD_KM: float     = 40.0   # ...then a slightly later one
HUB_SNAP_STEP_KM: float        = 20.0
PROACTIVE_HUB_SCAN_KM: float   = 50.0   # ± around the comfort mark
PROACTIVE_MIN_COMFORT_KM: float = 50.0
PROACTIVE_MARGIN_KM: float     = 80.0   # comfort mark must precede the fuel mark by this

# ── Rest / meals ──────────────────────────────────────────────────────────────
REST_BREAK_MINUTES: int          = 15
REST_MIN_SEGMENT_MINUTES: int    = 30   # segments this short never get a break
MEAL_MINUTES: int                = 45
MEAL_HOURS: dict[str, int]       = {"lunch": 12, "dinner": 18}
MEAL_FUEL_COMBO_WINDOW_HOURS: float = 2.0  # drop a meal this close to a fuel stop

# ── Overnight ─────────────────────────────────────────────────────────────────
LATEST_ARRIVAL_HOUR: int     = 21    # 9 PM local check-in deadline
OVERNIGHT_MINUTES: int       = 8 * 60
HOTEL_OVERNIGHT_MINUTES: int = 12 * 60

# ── Timeline ──────────────────────────────────────────────────────────────────
MIN_SUB_DRIVE_KM: float         = 1.0    # sub-drives this short are folded into the next event
DEGENERATE_FRACTION_LOW: float  = 0.05
DEGENERATE_FRACTION_HIGH: float = 0.95
LOCATION_HINT_ORIGIN_KM: float  = 20.0   # closer than this → use the origin name
COMBO_FLEX_WINDOW_MINUTES: int  = 90
COMBO_FUEL_REST_MINUTES: int    = 20
