"""modules/timeline: Clock-annotated itinerary built from segments and stops."""

from modules.timeline.builder import build_timed_timeline, format_duration, segment_timezone
from modules.timeline.combo import apply_combo_optimization, meal_label
from modules.timeline.town_resolver import resolve_stop_towns

__all__ = [
    "build_timed_timeline",
    "format_duration",
    "segment_timezone",
    "apply_combo_optimization",
    "meal_label",
    "resolve_stop_towns",
]
