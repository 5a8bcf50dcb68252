"""
modules/stops/consolidator.py
------------------------------
Merge stops that happen close together into one real-world stop.

A fuel stop at 12:10 and a lunch suggestion at 12:40 are the same stop on
the road.  Single pass with a running accumulator so three or more colliding
stops all collapse into one (a pairwise skip would leave the third behind).
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from modules.planning.trip_constants import MERGE_PRIORITY, MERGE_WINDOW_MINUTES, PRIORITY_RANK
from schemas.trip import SuggestedStop

logger = logging.getLogger(__name__)


def _more_urgent(a: str, b: str) -> str:
    return a if PRIORITY_RANK.get(a, 0) >= PRIORITY_RANK.get(b, 0) else b


def merge_pair(acc: SuggestedStop, nxt: SuggestedStop) -> SuggestedStop:
    """
    Fold `nxt` into `acc`.

    Winning kind is the higher merge tier (ties keep the accumulator); the
    loser's reason survives as an "Also includes" note.  Time, anchor, day
    and flags stay the accumulator's.
    """
    acc_wins = MERGE_PRIORITY.get(acc.kind, 0) >= MERGE_PRIORITY.get(nxt.kind, 0)
    winner, loser = (acc, nxt) if acc_wins else (nxt, acc)
    return replace(
        acc,
        id=f"merged-{acc.id}-{nxt.id}",
        kind=winner.kind,
        reason=f"{winner.reason}\nAlso includes {loser.kind} stop: {loser.reason}",
        duration_minutes=max(acc.duration_minutes, nxt.duration_minutes),
        priority=_more_urgent(acc.priority, nxt.priority),
        details=acc.details.merged(nxt.details),
    )


def consolidate_stops(
    stops: Sequence[SuggestedStop],
    window_minutes: int = MERGE_WINDOW_MINUTES,
) -> list[SuggestedStop]:
    """Merge every stop within `window_minutes` of the running accumulator."""
    if len(stops) <= 1:
        return list(stops)

    window = window_minutes * 60
    out: list[SuggestedStop] = []
    acc = stops[0]
    for nxt in stops[1:]:
        if abs((nxt.estimated_time - acc.estimated_time).total_seconds()) <= window:
            acc = merge_pair(acc, nxt)
        else:
            out.append(acc)
            acc = nxt
    out.append(acc)

    if len(out) < len(stops):
        logger.debug("Consolidated %d stops into %d", len(stops), len(out))
    return out
