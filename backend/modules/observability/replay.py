"""
modules/observability/replay.py
---------------------------------
Print a recorded trip from its JSONL log.

Usage:
    python main.py --replay <trip_id>

Reads <LOGS_DIR>/<trip_id>.jsonl and prints the stops_generated and
timeline_built records in order.  Nothing is re-simulated; this is a pure
log read for debugging a plan a user reported.
"""

from __future__ import annotations

import json
from pathlib import Path

import config

_REPLAY_EVENT_TYPES = frozenset({"stops_generated", "timeline_built"})


def load_trip_log(trip_id: str, *, logs_dir: Path | str | None = None) -> list[dict]:
    """All records of one trip log, oldest first."""
    base = Path(logs_dir) if logs_dir else Path(config.LOGS_DIR)
    log_path = base / f"{trip_id}.jsonl"
    if not log_path.exists():
        raise FileNotFoundError(f"Log file not found: {log_path}")

    records: list[dict] = []
    with open(log_path, "r", encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if line:
                records.append(json.loads(line))
    return records


def replay_trip(trip_id: str, *, logs_dir: Path | str | None = None) -> int:
    """Print a trip log; returns the number of replayed records."""
    records = load_trip_log(trip_id, logs_dir=logs_dir)
    if not records:
        print(f"  [replay] Empty log for trip {trip_id}.")
        return 0

    print(f"\n{'=' * 60}")
    print(f"  REPLAY: trip {trip_id}")
    print(f"  Total records: {len(records)}")
    print(f"{'=' * 60}\n")

    step = 0
    for rec in records:
        event_type = rec.get("event_type", "")
        if event_type not in _REPLAY_EVENT_TYPES:
            continue
        step += 1
        ts = rec.get("timestamp", "")
        payload = rec.get("payload", {})

        if event_type == "stops_generated":
            stops = payload.get("stops", [])
            print(f"  [{step:>4}] {ts}  STOPS      raw={payload.get('raw', '?')}  merged={len(stops)}")
            for s in stops:
                print(f"         {s.get('estimated_time', '')[:16]}  {s.get('type', '?'):<9} {s.get('id', '')}")
        else:
            events = payload.get("events", [])
            print(f"  [{step:>4}] {ts}  TIMELINE   events={len(events)}")
            for e in events:
                print(f"         {e.get('arrival_time', '')[:16]}  {e.get('type', '?'):<11} {e.get('location_hint', '')}")

    print(f"\n  Replayed {step} record(s).\n")
    return step
