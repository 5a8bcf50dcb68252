"""
Structured JSON trip log: append-only, one object per line (.jsonl).

Usage:
    from modules.observability.logger import StructuredLogger

    trip_log = StructuredLogger()
    trip_log.append("trip_3f2a91", "stops_generated", {"count": 6})

Records go to  <LOGS_DIR>/<trip_id>.jsonl  (LOGS_DIR from config).
Enabled by STRUCTURED_LOGS; callers check the flag before constructing one.

One trip spans several passes (simulation, then timeline) that share its
trip id, so all of a trip's records land in one file.  Each pass writes a
single record through append(), which releases the handle again: a
long-running API process keeps no descriptor open between requests.
log() keeps the handle for callers that write many records and close()
themselves.
"""

from __future__ import annotations

import json
import os
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Optional

import config


def new_trip_id() -> str:
    return f"trip_{uuid.uuid4().hex[:10]}"


class StructuredLogger:
    """Thread-safe, append-only JSONL logger keyed by trip id."""

    def __init__(self, logs_dir: Path | str | None = None) -> None:
        self._logs_dir = Path(logs_dir) if logs_dir else Path(config.LOGS_DIR)
        self._lock = threading.Lock()
        self._handles: dict[str, IO[str]] = {}

    @property
    def logs_dir(self) -> Path:
        return self._logs_dir

    @property
    def open_trips(self) -> int:
        """Trips whose log file is currently held open."""
        with self._lock:
            return len(self._handles)

    # ── public API ────────────────────────────────────────────────────────

    def log(self, trip_id: str, event_type: str, payload: dict) -> None:
        """Append one record to ``<trip_id>.jsonl``, keeping the file open until close()."""
        line = self._line(trip_id, event_type, payload)
        with self._lock:
            fh = self._handles.get(trip_id) or self._open(trip_id)
            fh.write(line)
            fh.flush()

    def append(self, trip_id: str, event_type: str, payload: dict) -> None:
        """
        Write one record for a finished pass without holding the file.
        Goes through the trip's open handle when a log() caller holds one.
        """
        line = self._line(trip_id, event_type, payload)
        with self._lock:
            held = self._handles.get(trip_id)
            if held is not None:
                held.write(line)
                held.flush()
                return
            os.makedirs(self._logs_dir, exist_ok=True)
            with open(self._path(trip_id), "a", encoding="utf-8") as fh:
                fh.write(line)

    def close(self, trip_id: Optional[str] = None) -> None:
        """Close one trip's file, or all of them."""
        with self._lock:
            if trip_id:
                fh = self._handles.pop(trip_id, None)
                if fh:
                    fh.close()
                return
            for fh in self._handles.values():
                fh.close()
            self._handles.clear()

    # ── internals ─────────────────────────────────────────────────────────

    def _path(self, trip_id: str) -> Path:
        return self._logs_dir / f"{trip_id}.jsonl"

    @staticmethod
    def _line(trip_id: str, event_type: str, payload: dict) -> str:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trip_id": trip_id,
            "event_type": event_type,
            "payload": payload,
        }
        return json.dumps(record, default=str, ensure_ascii=False) + "\n"

    def _open(self, trip_id: str) -> IO[str]:
        os.makedirs(self._logs_dir, exist_ok=True)
        fh = open(self._path(trip_id), "a", encoding="utf-8")  # noqa: SIM115
        self._handles[trip_id] = fh
        return fh


_default_logger: Optional[StructuredLogger] = None


def get_trip_logger() -> Optional[StructuredLogger]:
    """Shared logger when STRUCTURED_LOGS is on, else None."""
    global _default_logger
    if not config.STRUCTURED_LOGS:
        return None
    if _default_logger is None:
        _default_logger = StructuredLogger()
    return _default_logger
