import json

import pytest

import main
from db.kv_store import InMemoryKVStore
from modules.hubs.hub_cache import HubCache, set_hub_cache
from modules.observability.logger import StructuredLogger, new_trip_id
from modules.observability.replay import load_trip_log, replay_trip
from modules.stops.simulator import StopSimulator
from modules.timeline.builder import build_timed_timeline


@pytest.fixture
def trip_log(tmp_path):
    log = StructuredLogger(tmp_path)
    yield log
    log.close()


@pytest.fixture
def seeded_cache():
    cache = HubCache(InMemoryKVStore())
    cache.initialize()
    set_hub_cache(cache)
    yield cache
    set_hub_cache(None)


def test_trip_ids_are_unique():
    a, b = new_trip_id(), new_trip_id()
    assert a.startswith("trip_") and a != b


def test_log_appends_one_json_line_per_record(trip_log, tmp_path):
    trip_log.log("trip_abc", "stops_generated", {"raw": 3, "stops": []})
    trip_log.log("trip_abc", "timeline_built", {"events": []})
    trip_log.close("trip_abc")

    lines = (tmp_path / "trip_abc.jsonl").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert set(first) == {"timestamp", "trip_id", "event_type", "payload"}
    assert first["event_type"] == "stops_generated"
    assert first["payload"] == {"raw": 3, "stops": []}


def test_simulation_record_replays(trip_log, tmp_path, make_config, make_segment, hub_cache, capsys):
    stops = StopSimulator(
        [make_segment(km=700, minutes=420)], make_config(), hub_cache=hub_cache,
        trip_logger=trip_log, trip_id="trip_replay",
    ).run()
    trip_log.log("trip_replay", "note", {"ignored": True})
    trip_log.close()

    records = load_trip_log("trip_replay", logs_dir=tmp_path)
    assert [r["event_type"] for r in records] == ["stops_generated", "note"]
    assert len(records[0]["payload"]["stops"]) == len(stops)

    assert replay_trip("trip_replay", logs_dir=tmp_path) == 1
    out = capsys.readouterr().out
    assert "REPLAY: trip trip_replay" in out
    for stop in stops:
        assert stop.id in out


def test_append_does_not_hold_the_file(trip_log, tmp_path):
    trip_log.append("trip_abc", "stops_generated", {"raw": 0, "stops": []})
    trip_log.append("trip_abc", "timeline_built", {"events": []})

    assert trip_log.open_trips == 0
    records = load_trip_log("trip_abc", logs_dir=tmp_path)
    assert [r["event_type"] for r in records] == ["stops_generated", "timeline_built"]


def test_append_goes_through_a_held_handle(trip_log, tmp_path):
    trip_log.log("trip_abc", "note", {})
    trip_log.append("trip_abc", "stops_generated", {"stops": []})
    assert trip_log.open_trips == 1
    trip_log.close("trip_abc")

    records = load_trip_log("trip_abc", logs_dir=tmp_path)
    assert [r["event_type"] for r in records] == ["note", "stops_generated"]


def test_repeated_trips_share_one_file_each_and_release_handles(trip_log, tmp_path, make_config,
                                                                 make_segment, hub_cache):
    segments = [make_segment(km=700, minutes=420)]
    trip_ids = []
    for _ in range(5):
        sim = StopSimulator(segments, make_config(), hub_cache=hub_cache, trip_logger=trip_log)
        stops = sim.run()
        build_timed_timeline(segments, stops, make_config(), trip_id=sim.trip_id, trip_logger=trip_log)
        trip_ids.append(sim.trip_id)

    assert trip_log.open_trips == 0
    assert sorted(p.stem for p in tmp_path.glob("*.jsonl")) == sorted(trip_ids)
    for trip_id in trip_ids:
        records = load_trip_log(trip_id, logs_dir=tmp_path)
        assert [r["event_type"] for r in records] == ["stops_generated", "timeline_built"]


def test_missing_log_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_trip_log("trip_nope", logs_dir=tmp_path)


def test_demo_places_every_stop(seeded_cache):
    result = main.run_demo(as_json=True)

    assert result["stops"]
    placed = [sid for e in result["events"] for sid in e["stop_ids"]]
    assert sorted(placed) == sorted(s["id"] for s in result["stops"])
    assert result["events"][0]["type"] == "departure"
    assert result["events"][-1]["type"] == "arrival"
