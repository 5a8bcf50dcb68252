import pytest
from fastapi.testclient import TestClient

from api.server import app
from db.kv_store import InMemoryKVStore
from modules.hubs.hub_cache import HubCache, set_hub_cache


@pytest.fixture(autouse=True)
def isolated_hub_cache():
    cache = HubCache(InMemoryKVStore())
    set_hub_cache(cache)
    yield cache
    set_hub_cache(None)


@pytest.fixture
def client():
    return TestClient(app)


def trip_body(**overrides):
    body = {
        "segments": [
            {
                "from": {"name": "Winnipeg"},
                "to": {"name": "Thunder Bay"},
                "distance_km": 700,
                "duration_minutes": 420,
            },
        ],
        "tank_size_litres": 55,
        "fuel_economy_l100km": 7.5,
        "departure_time": "2026-08-16T08:00:00",
    }
    body.update(overrides)
    return body


def test_health(client):
    resp = client.get("/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["service"] == "roadtrip-planner"
    assert "hub_cache_backend" in data


def test_suggest_stops(client):
    resp = client.post("/v1/trips/stops", json=trip_body())
    assert resp.status_code == 200
    data = resp.json()

    assert data["count"] == len(data["stops"])
    by_id = {s["id"]: s for s in data["stops"]}
    fuel = by_id["fuel-enroute-0-1"]
    assert fuel["type"] == "fuel"
    assert fuel["priority"] == "required"
    assert fuel["after_segment_index"] == -1
    assert fuel["estimated_time"] == "2026-08-16T13:30:00"
    assert "meal-lunch-0" in by_id


def test_timeline_generates_stops_when_omitted(client):
    resp = client.post("/v1/trips/timeline", json=trip_body(combine_stops=True))
    assert resp.status_code == 200
    data = resp.json()

    types = [e["type"] for e in data["events"]]
    assert types[0] == "departure"
    assert types[-1] == "arrival"
    placed = [sid for e in data["events"] for sid in e["stop_ids"]]
    assert sorted(placed) == sorted(s["id"] for s in data["stops"])


def test_timeline_with_supplied_stops(client):
    body = trip_body(
        segments=[
            {"from": {"name": "Winnipeg"}, "to": {"name": "Kenora"}, "distance_km": 200, "duration_minutes": 120},
            {"from": {"name": "Kenora"}, "to": {"name": "Dryden"}, "distance_km": 140, "duration_minutes": 90},
        ],
        stops=[{
            "id": "fuel-1", "type": "fuel", "after_segment_index": 0,
            "estimated_time": "2026-08-16T10:00:00", "duration": 15,
        }],
    )
    resp = client.post("/v1/trips/timeline", json=body)
    assert resp.status_code == 200

    events = resp.json()["events"]
    assert [e["id"] for e in events] == ["departure", "drive-0", "event-fuel-1", "drive-1", "arrival"]
    assert events[2]["arrival_time"] == "2026-08-16T10:00:00"
    assert events[-1]["arrival_time"] == "2026-08-16T11:45:00"
    assert events[-1]["distance_from_origin_km"] == 340


def test_empty_segments_rejected(client):
    assert client.post("/v1/trips/stops", json=trip_body(segments=[])).status_code == 422
    assert client.post("/v1/trips/timeline", json=trip_body(segments=[])).status_code == 422


def test_unknown_stop_type_rejected(client):
    body = trip_body(stops=[{
        "id": "spa-1", "type": "spa", "after_segment_index": 0,
        "estimated_time": "2026-08-16T10:00:00", "duration": 60,
    }])
    resp = client.post("/v1/trips/timeline", json=body)
    assert resp.status_code == 422
    assert "spa-1" in resp.json()["detail"]


@pytest.mark.parametrize("field, value", [("priority", "urgent"), ("fill_type", "half")])
def test_bad_stop_enum_rejected(client, field, value):
    stop = {
        "id": "fuel-1", "type": "fuel", "after_segment_index": 0,
        "estimated_time": "2026-08-16T10:00:00", "duration": 15, "fuel_needed": 40,
        field: value,
    }
    resp = client.post("/v1/trips/timeline", json=trip_body(stops=[stop]))
    assert resp.status_code == 422


def test_responses_carry_the_trip_id(client):
    stops = client.post("/v1/trips/stops", json=trip_body()).json()
    timeline = client.post("/v1/trips/timeline", json=trip_body()).json()
    assert stops["trip_id"].startswith("trip_")
    assert timeline["trip_id"].startswith("trip_")
    assert stops["trip_id"] != timeline["trip_id"]


def test_bad_stop_frequency_rejected(client):
    resp = client.post("/v1/trips/stops", json=trip_body(stop_frequency="reckless"))
    assert resp.status_code == 422
    assert "stop_frequency" in resp.json()["detail"]


def test_missing_vehicle_fields_rejected(client):
    body = trip_body()
    del body["tank_size_litres"]
    assert client.post("/v1/trips/stops", json=body).status_code == 422


def test_hub_stats(client, isolated_hub_cache, make_hub):
    isolated_hub_cache.cache_discovered_hub(make_hub("Kenora, ON", 100))
    resp = client.get("/v1/hubs/stats")
    assert resp.status_code == 200
    assert resp.json() == {"total": 1, "seed": 0, "discovered": 1, "promoted": 0}
