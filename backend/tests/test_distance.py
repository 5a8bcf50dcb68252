import pytest

from modules.geo.distance import (
    haversine_km,
    interpolate_route_position,
    locate_on_route,
    polyline_length_km,
)


def test_haversine_zero_and_one_degree_of_latitude():
    assert haversine_km(49.9, -97.1, 49.9, -97.1) == 0
    assert haversine_km(40.0, -90.0, 41.0, -90.0) == pytest.approx(111.195, abs=0.01)


def test_haversine_is_symmetric():
    a = haversine_km(49.895, -97.138, 48.382, -89.246)
    b = haversine_km(48.382, -89.246, 49.895, -97.138)
    assert a == pytest.approx(b)
    assert 550 < a < 620   # Winnipeg → Thunder Bay, straight line


def test_polyline_length_sums_edges(route_geometry):
    assert polyline_length_km(route_geometry(700)) == pytest.approx(700, abs=1e-6)
    assert polyline_length_km([[40.0, -90.0]]) == 0


def test_interpolate_inside_route(route_geometry, km_to_lat):
    lat, lng = interpolate_route_position(route_geometry(700), 250)
    assert lat == pytest.approx(km_to_lat(250))
    assert lng == pytest.approx(-90.0)


def test_interpolate_sentinels(route_geometry):
    geometry = route_geometry(700)
    assert interpolate_route_position(geometry, 0) is None
    assert interpolate_route_position(geometry, -5) is None
    assert interpolate_route_position([[40.0, -90.0]], 10) is None


def test_interpolate_past_end_is_not_clamped(route_geometry):
    assert interpolate_route_position(route_geometry(700), 700.5) is None


def test_locate_on_route_projects_onto_polyline(route_geometry, km_to_lat):
    geometry = route_geometry(700)

    km, off = locate_on_route(geometry, km_to_lat(200), -90.0)
    assert km == pytest.approx(200, abs=0.01)
    assert off == pytest.approx(0, abs=0.01)

    km, off = locate_on_route(geometry, km_to_lat(500), -89.9)
    assert km == pytest.approx(500, abs=1)
    assert 5 < off < 12


def test_locate_on_route_needs_two_points():
    assert locate_on_route([[40.0, -90.0]], 40.0, -90.0) is None
