import math

import pytest

from civicdesk.utils.geo import EARTH_RADIUS_KM, haversine_km


def test_same_point_is_zero():
    assert haversine_km(28.6, 77.2, 28.6, 77.2) == 0.0


def test_one_degree_of_latitude():
    expected = EARTH_RADIUS_KM * math.radians(1)
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected)
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(111.19, abs=0.01)


def test_symmetric():
    a = haversine_km(28.6139, 77.2090, 19.0760, 72.8777)
    b = haversine_km(19.0760, 72.8777, 28.6139, 77.2090)
    assert a == pytest.approx(b)


def test_delhi_to_mumbai():
    assert haversine_km(28.6139, 77.2090, 19.0760, 72.8777) == pytest.approx(1150, abs=15)


def test_antipodal_points():
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(math.pi * EARTH_RADIUS_KM)
