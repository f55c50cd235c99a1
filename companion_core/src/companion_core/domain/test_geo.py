import pytest

from companion_core.domain.geo import DEFAULT_POSITION, haversine_m, position_or_default


def test_zero_distance():
    assert haversine_m(45.0, 9.0, 45.0, 9.0) == 0.0


def test_one_degree_of_latitude():
    assert haversine_m(0.0, 0.0, 1.0, 0.0) == pytest.approx(111_195, rel=1e-4)


def test_missing_coordinates_fall_back_per_axis():
    assert position_or_default(None, None) == DEFAULT_POSITION
    assert position_or_default(10.0, None) == (10.0, DEFAULT_POSITION[1])
