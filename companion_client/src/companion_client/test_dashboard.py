import pytest
from companion_core.domain.geo import DEFAULT_POSITION
from companion_core.domain.models import Reading, ReadingKind, RiskLevel

from companion_client.dashboard import Averages, DashboardView, format_timestamp, map_path, window_averages
from companion_client.local_history import LocalHistory
from companion_client.sync import ConnectionStatus


def r(ts: int, pm25: float, pm10=20.0) -> Reading:
    return Reading(kind=ReadingKind.NODE, node="n1", pm25=pm25, pm10=pm10, lat=45.5, lon=9.2, timestamp=ts)


def test_format_timestamp_utc():
    assert format_timestamp(0) == "00:00"
    assert format_timestamp(90 * 60 * 1000) == "01:30"
    assert format_timestamp(0, fmt="%Y-%m-%d") == "1970-01-01"


def test_empty_history():
    view = DashboardView(LocalHistory(), ConnectionStatus())

    state = view.state()

    assert state.current is None
    assert state.air_quality is None
    assert state.position == DEFAULT_POSITION
    assert state.risk.level == RiskLevel.LOW
    assert state.risk.percentage == 0
    assert view.render() == "[OFFLINE] waiting for data"


def test_state_from_history():
    history, status = LocalHistory(), ConnectionStatus()
    for i, pm25 in enumerate([10, 40, 40, 10]):
        history.apply_push(r(i * 60_000, pm25))
    status.set(True)

    state = DashboardView(history, status).state()

    assert state.current.pm25 == 10
    assert state.air_quality.category == "excellent"
    assert state.position == (45.5, 9.2)
    assert state.risk.level == RiskLevel.MODERATE
    assert state.risk.percentage == pytest.approx(40)
    assert state.points == 4
    assert [p.time for p in state.chart] == ["00:00", "00:01", "00:02", "00:03"]


def test_chart_is_limited_to_most_recent_points():
    history = LocalHistory()
    for i in range(10):
        history.apply_push(r(i * 60_000, 5.0 + i))

    chart = DashboardView(history, ConnectionStatus(), chart_points=3).state().chart

    assert [p.pm25 for p in chart] == [12.0, 13.0, 14.0]


def test_render_mobile_reading_without_pm10():
    history, status = LocalHistory(), ConnectionStatus()
    history.apply_push(
        Reading(kind=ReadingKind.MOBILE, pm25=60.0, lat=45.0, lon=9.0, timestamp=0)
    )
    status.set(True)

    line = DashboardView(history, status).render()

    assert line.startswith("[LIVE] 1970-01-01 00:00:00")
    assert "PM10 --" in line
    assert "(Dangerous)" in line


def test_mobile_readings_drop_trail_particles():
    view = DashboardView(LocalHistory(), ConnectionStatus())
    fixed = r(0, 10.0)
    near = Reading(kind=ReadingKind.MOBILE, pm25=20.0, lat=45.0, lon=9.0, timestamp=0)
    moved = Reading(kind=ReadingKind.MOBILE, pm25=25.0, lat=45.001, lon=9.0, timestamp=6_000)

    assert view.observe(fixed) is None
    assert view.observe(near) is not None
    assert view.observe(moved) is not None

    particles = view.state(at_ms=10_000).particles
    assert [p.pm25 for p in particles] == [20.0, 25.0]
    assert view.state(at_ms=200_000).particles == []


def test_window_averages_skip_missing_pm10():
    readings = [
        r(0, 10.0, pm10=20.0),
        r(1, 12.0, pm10=25.0),
        Reading(kind=ReadingKind.MOBILE, pm25=20.5, lat=45.0, lon=9.0, timestamp=2),
    ]
    assert window_averages(readings) == Averages(pm25=14.2, pm10=22.5)
    assert window_averages(readings[2:]) == Averages(pm25=20.5, pm10=None)
    assert window_averages([]) == Averages(pm25=0.0, pm10=None)


def test_map_path_needs_two_points():
    one = [Reading(kind=ReadingKind.MOBILE, pm25=1.0, lat=45.0, lon=9.0, timestamp=0)]
    two = one + [Reading(kind=ReadingKind.MOBILE, pm25=1.0, lat=45.1, lon=9.1, timestamp=1)]
    assert map_path(one) == []
    assert map_path(two) == [(45.0, 9.0), (45.1, 9.1)]


def test_state_carries_averages_and_path():
    history, status = LocalHistory(), ConnectionStatus()
    history.apply_push(r(0, 10.0, pm10=20.0))
    history.apply_push(r(60_000, 30.0, pm10=None))

    view = DashboardView(history, status)
    state = view.state(at_ms=0)

    assert state.averages == Averages(pm25=20.0, pm10=20.0)
    assert state.path == [(45.5, 9.2), (45.5, 9.2)]
    assert "avg PM2.5 20.0 PM10 20.0" in view.render()
    assert "2-point path" in view.render()
