import pytest

from companion_core.application.risk import RiskPolicy, assess_risk
from companion_core.domain.models import Reading, ReadingKind, RiskLevel


def test_mixed_window_exposure_and_time_above_threshold():
    risk = assess_risk([{"pm25": 10}, {"pm25": 40}, {"pm25": 40}, {"pm25": 10}])
    assert risk.time_above_threshold == 50.0
    assert risk.cumulative_exposure == 25.0
    assert risk.level == RiskLevel.MODERATE
    # 0.6 * (25 / 75 * 100) + 0.4 * 50
    assert risk.percentage == pytest.approx(40.0)


def test_empty_window_is_low_risk():
    risk = assess_risk([])
    assert risk.level == RiskLevel.LOW
    assert risk.percentage == 0.0
    assert risk.cumulative_exposure == 0.0
    assert risk.time_above_threshold == 0.0


def test_threshold_is_exclusive():
    assert assess_risk([35.0, 35.0]).time_above_threshold == 0.0
    assert assess_risk([35.1, 35.0]).time_above_threshold == 50.0


@pytest.mark.parametrize(
    "exposure, level",
    [
        (0.0, RiskLevel.LOW),
        (11.9, RiskLevel.LOW),
        (12.0, RiskLevel.MODERATE),
        (35.0, RiskLevel.MODERATE),
        (35.5, RiskLevel.HIGH),
        (55.0, RiskLevel.HIGH),
        (55.1, RiskLevel.CRITICAL),
    ],
)
def test_default_breakpoints(exposure, level):
    assert assess_risk([exposure]).level == level


def test_percentage_is_capped():
    assert assess_risk([500.0, 400.0]).percentage == 100.0


def test_accepts_readings_and_custom_policy():
    window = [
        Reading(kind=ReadingKind.MOBILE, pm25=20.0, lat=0.0, lon=0.0, timestamp=1),
        Reading(kind=ReadingKind.MOBILE, pm25=30.0, lat=0.0, lon=0.0, timestamp=2),
    ]
    strict = RiskPolicy(low_below=5.0, moderate_max=10.0, high_max=20.0)
    assert assess_risk(window, strict).level == RiskLevel.CRITICAL
