from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from companion_core.application.air_quality import air_quality_info
from companion_core.application.particles import ParticleTrail
from companion_core.application.risk import DEFAULT_POLICY, RiskPolicy, assess_risk
from companion_core.application.validate_reading import now_ms
from companion_core.domain.geo import position_or_default
from companion_core.domain.models import AirQualityInfo, Particle, Reading, ReadingKind, RiskAssessment

from companion_client.local_history import LocalHistory
from companion_client.sync import ConnectionStatus


def format_timestamp(timestamp_ms: int, tz: str = "UTC", fmt: str = "%H:%M") -> str:
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    if tz != "UTC":
        moment = moment.astimezone(ZoneInfo(tz))
    return moment.strftime(fmt)


@dataclass(frozen=True)
class ChartPoint:
    time: str
    pm25: float
    pm10: Optional[float]


@dataclass(frozen=True)
class Averages:
    pm25: float
    pm10: Optional[float]


def window_averages(readings: Sequence[Reading]) -> Averages:
    """Mean PM2.5 and PM10 over the window, to one decimal.

    Mobile readings carry no PM10, so the PM10 mean only counts readings that
    have one and is ``None`` when none do.
    """
    if not readings:
        return Averages(pm25=0.0, pm10=None)
    pm10 = [r.pm10 for r in readings if r.pm10 is not None]
    return Averages(
        pm25=round(sum(r.pm25 for r in readings) / len(readings), 1),
        pm10=round(sum(pm10) / len(pm10), 1) if pm10 else None,
    )


def map_path(readings: Iterable[Reading]) -> List[Tuple[float, float]]:
    """Coordinates of the history in order; a single point draws no line."""
    path = [(r.lat, r.lon) for r in readings if r.lat is not None and r.lon is not None]
    return path if len(path) > 1 else []


@dataclass(frozen=True)
class DashboardState:
    current: Optional[Reading]
    is_connected: bool
    risk: RiskAssessment
    air_quality: Optional[AirQualityInfo]
    position: Tuple[float, float]
    points: int
    averages: Averages = Averages(pm25=0.0, pm10=None)
    path: List[Tuple[float, float]] = field(default_factory=list)
    chart: List[ChartPoint] = field(default_factory=list)
    particles: List[Particle] = field(default_factory=list)


class DashboardView:
    """Everything the dashboard shows, derived from the local history."""

    def __init__(
        self,
        history: LocalHistory,
        status: ConnectionStatus,
        policy: RiskPolicy = DEFAULT_POLICY,
        chart_points: int = 30,
        tz: str = "UTC",
        trail: Optional[ParticleTrail] = None,
    ):
        self.history = history
        self.status = status
        self.policy = policy
        self.chart_points = chart_points
        self.tz = tz
        self.trail = trail or ParticleTrail()

    def observe(self, reading: Reading) -> Optional[Particle]:
        """Drop a trail particle for a mobile reading if the sampler lets it through."""
        if reading.kind != ReadingKind.MOBILE:
            return None
        return self.trail.observe(reading.lat, reading.lon, reading.pm25, reading.timestamp)

    def state(self, at_ms: Optional[int] = None) -> DashboardState:
        readings = self.history.snapshot()
        current = readings[-1] if readings else None
        return DashboardState(
            current=current,
            is_connected=self.status.is_connected,
            risk=assess_risk(readings, self.policy),
            air_quality=air_quality_info(current.pm25) if current else None,
            position=position_or_default(
                current.lat if current else None, current.lon if current else None
            ),
            points=len(readings),
            averages=window_averages(readings),
            path=map_path(readings),
            chart=[
                ChartPoint(time=format_timestamp(r.timestamp, self.tz), pm25=r.pm25, pm10=r.pm10)
                for r in readings[-self.chart_points :]
            ],
            particles=self.trail.particles(at_ms if at_ms is not None else now_ms()),
        )

    def render(self) -> str:
        s = self.state()
        link = "LIVE" if s.is_connected else "OFFLINE"
        if s.current is None:
            return f"[{link}] waiting for data"
        pm10 = "--" if s.current.pm10 is None else f"{s.current.pm10:.1f}"
        avg_pm10 = "--" if s.averages.pm10 is None else f"{s.averages.pm10:.1f}"
        return (
            f"[{link}] {format_timestamp(s.current.timestamp, self.tz, '%Y-%m-%d %H:%M:%S')} "
            f"PM2.5 {s.current.pm25:.1f} PM10 {pm10} µg/m³ ({s.air_quality.label}) "
            f"at {s.position[0]:.4f},{s.position[1]:.4f} | "
            f"risk {s.risk.level.value} {s.risk.percentage:.0f}% "
            f"mean {s.risk.cumulative_exposure:.1f} above35 {s.risk.time_above_threshold:.1f}% "
            f"| avg PM2.5 {s.averages.pm25:.1f} PM10 {avg_pm10} "
            f"| {s.points} points, {len(s.path)}-point path, {len(s.particles)} particles"
        )
