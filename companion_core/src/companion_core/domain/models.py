from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ReadingKind(str, Enum):
    NODE = "node"
    MOBILE = "mobile"


@dataclass(frozen=True)
class Reading:
    kind: ReadingKind
    pm25: float
    lat: float
    lon: float
    timestamp: int  # epoch milliseconds
    pm10: Optional[float] = None
    node: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "kind": self.kind.value,
            "pm25": self.pm25,
            "lat": self.lat,
            "lon": self.lon,
            "timestamp": self.timestamp,
        }
        if self.node is not None:
            d["node"] = self.node
        if self.pm10 is not None:
            d["pm10"] = self.pm10
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Reading":
        return cls(
            kind=ReadingKind(d.get("kind", ReadingKind.NODE.value)),
            pm25=float(d["pm25"]),
            lat=float(d["lat"]),
            lon=float(d["lon"]),
            timestamp=int(d["timestamp"]),
            pm10=None if d.get("pm10") is None else float(d["pm10"]),
            node=d.get("node"),
        )


class RiskLevel(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class RiskAssessment:
    level: RiskLevel
    percentage: float
    cumulative_exposure: float
    time_above_threshold: float


@dataclass(frozen=True)
class Particle:
    lat: float
    lon: float
    pm25: float
    dropped_at_ms: int


@dataclass(frozen=True)
class AirQualityInfo:
    category: str
    label: str
    color: str
