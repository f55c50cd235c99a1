from .air_quality import air_quality_info
from .fanout import FanoutBroadcaster, SubscriptionRegistry
from .history_store import RingHistoryStore
from .ingest_reading import RelayUnitOfWork, ingest_reading
from .particles import ParticleSampler, ParticleTrail
from .risk import RiskPolicy, assess_risk
from .validate_reading import normalize_timestamp, parse_reading

__all__ = [
    "air_quality_info",
    "FanoutBroadcaster",
    "SubscriptionRegistry",
    "RingHistoryStore",
    "RelayUnitOfWork",
    "ingest_reading",
    "ParticleSampler",
    "ParticleTrail",
    "RiskPolicy",
    "assess_risk",
    "normalize_timestamp",
    "parse_reading",
]
