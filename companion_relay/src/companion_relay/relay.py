import logging
from dataclasses import dataclass
from typing import Any, Mapping

from companion_core.application.fanout import FanoutBroadcaster, SubscriptionRegistry
from companion_core.application.history_store import RingHistoryStore
from companion_core.application.ingest_reading import RelayUnitOfWork, ingest_reading
from companion_core.application.validate_reading import parse_reading
from companion_core.domain.models import Reading, ReadingKind
from starlette.requests import HTTPConnection

log = logging.getLogger(__name__)


@dataclass
class Relay:
    """Process-wide relay state, created once at startup and stored on ``app.state``."""

    history: RingHistoryStore
    registry: SubscriptionRegistry
    uow: RelayUnitOfWork

    @classmethod
    def create(cls, capacity: int = 1000) -> "Relay":
        history = RingHistoryStore(capacity)
        registry = SubscriptionRegistry()
        return cls(
            history=history,
            registry=registry,
            uow=RelayUnitOfWork(history, FanoutBroadcaster(registry)),
        )

    def submit(self, payload: Mapping[str, Any], kind: ReadingKind) -> Reading:
        reading = parse_reading(payload, kind)
        ingest_reading(reading, self.uow)
        log.info(
            "Accepted %s reading from %s: pm25=%s pm10=%s at %.5f,%.5f",
            kind.value,
            reading.node or "anonymous",
            reading.pm25,
            reading.pm10,
            reading.lat,
            reading.lon,
        )
        return reading


def get_relay(conn: HTTPConnection) -> Relay:
    return conn.app.state.relay
