import logging
import threading
from typing import Dict, List

from companion_core.domain.models import Reading
from companion_core.domain.ports import Broadcaster, Subscriber

logger = logging.getLogger(__name__)

NEW_DATA = "new-data"


class SubscriptionRegistry:
    """Live subscribers keyed by connection id."""

    def __init__(self) -> None:
        self._members: Dict[str, Subscriber] = {}
        self._lock = threading.Lock()

    def add(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._members[subscriber.id] = subscriber
            total = len(self._members)
        logger.info("Subscriber %s connected (total: %d)", subscriber.id, total)

    def remove(self, subscriber: Subscriber) -> bool:
        with self._lock:
            removed = self._members.pop(subscriber.id, None) is not None
            total = len(self._members)
        if removed:
            logger.info("Subscriber %s disconnected (total: %d)", subscriber.id, total)
        return removed

    def members(self) -> List[Subscriber]:
        with self._lock:
            return list(self._members.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)


class FanoutBroadcaster(Broadcaster):
    """Delivers every published reading to all current registry members.

    Delivery is best-effort and at most once. A subscriber whose ``deliver``
    raises is removed from the registry; the others are unaffected.
    """

    def __init__(self, registry: SubscriptionRegistry):
        self.registry = registry

    def publish(self, reading: Reading) -> None:
        payload = reading.to_dict()
        dead: List[Subscriber] = []
        for subscriber in self.registry.members():
            try:
                subscriber.deliver(NEW_DATA, payload)
            except Exception as exc:
                logger.warning("Dropping subscriber %s after failed delivery: %s", subscriber.id, exc)
                dead.append(subscriber)
        for subscriber in dead:
            self.registry.remove(subscriber)
