import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from companion_core.domain.models import Reading
from companion_core.domain.ports import HistoryStore

logger = logging.getLogger(__name__)


class RingHistoryStore(HistoryStore):
    """
    Fixed-capacity, append-only history of readings.

    The oldest reading is evicted first once ``capacity`` is reached. All access
    goes through one lock, so a snapshot either contains an append entirely or
    not at all.
    """

    def __init__(self, capacity: int = 1000):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._items: Deque[Reading] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def append(self, reading: Reading) -> None:
        with self._lock:
            if len(self._items) == self.capacity:
                logger.debug("History full (%d), evicting oldest reading", self.capacity)
            self._items.append(reading)

    def snapshot(self) -> List[Reading]:
        with self._lock:
            return list(self._items)

    def latest(self) -> Optional[Reading]:
        with self._lock:
            return self._items[-1] if self._items else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
