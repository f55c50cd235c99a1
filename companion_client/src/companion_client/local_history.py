"""
Client-side copy of the relay history.

Snapshots (periodic ``GET /data``) and pushes (``new-data`` on the live
channel) both land here, and only here. The precedence rules are:

* a push is ignored if an identical reading is already held;
* a poll is identified by the ticket taken before its request started, and a
  snapshot whose poll began before the last applied one is dropped;
* pushes that arrived while a poll was in flight are kept on top of that poll's
  snapshot, so a slow poll never erases newer live data.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, List, Optional, Set, Tuple

from companion_core.domain.models import Reading

logger = logging.getLogger(__name__)

ReadingKey = Tuple[str, Optional[str], int, float, float, float]


def reading_key(reading: Reading) -> ReadingKey:
    return (
        reading.kind.value,
        reading.node,
        reading.timestamp,
        reading.lat,
        reading.lon,
        reading.pm25,
    )


@dataclass(frozen=True)
class PollTicket:
    generation: int
    push_seq: int


class LocalHistory:
    def __init__(self, capacity: int = 500):
        self.capacity = capacity
        self._items: Deque[Reading] = deque()
        self._keys: Set[ReadingKey] = set()
        self._recent_pushes: Deque[Tuple[int, Reading]] = deque(maxlen=capacity)
        self._push_seq = 0
        self._generation = 0
        self._applied_generation = 0
        self._lock = threading.Lock()

    def _append(self, reading: Reading) -> bool:
        key = reading_key(reading)
        if key in self._keys:
            return False
        if len(self._items) == self.capacity:
            self._keys.discard(reading_key(self._items.popleft()))
        self._items.append(reading)
        self._keys.add(key)
        return True

    def begin_poll(self) -> PollTicket:
        with self._lock:
            self._generation += 1
            return PollTicket(generation=self._generation, push_seq=self._push_seq)

    def apply_snapshot(self, ticket: PollTicket, readings: Iterable[Reading]) -> bool:
        """Replace the history with a polled snapshot. False when the poll is stale."""
        with self._lock:
            if ticket.generation <= self._applied_generation:
                logger.debug("Discarding stale snapshot from poll %d", ticket.generation)
                return False
            self._applied_generation = ticket.generation

            self._items.clear()
            self._keys.clear()
            for reading in readings:
                self._append(reading)

            kept = 0
            for seq, reading in self._recent_pushes:
                if seq > ticket.push_seq and self._append(reading):
                    kept += 1
            while self._recent_pushes and self._recent_pushes[0][0] <= ticket.push_seq:
                self._recent_pushes.popleft()

            if kept:
                logger.debug("Kept %d live readings newer than poll %d", kept, ticket.generation)
            return True

    def apply_push(self, reading: Reading) -> bool:
        """Add a live reading. False when it was already held."""
        with self._lock:
            self._push_seq += 1
            self._recent_pushes.append((self._push_seq, reading))
            return self._append(reading)

    def snapshot(self) -> List[Reading]:
        with self._lock:
            return list(self._items)

    def latest(self) -> Optional[Reading]:
        with self._lock:
            return self._items[-1] if self._items else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
