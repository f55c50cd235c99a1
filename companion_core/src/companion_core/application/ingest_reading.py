import threading
from typing import Optional

from companion_core.domain.models import Reading
from companion_core.domain.ports import Broadcaster, HistoryStore, UnitOfWork


class RelayUnitOfWork(UnitOfWork):
    """
    Serialises ingests so that append and broadcast form one step.

    Entering the unit acquires the relay-wide lock, leaving it releases it. One
    instance is shared by every producer.
    """

    def __init__(
        self,
        history: HistoryStore,
        broadcaster: Broadcaster,
        lock: Optional[threading.Lock] = None,
    ):
        self._history = history
        self._broadcaster = broadcaster
        self._lock = lock or threading.Lock()

    def history(self) -> HistoryStore:
        return self._history

    def broadcaster(self) -> Broadcaster:
        return self._broadcaster

    def __enter__(self) -> "RelayUnitOfWork":
        self._lock.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._lock.release()


def ingest_reading(reading: Reading, uow: UnitOfWork) -> None:
    with uow:
        uow.history().append(reading)
        uow.broadcaster().publish(reading)
