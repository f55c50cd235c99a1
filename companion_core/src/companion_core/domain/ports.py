from typing import Any, List, Protocol

from companion_core.domain.models import Reading


class HistoryStore(Protocol):
    def append(self, reading: Reading) -> None: ...

    def snapshot(self) -> List[Reading]: ...


class Subscriber(Protocol):
    id: str

    def deliver(self, event: str, data: Any) -> None:
        """Hand an event to the subscriber without blocking the caller."""
        ...


class Broadcaster(Protocol):
    def publish(self, reading: Reading) -> None: ...


class UnitOfWork(Protocol):
    def history(self) -> HistoryStore: ...

    def broadcaster(self) -> Broadcaster: ...

    def __enter__(self) -> "UnitOfWork": ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...
