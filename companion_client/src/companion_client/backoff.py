import random
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class BackoffPolicy(Protocol):
    """How long to wait before the next attempt at reaching the relay."""

    def next_delay(self, *, success: bool) -> float: ...


class ExponentialBackoff(BackoffPolicy):
    """Doubles the wait on every consecutive failure, up to ``max_``.

    The n-th failure in a row waits ``base * 2**n`` seconds, spread by
    ``±jitter`` so that reconnecting clients do not hit the relay in lockstep.
    Any success clears the streak.
    """

    def __init__(
        self,
        base: float = 1.0,
        max_: float = 60.0,
        jitter: float = 0.5,
        rng: Optional[random.Random] = None,
    ):
        self.base = base
        self.max = max_
        self.jitter = jitter
        self.failures = 0
        self._rng = rng or random.Random()

    def reset(self) -> None:
        self.failures = 0

    def next_delay(self, *, success: bool) -> float:
        if success:
            self.reset()
            return 0.0

        self.failures += 1
        delay = min(self.base * 2**self.failures, self.max)
        return delay * (1 + self._rng.uniform(-self.jitter, self.jitter))
