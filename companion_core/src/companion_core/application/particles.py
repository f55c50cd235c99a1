import logging
import threading
from collections import deque
from typing import Deque, List, Optional, Tuple

from companion_core.domain.geo import haversine_m
from companion_core.domain.models import Particle

logger = logging.getLogger(__name__)


class ParticleSampler:
    """Throttles a live position feed into trail samples.

    A position is dropped when nothing was dropped before, or when both at least
    ``min_interval_ms`` elapsed and the position moved at least
    ``min_distance_m`` from the last drop.
    """

    def __init__(self, min_interval_ms: int = 5000, min_distance_m: float = 5.0):
        self.min_interval_ms = min_interval_ms
        self.min_distance_m = min_distance_m
        self.last_drop_time: Optional[int] = None
        self.last_drop_position: Optional[Tuple[float, float]] = None

    def offer(self, lat: float, lon: float, now_ms: int) -> bool:
        if self.last_drop_position is not None and self.last_drop_time is not None:
            elapsed = now_ms - self.last_drop_time
            moved = haversine_m(*self.last_drop_position, lat, lon)
            if elapsed < self.min_interval_ms or moved < self.min_distance_m:
                return False

        self.last_drop_time = now_ms
        self.last_drop_position = (lat, lon)
        return True

    def reset(self) -> None:
        self.last_drop_time = None
        self.last_drop_position = None


class ParticleTrail:
    """Dropped particles, oldest first, each living for ``ttl_ms``.

    Safe to feed from one thread while another reads ``particles()``.
    """

    def __init__(self, sampler: Optional[ParticleSampler] = None, ttl_ms: int = 120_000):
        self.sampler = sampler or ParticleSampler()
        self.ttl_ms = ttl_ms
        self._particles: Deque[Particle] = deque()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "ParticleTrail":
        sampler = ParticleSampler(
            min_interval_ms=settings.PARTICLE_MIN_INTERVAL_MS,
            min_distance_m=settings.PARTICLE_MIN_DISTANCE_M,
        )
        return cls(sampler, ttl_ms=settings.PARTICLE_TTL_MS)

    def observe(self, lat: float, lon: float, pm25: float, now_ms: int) -> Optional[Particle]:
        with self._lock:
            self._expire(now_ms)
            if not self.sampler.offer(lat, lon, now_ms):
                return None
            particle = Particle(lat=lat, lon=lon, pm25=pm25, dropped_at_ms=now_ms)
            self._particles.append(particle)
            alive = len(self._particles)
        logger.debug("Dropped particle at %.5f,%.5f (%d alive)", lat, lon, alive)
        return particle

    def expire(self, now_ms: int) -> int:
        with self._lock:
            return self._expire(now_ms)

    def _expire(self, now_ms: int) -> int:
        expired = 0
        while self._particles and now_ms - self._particles[0].dropped_at_ms >= self.ttl_ms:
            self._particles.popleft()
            expired += 1
        return expired

    def particles(self, now_ms: Optional[int] = None) -> List[Particle]:
        with self._lock:
            if now_ms is not None:
                self._expire(now_ms)
            return list(self._particles)
