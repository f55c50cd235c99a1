"""
Simulated producers: a fixed sensor node posting over HTTP and a GPS-tagged
mobile tracker pushing ``update-location`` over the live channel.
"""

import json
import logging
import math
import random
import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterable, Iterator, Optional, Protocol

from companion_core.application.particles import ParticleTrail
from companion_core.application.validate_reading import now_ms
from companion_core.domain.errors import GeolocationError, TransportError, ValidationError
from websockets.exceptions import WebSocketException
from websockets.sync.client import connect as ws_connect

from companion_client.backoff import BackoffPolicy, ExponentialBackoff
from companion_client.relay_client import RelayClient

logger = logging.getLogger(__name__)

METRES_PER_DEGREE = 111_195.0


class PMWalk:
    """Random walk of PM2.5/PM10 concentrations, never negative."""

    def __init__(self, pm25: float = 12.0, ratio: float = 1.6, step: float = 2.0, rng=None):
        self.pm25 = pm25
        self.ratio = ratio
        self.step = step
        self._rng = rng or random.Random()

    def next(self) -> Dict[str, float]:
        self.pm25 = max(0.0, self.pm25 + self._rng.uniform(-self.step, self.step))
        pm10 = self.pm25 * self.ratio + self._rng.uniform(0, self.step)
        return {"pm25": round(self.pm25, 1), "pm10": round(pm10, 1)}


class SimulatedNode:
    """A fixed node at ``lat``/``lon``; like the ESP32 it has no clock of its own."""

    def __init__(self, node_id: str, lat: float, lon: float, walk: Optional[PMWalk] = None):
        self.node_id = node_id
        self.lat = lat
        self.lon = lon
        self.walk = walk or PMWalk()

    def read(self) -> Dict[str, Any]:
        return {"node": self.node_id, **self.walk.next(), "lat": self.lat, "lon": self.lon}


class NodeLoop(threading.Thread):
    """Posts a node reading every ``interval_s``.

    Readings that could not be delivered stay in a bounded backlog, stamped with
    their read time, and are resent oldest first once the relay answers again.
    """

    daemon = True

    def __init__(
        self,
        node: SimulatedNode,
        client: RelayClient,
        interval_s: float = 10.0,
        backoff: Optional[BackoffPolicy] = None,
        backlog_max: int = 100,
    ):
        super().__init__(name=f"node-{node.node_id}")
        self.node = node
        self.client = client
        self.interval_s = interval_s
        self._backoff = backoff or ExponentialBackoff()
        self.backlog: Deque[Dict[str, Any]] = deque(maxlen=backlog_max)
        self.s_stop = threading.Event()

    def stop(self) -> None:
        self.s_stop.set()

    def flush(self) -> bool:
        """Send the backlog; False as soon as the relay is unreachable."""
        while self.backlog:
            payload = self.backlog[0]
            try:
                self.client.submit_reading(payload)
            except TransportError as exc:
                logger.warning("Relay unreachable, %d readings pending: %s", len(self.backlog), exc)
                return False
            except ValidationError as exc:
                logger.error("Relay rejected reading %s: %s", payload, exc.reason)
            self.backlog.popleft()
        return True

    def tick(self) -> float:
        payload = {**self.node.read(), "timestamp": now_ms()}
        self.backlog.append(payload)
        ok = self.flush()
        if ok:
            logger.info("Reading sent: pm25=%s pm10=%s", payload["pm25"], payload["pm10"])
        return self._backoff.next_delay(success=ok)

    def run(self) -> None:
        while not self.s_stop.is_set():
            delay = self.tick()
            self.s_stop.wait(max(self.interval_s, delay))


@dataclass(frozen=True)
class Fix:
    lat: float
    lon: float
    timestamp_ms: int


class PositionSource(Protocol):
    def next_fix(self) -> Fix:
        """Return the next position or raise ``GeolocationError``."""
        ...


class ScriptedPositionSource(PositionSource):
    """Replays fixed positions; running out counts as losing the signal."""

    def __init__(self, fixes: Iterable[Fix]):
        self._fixes: Iterator[Fix] = iter(fixes)

    def next_fix(self) -> Fix:
        try:
            return next(self._fixes)
        except StopIteration:
            raise GeolocationError("position unavailable") from None


class RandomWalkPositionSource(PositionSource):
    def __init__(
        self,
        lat: float,
        lon: float,
        step_m: float = 8.0,
        interval_s: float = 1.0,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
        rng=None,
    ):
        self.lat = lat
        self.lon = lon
        self.step_m = step_m
        self.interval_s = interval_s
        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()

    def next_fix(self) -> Fix:
        self._sleep(self.interval_s)
        heading = self._rng.uniform(0, 2 * math.pi)
        self.lat += self.step_m * math.cos(heading) / METRES_PER_DEGREE
        self.lon += self.step_m * math.sin(heading) / (
            METRES_PER_DEGREE * max(math.cos(math.radians(self.lat)), 1e-6)
        )
        return Fix(lat=self.lat, lon=self.lon, timestamp_ms=int(self._clock() * 1000))


class LiveChannel:
    """Client side of the relay's live channel, connected lazily."""

    def __init__(self, url: str, connect: Callable = ws_connect):
        self.url = url
        self._connect = connect
        self._ws = None

    def emit(self, event: str, data: Any) -> None:
        try:
            if self._ws is None:
                self._ws = self._connect(self.url, open_timeout=5)
            self._ws.send(json.dumps({"event": event, "data": data}))
        except (OSError, WebSocketException) as exc:
            self.close()
            raise TransportError(f"live channel {self.url}: {exc}") from exc

    def close(self) -> None:
        if self._ws is not None:
            try:
                self._ws.close()
            except (OSError, WebSocketException):
                pass
            self._ws = None


class TrackerSession:
    """Tracks a mobile client until its position source fails.

    Every fix is pushed as ``update-location``; the local particle trail keeps
    the throttled samples a map would draw.
    """

    def __init__(
        self,
        source: PositionSource,
        channel: LiveChannel,
        walk: Optional[PMWalk] = None,
        trail: Optional[ParticleTrail] = None,
    ):
        self.source = source
        self.channel = channel
        self.walk = walk or PMWalk()
        self.trail = trail or ParticleTrail()
        self.sent = 0
        self.error: Optional[str] = None
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def step(self) -> bool:
        """Handle one fix; False once tracking has ended."""
        try:
            fix = self.source.next_fix()
        except GeolocationError as exc:
            self.error = str(exc)
            logger.error("Tracking stopped: %s", exc)
            return False

        pm25 = self.walk.next()["pm25"]
        self.trail.observe(fix.lat, fix.lon, pm25, fix.timestamp_ms)
        try:
            self.channel.emit(
                "update-location",
                {"lat": fix.lat, "lon": fix.lon, "pm25": pm25, "timestamp": fix.timestamp_ms},
            )
            self.sent += 1
        except TransportError as exc:
            logger.warning("Location update not delivered, will retry on next fix: %s", exc)
        return True

    def run(self) -> None:
        logger.info("Tracking started")
        try:
            while not self._stop_event.is_set() and self.step():
                pass
        finally:
            self.channel.close()
        logger.info("Tracking ended after %d updates", self.sent)
