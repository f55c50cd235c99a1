import json
import logging
import threading
from typing import Callable, Optional

from companion_core.domain.errors import TransportError
from companion_core.domain.models import Reading
from websockets.exceptions import WebSocketException
from websockets.sync.client import connect as ws_connect

from companion_client.backoff import BackoffPolicy, ExponentialBackoff
from companion_client.local_history import LocalHistory
from companion_client.relay_client import RelayClient

logger = logging.getLogger(__name__)


class ConnectionStatus:
    """The ``is_connected`` flag shown by the dashboard."""

    def __init__(self) -> None:
        self._connected = False
        self._lock = threading.Lock()

    @property
    def is_connected(self) -> bool:
        with self._lock:
            return self._connected

    def set(self, connected: bool) -> None:
        with self._lock:
            changed = self._connected != connected
            self._connected = connected
        if changed:
            logger.info("Relay %s", "reachable" if connected else "unreachable")


class HistoryPoller(threading.Thread):
    """Re-fetches the relay history every ``interval_s``.

    The next fetch starts only after the previous one finished, so polls never
    overlap.
    """

    daemon = True

    def __init__(
        self,
        client: RelayClient,
        history: LocalHistory,
        status: ConnectionStatus,
        interval_s: float = 5.0,
    ):
        super().__init__(name="history-poller")
        self.client = client
        self.history = history
        self.status = status
        self.interval_s = interval_s
        self.s_stop = threading.Event()

    def stop(self) -> None:
        self.s_stop.set()

    def poll_once(self) -> bool:
        ticket = self.history.begin_poll()
        try:
            readings = self.client.fetch_history()
        except TransportError as exc:
            logger.warning("History fetch failed: %s", exc)
            self.status.set(False)
            return False
        if self.history.apply_snapshot(ticket, readings):
            latest = self.history.latest()
            logger.debug(
                "Synced %d readings, newest at %s", len(self.history), latest.timestamp if latest else None
            )
        self.status.set(True)
        return True

    def run(self) -> None:
        while not self.s_stop.is_set():
            self.poll_once()
            self.s_stop.wait(self.interval_s)


class LiveFeed(threading.Thread):
    """Keeps a live-channel connection open and feeds ``new-data`` into the history."""

    daemon = True

    def __init__(
        self,
        url: str,
        history: LocalHistory,
        status: ConnectionStatus,
        backoff: Optional[BackoffPolicy] = None,
        connect: Callable = ws_connect,
        on_reading: Optional[Callable[[Reading], None]] = None,
    ):
        super().__init__(name="live-feed")
        self.url = url
        self.history = history
        self.status = status
        self._backoff = backoff or ExponentialBackoff()
        self._connect = connect
        self._on_reading = on_reading
        self._stop_event = threading.Event()

    def stop(self) -> None:
        logger.info("Stopping live feed")
        self._stop_event.set()

    def handle(self, raw) -> None:
        try:
            frame = json.loads(raw)
            event, data = frame["event"], frame.get("data")
        except (TypeError, ValueError, KeyError):
            logger.warning("Ignoring unreadable frame from relay")
            return

        if event == "new-data":
            try:
                reading = Reading.from_dict(data)
            except (AttributeError, TypeError, ValueError, KeyError) as exc:
                logger.warning("Ignoring malformed reading from relay: %s", exc)
                return
            if self.history.apply_push(reading) and self._on_reading:
                self._on_reading(reading)
        elif event == "connect":
            logger.info("Live channel open as %s", data.get("id") if isinstance(data, dict) else data)
        elif event == "pong":
            logger.debug("Relay answered ping")
        elif event == "rejected":
            logger.warning("Relay rejected a frame: %s", data)

    def _listen(self) -> None:
        with self._connect(self.url, open_timeout=5) as ws:
            self.status.set(True)
            self._backoff.next_delay(success=True)
            ws.send(json.dumps({"event": "ping", "data": None}))
            while not self._stop_event.is_set():
                try:
                    raw = ws.recv(timeout=1.0)
                except TimeoutError:
                    continue
                self.handle(raw)

    def run(self) -> None:
        logger.info("Starting live feed on %s", self.url)
        while not self._stop_event.is_set():
            try:
                self._listen()
            except (OSError, WebSocketException) as exc:
                self.status.set(False)
                delay = self._backoff.next_delay(success=False)
                logger.warning("Live channel lost (%s), reconnecting in %.1fs", exc, delay)
                self._stop_event.wait(delay)
        logger.info("Live feed stopped")
