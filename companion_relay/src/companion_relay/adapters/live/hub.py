import asyncio
import logging
import uuid
from typing import Any

from companion_core.domain.ports import Subscriber
from fastapi import WebSocket

log = logging.getLogger(__name__)


class WebSocketSubscriber(Subscriber):
    """
    A live viewer behind one WebSocket.

    ``deliver`` may be called from any thread: it only schedules the frame onto
    the subscriber's own queue on the event loop that owns the socket. ``pump``
    is the single writer to the socket, so a slow viewer only delays itself.
    """

    def __init__(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop):
        self.id = uuid.uuid4().hex
        self._ws = websocket
        self._loop = loop
        self._queue: "asyncio.Queue[dict]" = asyncio.Queue()
        self.closed = False

    def deliver(self, event: str, data: Any) -> None:
        if self.closed:
            raise ConnectionError(f"subscriber {self.id} is closed")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, {"event": event, "data": data})

    async def pump(self) -> None:
        try:
            while True:
                frame = await self._queue.get()
                await self._ws.send_json(frame)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.warning("Send to subscriber %s failed: %s", self.id, exc)
            self.closed = True

    def close(self) -> None:
        self.closed = True
