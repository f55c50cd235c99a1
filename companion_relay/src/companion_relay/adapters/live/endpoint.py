import asyncio
import json
import logging
from typing import Any, Optional

from companion_core.domain.errors import ValidationError
from companion_core.domain.models import ReadingKind
from fastapi import APIRouter, Depends, WebSocket

from companion_relay.adapters.live.hub import WebSocketSubscriber
from companion_relay.relay import Relay, get_relay

log = logging.getLogger(__name__)

router = APIRouter()

CONNECT = "connect"
PING = "ping"
PONG = "pong"
UPDATE_LOCATION = "update-location"
REJECTED = "rejected"

PONG_PAYLOAD = {"msg": "pong"}


def handle_frame(raw: Optional[Any], subscriber: WebSocketSubscriber, relay: Relay) -> None:
    try:
        frame = json.loads(raw)
        event, data = frame["event"], frame.get("data")
    except (TypeError, ValueError, KeyError, AttributeError):
        subscriber.deliver(REJECTED, {"error": "invalid frame"})
        return

    if event == PING:
        subscriber.deliver(PONG, PONG_PAYLOAD)
    elif event == UPDATE_LOCATION:
        if not isinstance(data, dict):
            subscriber.deliver(REJECTED, {"error": "invalid update-location: expected an object"})
            return
        try:
            relay.submit(data, ReadingKind.MOBILE)
        except ValidationError as exc:
            log.warning("Rejected location update from %s: %s", subscriber.id, exc.reason)
            subscriber.deliver(REJECTED, {"error": exc.reason})
    else:
        subscriber.deliver(REJECTED, {"error": f"unknown event {event!r}"})


@router.websocket("/ws")
async def live_channel(websocket: WebSocket, relay: Relay = Depends(get_relay)):
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket, asyncio.get_running_loop())
    subscriber.deliver(CONNECT, {"id": subscriber.id})
    relay.registry.add(subscriber)
    sender = asyncio.create_task(subscriber.pump())

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            handle_frame(message.get("text") or message.get("bytes"), subscriber, relay)
    finally:
        relay.registry.remove(subscriber)
        subscriber.close()
        sender.cancel()
