"""Live event stream over WebSocket."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from statuspage.core.events import Connected, serialize_event
from statuspage.services.notification import NotificationHub, handle_control_message

logger = structlog.get_logger()

router = APIRouter(tags=["events"])


class WebSocketViewer:
    """Adapts a FastAPI WebSocket to the hub's viewer connection."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        await self.websocket.send_text(data)


@router.websocket("/ws")
async def event_stream(websocket: WebSocket) -> None:
    """Subscribe to every status event.

    The viewer receives a ``connected`` acknowledgment first, then every
    broadcast. ``{"type": "ping"}`` is answered with ``{"type": "pong"}``;
    other inbound messages, binary frames included, are ignored.
    """
    hub: NotificationHub = websocket.app.state.hub
    await websocket.accept()

    viewer = WebSocketViewer(websocket)
    hub.register(viewer)
    try:
        await websocket.send_text(serialize_event(Connected()))
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            raw = message.get("text")
            if raw is None:
                raw = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            reply = handle_control_message(raw)
            if reply is not None:
                await websocket.send_text(serialize_event(reply))
    except WebSocketDisconnect:
        logger.debug("viewer_closed")
    finally:
        hub.unregister(viewer)
