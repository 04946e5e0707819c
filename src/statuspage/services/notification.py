"""Live viewer notification hub."""

import asyncio
import json
import threading

import structlog

from statuspage.core.events import Pong, StatusEvent, serialize_event
from statuspage.core.interfaces import ViewerConnection

logger = structlog.get_logger()

DEFAULT_SEND_TIMEOUT_SECONDS = 5.0


class NotificationHub:
    """Fans events out to every connected viewer.

    There is no persistence and no per-organization filtering: every
    viewer receives every event and discards what it does not display.
    Viewers that are not open are skipped on broadcast; they leave the
    set only when the transport unregisters them.
    """

    def __init__(self, send_timeout: float = DEFAULT_SEND_TIMEOUT_SECONDS):
        self.send_timeout = send_timeout
        self._connections: set[ViewerConnection] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def register(self, connection: ViewerConnection) -> None:
        """Add a viewer to the broadcast set."""
        with self._lock:
            self._connections.add(connection)
            total = len(self._connections)
        logger.info("viewer_connected", viewers=total)

    def unregister(self, connection: ViewerConnection) -> None:
        """Remove a viewer. Removing an absent viewer is a no-op."""
        with self._lock:
            if connection not in self._connections:
                return
            self._connections.discard(connection)
            total = len(self._connections)
        logger.info("viewer_disconnected", viewers=total)

    def snapshot(self) -> list[ViewerConnection]:
        """Copy of the current viewer set, safe to iterate across awaits."""
        with self._lock:
            return list(self._connections)

    async def broadcast(self, event: StatusEvent) -> int:
        """Send an event to every open viewer.

        The event is serialized once. Sends run concurrently, each bounded
        by ``send_timeout``, and a failure for one viewer never stops
        delivery to the others.

        Returns:
            Number of viewers the event was delivered to.
        """
        payload = serialize_event(event)
        targets = [conn for conn in self.snapshot() if conn.is_open]
        if not targets:
            return 0

        results = await asyncio.gather(
            *(self._send(conn, payload, event.type) for conn in targets),
        )
        delivered = sum(results)
        logger.debug("event_broadcast", event_type=event.type, delivered=delivered)
        return delivered

    async def _send(self, connection: ViewerConnection, payload: str, event_type: str) -> bool:
        try:
            await asyncio.wait_for(connection.send_text(payload), timeout=self.send_timeout)
            return True
        except Exception as e:
            logger.warning(
                "viewer_send_failed",
                event_type=event_type,
                error=type(e).__name__,
                detail=str(e),
            )
            return False

    def close(self) -> None:
        """Drop all viewers at shutdown."""
        with self._lock:
            total = len(self._connections)
            self._connections.clear()
        logger.info("notification_hub_closed", dropped=total)


def handle_control_message(raw: str) -> Pong | None:
    """Answer an inbound control message from a viewer.

    ``{"type": "ping"}`` gets a Pong. Anything else, including malformed
    JSON, is dropped silently.
    """
    try:
        message = json.loads(raw)
    except (TypeError, ValueError):
        logger.debug("viewer_message_malformed")
        return None
    if isinstance(message, dict) and message.get("type") == "ping":
        return Pong()
    return None
