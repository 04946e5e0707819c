"""Tests for the live event WebSocket."""

from __future__ import annotations

from typing import Any


class TestEventStream:
    """Tests for /ws."""

    def test_connected_then_pong(self, api: Any) -> None:
        """Viewers get an acknowledgment and pongs for pings."""
        with api.client.websocket_connect("/ws") as ws:
            connected = ws.receive_json()
            ws.send_text('{"type": "ping"}')
            pong = ws.receive_json()

        assert connected == {
            "type": "connected",
            "message": "Connected to Status Page WebSocket",
        }
        assert pong == {"type": "pong"}

    def test_ignores_other_messages(self, api: Any) -> None:
        """Malformed or unknown messages get no reply."""
        with api.client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("hello")
            ws.send_text('{"type": "subscribe"}')
            ws.send_text('{"type": "ping"}')

            assert ws.receive_json() == {"type": "pong"}

    def test_binary_frame_keeps_connection(self, api: Any) -> None:
        """Undecodable binary frames are ignored and the viewer stays subscribed."""
        with api.client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_bytes(b"\x00\xff\x01")
            ws.send_text('{"type": "ping"}')

            assert ws.receive_json() == {"type": "pong"}
            assert len(api.client.app.state.hub) == 1

    def test_binary_ping(self, api: Any) -> None:
        """A ping sent as a binary frame is still answered."""
        with api.client.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_bytes(b'{"type": "ping"}')

            assert ws.receive_json() == {"type": "pong"}

    def test_receives_broadcasts(self, api: Any) -> None:
        """Mutations are pushed to connected viewers."""
        with api.client.websocket_connect("/ws") as ws:
            ws.receive_json()
            api.client.post(
                "/api/services",
                json={"name": "API", "description": "d"},
                headers=api.headers(api.manager),
            )

            event = ws.receive_json()

        assert event["type"] == "service_created"
        assert event["service"]["name"] == "API"

    def test_incident_broadcast_order(self, api: Any) -> None:
        """Service status changes are pushed before the incident event."""
        headers = api.headers(api.manager)
        service = api.client.post(
            "/api/services", json={"name": "API", "description": "d"}, headers=headers
        ).json()

        with api.client.websocket_connect("/ws") as ws:
            ws.receive_json()
            api.client.post(
                "/api/incidents",
                json={"title": "t", "description": "d", "affected_services": [service["id"]]},
                headers=headers,
            )

            first = ws.receive_json()
            second = ws.receive_json()

        assert first["type"] == "service_updated"
        assert first["service"]["status"] == "Partial Outage"
        assert second["type"] == "incident_created"
        assert second["incident"]["affected_services"][0]["status"] == "Partial Outage"

    def test_unregisters_on_close(self, api: Any) -> None:
        """Closed viewers leave the hub."""
        hub = api.client.app.state.hub

        with api.client.websocket_connect("/ws") as ws:
            ws.receive_json()
            assert len(hub) == 1

        assert len(hub) == 0
