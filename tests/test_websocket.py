# =============================================================================
# tests/test_websocket.py - Realtime Channel & Event Publishing
# =============================================================================
# Run with: pytest tests/test_websocket.py -v
# =============================================================================

import asyncio
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from starlette.websockets import WebSocketDisconnect

from app.websocket.broadcast import WEBSOCKET_CHANNEL, publish_booking_event, publish_event
from app.websocket.manager import ConnectionManager
from tests.conftest import make_token, published_events


class TestPublishing:

    def test_publish_event_payload(self, redis_publish):
        assert publish_event("u-1", "payment_succeeded", {"amount": 1000})

        channel, _ = redis_publish.publish.call_args.args
        assert channel == WEBSOCKET_CHANNEL
        assert published_events(redis_publish) == [
            {"user_id": "u-1", "type": "payment_succeeded", "amount": 1000}
        ]

    def test_redis_down_returns_false(self, redis_publish):
        redis_publish.publish.side_effect = ConnectionError("redis down")
        assert publish_event("u-1", "booking_created", {}) is False

    def test_booking_event_deduplicates_recipients(self, redis_publish):
        booking = {"id": "b-1", "listing_id": "l-1", "status": "confirmed"}

        count = publish_booking_event("booking_confirmed", booking, ["u-1", None, "u-1", "u-2"])

        assert count == 2
        assert [e["user_id"] for e in published_events(redis_publish)] == ["u-1", "u-2"]


class TestConnectionManager:

    def test_broadcast_drops_dead_sockets(self):
        manager = ConnectionManager()
        alive, dead = AsyncMock(), AsyncMock()
        dead.send_json.side_effect = RuntimeError("closed")

        async def scenario():
            await manager.connect("u-1", alive)
            await manager.connect("u-1", dead)
            return await manager.broadcast("u-1", {"type": "ping"})

        assert asyncio.run(scenario()) == 1
        assert manager.get_connection_count("u-1") == 1
        alive.send_json.assert_awaited_with({"type": "ping"})

    def test_broadcast_to_nobody(self):
        assert asyncio.run(ConnectionManager().broadcast("ghost", {"type": "x"})) == 0


class TestWebSocketRoute:

    def test_connect_and_ping(self, client):
        user_id = str(uuid4())

        with client.websocket_connect(f"/ws/users/{user_id}?token={make_token(user_id)}") as ws:
            hello = ws.receive_json()
            assert hello["type"] == "connected" and hello["user_id"] == user_id

            ws.send_text("ping")
            assert ws.receive_text() == "pong"

    def test_invalid_token(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/ws/users/{uuid4()}?token=bad") as ws:
                ws.receive_json()
        assert exc_info.value.code == 4001

    def test_other_users_channel(self, client):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with client.websocket_connect(f"/ws/users/{uuid4()}?token={make_token(str(uuid4()))}") as ws:
                ws.receive_json()
        assert exc_info.value.code == 4003

    def test_status(self, client):
        body = client.get("/ws/status").json()
        assert body["total_connections"] == 0
        assert body["active_users"] == 0
