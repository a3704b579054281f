# =============================================================================
# app/websocket/__init__.py - WebSocket Module
# =============================================================================
# Provides real-time updates for booking, payment and auth events.
#
# Usage:
#   # Send to all of a user's open sockets (inside the API process)
#   from app.websocket import websocket_manager
#
#   await websocket_manager.broadcast(user_id, {"type": "booking_confirmed", ...})
#
#   # Publish from services or Celery workers (any process)
#   from app.websocket.broadcast import publish_booking_event
#
#   publish_booking_event("booking_confirmed", booking, [vendor_id, owner_id])
# =============================================================================

from app.websocket.manager import websocket_manager
from app.websocket.broadcast import (
    publish_event,
    publish_booking_event,
    publish_payment_event,
    publish_auth_event,
    WEBSOCKET_CHANNEL,
)

__all__ = [
    "websocket_manager",
    "publish_event",
    "publish_booking_event",
    "publish_payment_event",
    "publish_auth_event",
    "WEBSOCKET_CHANNEL",
]
