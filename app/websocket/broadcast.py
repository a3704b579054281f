# =============================================================================
# app/websocket/broadcast.py - Cross-Process Broadcasting
# =============================================================================
# Lets services and Celery workers publish events that get broadcast to a
# user's WebSocket clients.
#
# Uses Redis pub/sub for cross-process communication:
# - Services/workers call publish_event() to send events
# - FastAPI subscribes and forwards to the user's sockets
#
# Events:
#   - booking_created / booking_confirmed / booking_cancelled / booking_completed
#   - booking_updated / booking_payment_updated
#   - payment_succeeded / payment_failed / payment_refunded
#   - auth_<event> (e.g. auth_signed_in) from the auth-state synchronizer
# =============================================================================

import json
import logging
from typing import Any

logger = logging.getLogger(__name__)

# Redis channel for WebSocket events
WEBSOCKET_CHANNEL = "foodtruckhub:websocket:events"


def get_redis_client():
    """Get a Redis client for pub/sub operations."""
    import redis
    from app.config import settings
    return redis.from_url(settings.REDIS_URL)


def publish_event(user_id: str, event_type: str, data: dict[str, Any]) -> bool:
    """
    Publish an event that will be broadcast to a user's WebSocket clients.

    Args:
        user_id: The user to notify
        event_type: Event type (booking_created, payment_succeeded, ...)
        data: Event data to include (must be JSON-serializable)

    Returns:
        bool: True if published successfully, False if Redis was unavailable
    """
    try:
        client = get_redis_client()

        message = json.dumps({
            "user_id": str(user_id),
            "type": event_type,
            **data
        }, default=str)

        client.publish(WEBSOCKET_CHANNEL, message)

        logger.debug(f"Published {event_type} event for user {user_id}")
        return True

    except Exception as e:
        logger.error(f"Failed to publish {event_type} event: {e}")
        return False


def publish_booking_event(
    event_type: str,
    booking: dict[str, Any],
    recipients: list[str],
) -> int:
    """
    Publish a booking state change to each recipient (vendor and owner).

    Returns:
        int: Number of recipients the event was published for
    """
    data = {
        "booking_id": booking.get("id"),
        "listing_id": booking.get("listing_id"),
        "status": booking.get("status"),
        "payment_status": booking.get("payment_status"),
        "booking_date": booking.get("booking_date"),
        "start_time": booking.get("start_time"),
        "end_time": booking.get("end_time"),
    }
    published = 0
    for user_id in dict.fromkeys(str(r) for r in recipients if r):
        if publish_event(user_id, event_type, data):
            published += 1
    return published


def publish_payment_event(
    user_id: str,
    event_type: str,
    payment_intent_id: str,
    booking_id: str | None,
    amount: int,
) -> bool:
    """Publish a payment_* event to the paying vendor."""
    return publish_event(
        user_id=user_id,
        event_type=event_type,
        data={
            "payment_intent_id": payment_intent_id,
            "booking_id": booking_id,
            "amount": amount,
        }
    )


def publish_auth_event(user_id: str, auth_event: str, is_placeholder: bool = False) -> bool:
    """Publish an auth-state change (signed in, token refreshed, ...)."""
    return publish_event(
        user_id=user_id,
        event_type=f"auth_{auth_event.lower()}",
        data={"event": auth_event, "is_placeholder": is_placeholder}
    )
