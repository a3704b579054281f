# =============================================================================
# app/websocket/routes.py - WebSocket Routes
# =============================================================================
# Per-user realtime channel.
#
# Connect: ws://host/ws/users/{user_id}?token={jwt}
#
# Events:
#   - {"type": "booking_confirmed", "booking_id": "...", "status": "confirmed", ...}
#   - {"type": "payment_succeeded", "payment_intent_id": "pi_mock_...", ...}
#   - {"type": "auth_signed_in", "event": "SIGNED_IN", "is_placeholder": false}
# =============================================================================

import logging

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect

from app.auth.dependencies import verify_access_token
from app.websocket.manager import websocket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/users/{user_id}")
async def user_websocket(
    websocket: WebSocket,
    user_id: str,
    token: str = Query(..., description="JWT token for authentication")
):
    """
    WebSocket endpoint for a user's booking, payment and auth events.

    The token's subject must be the user in the path.

    Connection URL:
        ws://localhost:8000/ws/users/{user_id}?token={jwt}

    Example event:
        {
            "type": "booking_created",
            "booking_id": "550e8400-...",
            "listing_id": "6ba7b810-...",
            "status": "pending",
            "booking_date": "2024-07-06",
            "start_time": "11:00",
            "end_time": "15:00"
        }
    """
    # 1. Verify JWT token
    try:
        auth_user = verify_access_token(token)
    except HTTPException as e:
        logger.warning(f"WebSocket auth failed: {e.detail}")
        await websocket.close(code=4001, reason="Invalid token")
        return

    # 2. Token must belong to the channel's user
    if str(auth_user.id) != user_id:
        logger.warning(f"WebSocket access denied: user {auth_user.id} tried to join {user_id}")
        await websocket.close(code=4003, reason="Access denied")
        return

    # 3. Accept connection and add to manager
    await websocket_manager.connect(user_id, websocket)

    try:
        await websocket.send_json({
            "type": "connected",
            "user_id": user_id,
            "message": "Connected to realtime updates"
        })

        while True:
            try:
                data = await websocket.receive_text()

                # Handle ping/pong for keepalive
                if data == "ping":
                    await websocket.send_text("pong")
                else:
                    logger.debug(f"WebSocket received: {data[:100]}")

            except WebSocketDisconnect:
                raise
            except Exception as e:
                logger.warning(f"WebSocket receive error: {e}")
                break

    except WebSocketDisconnect:
        logger.info(f"WebSocket client disconnected for user {user_id}")
    finally:
        websocket_manager.disconnect(user_id, websocket)


@router.get("/ws/status")
async def websocket_status():
    """
    Get WebSocket connection statistics.

    Returns:
        dict: Connection counts and active users
    """
    active = websocket_manager.get_active_users()
    return {
        "total_connections": websocket_manager.get_connection_count(),
        "active_users": len(active),
    }
