# =============================================================================
# app/websocket/manager.py - WebSocket Connection Manager
# =============================================================================
# Manages WebSocket connections per user and handles broadcasting.
#
# Usage:
#   from app.websocket import websocket_manager
#
#   await websocket_manager.connect(user_id, websocket)
#   await websocket_manager.broadcast(user_id, {"type": "booking_confirmed", ...})
#   websocket_manager.disconnect(user_id, websocket)
# =============================================================================

import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class ConnectionManager:
    """
    Tracks WebSocket connections keyed by user ID.

    A user can have several sockets open (one per browser tab); every event
    for that user goes to all of them.
    """

    def __init__(self):
        # user_id -> set of WebSocket connections
        self.connections: dict[str, set[WebSocket]] = {}

    async def connect(self, user_id: str, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection and track it."""
        await websocket.accept()
        self.connections.setdefault(user_id, set()).add(websocket)

        logger.info(
            f"WebSocket connected for user {user_id}. "
            f"Total connections: {self.get_connection_count()}"
        )

    def disconnect(self, user_id: str, websocket: WebSocket) -> None:
        """Remove a WebSocket connection from tracking."""
        sockets = self.connections.get(user_id)
        if sockets is not None:
            sockets.discard(websocket)
            if not sockets:
                del self.connections[user_id]

        logger.info(
            f"WebSocket disconnected for user {user_id}. "
            f"Total connections: {self.get_connection_count()}"
        )

    async def broadcast(self, user_id: str, message: dict) -> int:
        """
        Send a message to every socket the user has open.

        Sockets that fail to send are dropped.

        Returns:
            int: Number of sockets the message was sent to
        """
        sockets = self.connections.get(user_id)
        if not sockets:
            logger.debug(f"No connections for user {user_id}, skipping broadcast")
            return 0

        dead: set[WebSocket] = set()
        sent_count = 0

        for websocket in list(sockets):
            try:
                await websocket.send_json(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Failed to send to WebSocket: {e}")
                dead.add(websocket)

        for websocket in dead:
            self.disconnect(user_id, websocket)

        logger.debug(
            f"Broadcast to user {user_id}: "
            f"type={message.get('type')}, sent to {sent_count} clients"
        )
        return sent_count

    def get_connection_count(self, user_id: str | None = None) -> int:
        """Active connections for one user, or in total."""
        if user_id:
            return len(self.connections.get(user_id, set()))
        return sum(len(s) for s in self.connections.values())

    def get_active_users(self) -> list[str]:
        return list(self.connections.keys())


# Global connection manager instance
websocket_manager = ConnectionManager()
