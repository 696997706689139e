"""
Registry of open websocket connections.

A profile may be connected from several devices at once. Each connection
remembers when it last answered a ping so the heartbeat can drop silent ones.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Set
from uuid import UUID
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Connection:
    user_id: UUID
    last_pong: datetime = field(default_factory=_now)


class ConnectionManager:

    def __init__(self):
        self.connections: Dict[WebSocket, Connection] = {}
        self.by_user: Dict[UUID, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, user_id: UUID):
        """Register a connection that has already been accepted and authenticated."""
        self.connections[websocket] = Connection(user_id)
        devices = self.by_user.setdefault(user_id, set())
        devices.add(websocket)
        logger.info(f"Websocket registered for profile {user_id} ({len(devices)} open)")

    def disconnect(self, websocket: WebSocket):
        connection = self.connections.pop(websocket, None)
        if connection is None:
            return

        devices = self.by_user.get(connection.user_id, set())
        devices.discard(websocket)
        if not devices:
            self.by_user.pop(connection.user_id, None)
        logger.info(f"Websocket closed for profile {connection.user_id}")

    async def send(self, websocket: WebSocket, frame: dict) -> bool:
        """Send one frame. A connection that fails to receive it is dropped."""
        try:
            await websocket.send_json(frame)
            return True
        except Exception as e:
            logger.warning(f"Dropping websocket after failed {frame.get('type')} frame: {e}")
            self.disconnect(websocket)
            return False

    def update_pong(self, websocket: WebSocket):
        connection = self.connections.get(websocket)
        if connection is not None:
            connection.last_pong = _now()

    def is_stale(self, websocket: WebSocket, max_silence_seconds: float, now: Optional[datetime] = None) -> bool:
        """True when the connection is unknown or has not ponged within the window."""
        connection = self.connections.get(websocket)
        if connection is None:
            return True
        return ((now or _now()) - connection.last_pong).total_seconds() > max_silence_seconds

    def get_connection_count(self) -> dict:
        return {
            "total_connections": len(self.connections),
            "unique_users": len(self.by_user),
        }


connection_manager = ConnectionManager()
