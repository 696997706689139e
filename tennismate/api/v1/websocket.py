"""
WebSocket endpoint for live chat and unread counters.

Protocol:
1. Client connects
2. Client sends {"type": "authenticate", "token": ...}
3. Server answers "authenticated" and an initial "unread_counts" frame
4. Client may send subscribe_chat / unsubscribe_chat / mark_match_read
5. Server sends periodic "ping"; client answers "pong"

The endpoint does not use Depends(get_db): a connection may stay open for
hours, so every database access inside the session opens its own short-lived
session instead of holding a pooled connection.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from uuid import UUID
import asyncio
import json
import logging

import structlog

from tennismate.core.config import settings
from tennismate.core.database import AsyncSessionLocal
from tennismate.core.security import verify_token
from tennismate.core.websocket_manager import connection_manager
from tennismate.repositories.profile_repository import ProfileRepository
from tennismate.services.live_session import LiveSession

logger = logging.getLogger(__name__)

router = APIRouter()


async def authenticate_websocket(token: str, db: AsyncSession) -> Optional[UUID]:
    """
    Resolve a JWT to the id of an existing profile.

    Returns:
        Profile id if the token is valid and the profile exists, None otherwise
    """
    user_id = verify_token(token, "access")
    if user_id is None:
        logger.debug("WebSocket auth failed: invalid token")
        return None

    if not await ProfileRepository().exists(db, user_id):
        logger.debug(f"WebSocket auth failed: profile not found: {user_id}")
        return None

    return user_id


async def _reject(websocket: WebSocket, message: str):
    await websocket.send_json({"type": "error", "message": message})
    await websocket.close(code=status.WS_1008_POLICY_VIOLATION)


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    authenticated = False
    heartbeat_task = None
    session: Optional[LiveSession] = None

    try:
        await websocket.accept()

        try:
            auth_message = await asyncio.wait_for(
                websocket.receive_json(),
                timeout=settings.ws_auth_timeout_seconds
            )
        except asyncio.TimeoutError:
            await _reject(websocket, "Authentication timeout")
            return

        if auth_message.get("type") != "authenticate":
            await _reject(websocket, "First message must be authentication")
            return

        token = auth_message.get("token")
        if not token:
            await _reject(websocket, "Token is required")
            return

        async with AsyncSessionLocal() as db:
            user_id = await authenticate_websocket(token, db)

        if user_id is None:
            await _reject(websocket, "Invalid or expired token")
            return

        structlog.contextvars.bind_contextvars(user_id=str(user_id))
        await connection_manager.connect(websocket, user_id)
        authenticated = True

        await websocket.send_json({
            "type": "authenticated",
            "user_id": str(user_id),
            "message": "Successfully authenticated"
        })
        logger.info(f"WebSocket authenticated: user={user_id}")

        session = LiveSession(user_id, lambda frame: connection_manager.send(websocket, frame))
        await session.start()

        heartbeat_task = asyncio.create_task(
            send_heartbeat(websocket, settings.ws_heartbeat_interval_seconds)
        )

        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                logger.info(f"WebSocket disconnected: user={user_id}")
                break
            except json.JSONDecodeError:
                await websocket.send_json({
                    "type": "error",
                    "code": "INVALID_MESSAGE_FORMAT",
                    "message": "Message must be valid JSON"
                })
                continue

            if message.get("type") == "pong":
                connection_manager.update_pong(websocket)
            else:
                await session.handle_frame(message)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error: {e}", exc_info=True)

    finally:
        if session is not None:
            await session.close()
        if authenticated:
            connection_manager.disconnect(websocket)
        structlog.contextvars.unbind_contextvars("user_id")

        if heartbeat_task:
            heartbeat_task.cancel()
            try:
                await heartbeat_task
            except asyncio.CancelledError:
                pass


async def send_heartbeat(websocket: WebSocket, interval: int = 30):
    """
    Ping every ``interval`` seconds and close the socket once two pings in a
    row go unanswered.
    """
    try:
        while True:
            await asyncio.sleep(interval)
            if connection_manager.is_stale(websocket, max_silence_seconds=2 * interval):
                logger.info("Closing websocket after missed pongs")
                await websocket.close(code=status.WS_1001_GOING_AWAY)
                return
            await connection_manager.send(websocket, {"type": "ping"})
    except asyncio.CancelledError:
        pass
    except Exception as e:
        logger.error(f"Heartbeat error: {e}")
