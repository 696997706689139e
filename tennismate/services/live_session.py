"""
Live session behind one authenticated websocket.

A session owns one ChatService (so at most one open conversation feed) and one
NotificationCounter. It turns their callbacks into JSON frames:

- ``message``: a new message in the open conversation
- ``unread_counts``: the counter snapshot after every change
- ``match``: a new match involving the user
- ``error``: a frame the session could not handle
"""

from __future__ import annotations
from typing import Awaitable, Callable, Optional
from uuid import UUID
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.core.database import AsyncSessionLocal
from tennismate.core.exceptions import TennisMateError
from tennismate.core.realtime import Binding, ChangeEvent, EventType, RealtimeHub, Subscription, realtime_hub
from tennismate.models.match import Match
from tennismate.services.chat_service import ChatService
from tennismate.services.match_service import MatchService
from tennismate.services.notification_service import NotificationCounter, UnreadSnapshot

logger = logging.getLogger(__name__)

FrameSender = Callable[[dict], Awaitable[object]]


class LiveSession:

    def __init__(
        self,
        user_id: UUID,
        send: FrameSender,
        session_factory=None,
        hub: Optional[RealtimeHub] = None,
        chat_service: Optional[ChatService] = None,
        counter: Optional[NotificationCounter] = None,
        match_service: Optional[MatchService] = None
    ):
        self.user_id = user_id
        self.send = send
        self.session_factory = session_factory or AsyncSessionLocal
        self.hub = hub or realtime_hub
        self.chat = chat_service or ChatService(hub=self.hub)
        self.counter = counter or NotificationCounter(user_id, session_factory=self.session_factory, hub=self.hub)
        self.match_service = match_service or MatchService()
        self._match_subscription: Optional[Subscription] = None

    async def start(self) -> None:
        self.counter.add_listener(self._push_counts)
        self._match_subscription = self.hub.subscribe(
            f"matches:{self.user_id}",
            Binding(table=Match.__tablename__, callback=self._on_match, event=EventType.INSERT),
        )
        await self.counter.start()

    async def close(self) -> None:
        self.chat.unsubscribe()
        self.counter.stop()
        self.hub.remove(self._match_subscription)
        self._match_subscription = None

    async def handle_frame(self, frame: dict) -> None:
        frame_type = frame.get("type")

        if frame_type == "subscribe_chat":
            await self._subscribe_chat(frame.get("match_id"))
        elif frame_type == "unsubscribe_chat":
            self.chat.unsubscribe()
        elif frame_type == "mark_match_read":
            await self._mark_match_read(frame.get("match_id"))
        else:
            await self._error("UNKNOWN_MESSAGE_TYPE", f"Unsupported message type: {frame_type}")

    async def _subscribe_chat(self, raw_match_id) -> None:
        match_id = _parse_uuid(raw_match_id)
        if match_id is None:
            await self._error("INVALID_MATCH_ID", "match_id must be a UUID")
            return
        try:
            async with self.session_factory() as db:
                await self.match_service.get_match_for_participant(db, match_id, self.user_id)
        except TennisMateError as e:
            await self._error("FORBIDDEN", str(e))
            return
        except SQLAlchemyError as e:
            logger.error(f"Store failure opening chat {match_id} for user {self.user_id}: {e}")
            await self._error("STORE_ERROR", "Could not open the conversation")
            return

        self.chat.subscribe_to_messages(match_id, self._on_message)
        await self.send({"type": "chat_subscribed", "match_id": str(match_id)})

    async def _mark_match_read(self, raw_match_id) -> None:
        match_id = _parse_uuid(raw_match_id)
        if match_id is None:
            await self._error("INVALID_MATCH_ID", "match_id must be a UUID")
            return
        try:
            async with self.session_factory() as db:
                await self.match_service.get_match_for_participant(db, match_id, self.user_id)
                updated = await self.chat.mark_match_messages_as_read(db, match_id, self.user_id)
        except TennisMateError as e:
            await self._error("FORBIDDEN", str(e))
            return
        except SQLAlchemyError as e:
            logger.error(f"Store failure marking match {match_id} read for user {self.user_id}: {e}")
            await self._error("STORE_ERROR", "Could not mark messages as read")
            return

        if updated is None:
            await self._error("STORE_ERROR", "Could not mark messages as read")
            return
        await self.counter.mark_match_as_read(match_id)

    async def _on_message(self, row: dict) -> None:
        await self.send({"type": "message", "message": row})

    async def _on_match(self, event: ChangeEvent) -> None:
        row = event.new
        me = str(self.user_id)
        if me in (row.get("user1_id"), row.get("user2_id")):
            await self.send({"type": "match", "match": row})

    async def _push_counts(self, snapshot: UnreadSnapshot) -> None:
        await self.send({"type": "unread_counts", **snapshot.to_dict()})

    async def _error(self, code: str, message: str) -> None:
        await self.send({"type": "error", "code": code, "message": message})


def _parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None
