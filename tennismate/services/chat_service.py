"""
Chat service: message history, sending, read receipts and the live feed of
one conversation.

Each chat session (one websocket connection, one screen) owns a ChatService
instance and therefore at most one message subscription at a time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.core.realtime import Binding, EventType, RealtimeHub, Subscription, realtime_hub
from tennismate.models.message import Message
from tennismate.repositories.match_repository import MatchRepository
from tennismate.repositories.message_repository import MessageRepository

logger = logging.getLogger(__name__)


@dataclass
class MessageListResult:
    messages: list[Message] = field(default_factory=list)
    error: Optional[str] = None


class ChatService:

    def __init__(
        self,
        message_repo: Optional[MessageRepository] = None,
        match_repo: Optional[MatchRepository] = None,
        hub: Optional[RealtimeHub] = None
    ):
        self.message_repo = message_repo or MessageRepository()
        self.match_repo = match_repo or MatchRepository()
        self.hub = hub or realtime_hub
        self._subscription: Optional[Subscription] = None
        self.subscribed_match_id: Optional[UUID] = None

    async def get_messages(self, db: AsyncSession, match_id: UUID) -> MessageListResult:
        """Full history of a match in chronological order."""
        try:
            messages = await self.message_repo.get_for_match(db, match_id)
            return MessageListResult(messages=messages)
        except SQLAlchemyError as e:
            logger.error(f"Error loading messages for match {match_id}: {e}")
            return MessageListResult(error="Failed to load messages")

    async def send_message(
        self,
        db: AsyncSession,
        match_id: UUID,
        sender_id: UUID,
        content: str
    ) -> Optional[Message]:
        """
        Store a message.

        Content is trimmed first; blank content is not sent.

        Returns:
            The stored row with its id and timestamp, or None when nothing was
            stored. Callers must not render the message on None.
        """
        content = (content or "").strip()
        if not content:
            logger.debug(f"Ignoring blank message from {sender_id} in match {match_id}")
            return None

        try:
            message = await self.message_repo.create(db, {
                "match_id": match_id,
                "sender_id": sender_id,
                "content": content,
                "read": False,
            })
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error sending message in match {match_id}: {e}")
            return None

        await self.hub.publish_row(message, EventType.INSERT)
        return message

    async def mark_as_read(self, db: AsyncSession, message_id: UUID) -> bool:
        """Mark one message as read. Returns False if it does not exist or the store failed."""
        try:
            message = await self.message_repo.get(db, message_id)
            if message is None:
                return False
            if not message.read:
                message = await self.message_repo.update(db, message, {"read": True})
                await db.commit()
                await self.hub.publish_row(message, EventType.UPDATE, old={"read": False})
            return True
        except SQLAlchemyError as e:
            logger.error(f"Error marking message {message_id} as read: {e}")
            return False

    async def mark_match_messages_as_read(
        self,
        db: AsyncSession,
        match_id: UUID,
        current_user_id: UUID
    ) -> Optional[int]:
        """
        Mark every message of the match sent by the other player as read.

        Idempotent: a second call changes nothing and returns 0.

        Returns:
            Number of messages changed, or None when the store failed
        """
        try:
            updated = await self.message_repo.mark_match_read(db, match_id, current_user_id)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error marking match {match_id} read for {current_user_id}: {e}")
            return None

        if updated:
            logger.debug(f"Marked {updated} messages read in match {match_id}")
        return updated

    async def get_unread_count(self, db: AsyncSession, user_id: UUID) -> int:
        """Unread messages from other players across all of the user's matches."""
        try:
            matches = await self.match_repo.get_for_user(db, user_id)
            counts = await self.message_repo.count_unread_by_match(db, [m.id for m in matches], user_id)
            return sum(counts.values())
        except SQLAlchemyError as e:
            logger.error(f"Error counting unread messages for {user_id}: {e}")
            return 0

    # ── Push subscription ────────────────────────────────────────────────────

    def subscribe_to_messages(self, match_id: UUID, callback: Callable[[dict], object]) -> Subscription:
        """
        Deliver each new message of ``match_id`` to ``callback``, in publish order.

        Releases the subscription this session held before, so a message is
        never delivered twice.
        """
        self.unsubscribe()
        self._subscription = self.hub.subscribe(
            f"chat:{match_id}",
            Binding(
                table=Message.__tablename__,
                callback=lambda event: callback(event.new),
                event=EventType.INSERT,
                filter={"match_id": match_id},
            ),
        )
        self.subscribed_match_id = match_id
        return self._subscription

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self.hub.remove(self._subscription)
            self._subscription = None
            self.subscribed_match_id = None
