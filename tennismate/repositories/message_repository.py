"""
Message repository: chat history, read receipts and unread counts.
"""

from __future__ import annotations
from typing import Iterable
from uuid import UUID
from sqlalchemy import select, update, and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.models.message import Message
from .base import BaseRepository

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):

    def __init__(self):
        super().__init__(Message)

    async def get_for_match(
        self,
        db: AsyncSession,
        match_id: UUID
    ) -> list[Message]:
        """Full history of a match, oldest message first."""
        try:
            stmt = (
                select(Message)
                .where(Message.match_id == match_id)
                .order_by(Message.created_at, Message.id)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching messages for match {match_id}: {e}")
            raise

    async def mark_match_read(
        self,
        db: AsyncSession,
        match_id: UUID,
        reader_id: UUID
    ) -> int:
        """
        Mark every unread message in a match that ``reader_id`` did not send as read.

        Args:
            db: Active database session
            match_id: UUID of the match
            reader_id: The user reading the conversation

        Returns:
            Number of messages changed (0 when nothing was unread)
        """
        try:
            stmt = (
                update(Message)
                .where(
                    and_(
                        Message.match_id == match_id,
                        Message.sender_id != reader_id,
                        Message.read == False  # noqa: E712
                    )
                )
                .values(read=True)
            )
            result = await db.execute(stmt)
            await db.flush()
            return result.rowcount or 0

        except SQLAlchemyError as e:
            logger.error(f"Error marking messages read in match {match_id} for {reader_id}: {e}")
            await db.rollback()
            raise

    async def count_unread_by_match(
        self,
        db: AsyncSession,
        match_ids: Iterable[UUID],
        reader_id: UUID
    ) -> dict[UUID, int]:
        """
        Unread messages not sent by ``reader_id``, grouped by match.

        Matches without unread messages are absent from the result.
        """
        wanted = set(match_ids)
        if not wanted:
            return {}
        try:
            stmt = (
                select(Message.match_id, func.count(Message.id))
                .where(
                    and_(
                        Message.match_id.in_(wanted),
                        Message.sender_id != reader_id,
                        Message.read == False  # noqa: E712
                    )
                )
                .group_by(Message.match_id)
            )
            result = await db.execute(stmt)
            return {match_id: count for match_id, count in result.all()}

        except SQLAlchemyError as e:
            logger.error(f"Error counting unread messages for {reader_id}: {e}")
            raise
