"""
Notification repository for social notifications (likes, comments, matches).

Rows are written by database triggers outside this service; here they are
listed, counted and marked read.
"""

from __future__ import annotations
from typing import Optional
from uuid import UUID
from sqlalchemy import select, func, and_, update as sql_update, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.models.notification import Notification
from .base import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository[Notification]):

    def __init__(self):
        super().__init__(Notification)

    async def get_user_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        skip: int = 0,
        limit: int = 50,
        read: Optional[bool] = None
    ) -> tuple[list[Notification], int]:
        """
        Get paginated notifications for a user, newest first.

        Args:
            db: Active database session
            user_id: UUID of the owner
            skip: Number of records to skip (offset)
            limit: Maximum number of records to return
            read: Optional filter by read status

        Returns:
            Tuple of (list of notifications, total count)

        Example:
            notifications, total = await repo.get_user_notifications(
                db, user_id, skip=0, limit=20, read=False
            )
        """
        try:
            query = (
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(desc(Notification.created_at), Notification.id)
            )
            count_query = (
                select(func.count())
                .select_from(Notification)
                .where(Notification.user_id == user_id)
            )

            if read is not None:
                query = query.where(Notification.read == read)
                count_query = count_query.where(Notification.read == read)

            result = await db.execute(query.offset(skip).limit(limit))
            notifications = list(result.scalars().all())

            count_result = await db.execute(count_query)
            total = count_result.scalar_one()

            return notifications, total

        except SQLAlchemyError as e:
            logger.error(f"Error fetching notifications for user {user_id}: {e}")
            raise

    async def mark_as_read(
        self,
        db: AsyncSession,
        notification: Notification
    ) -> Notification:
        """Mark a single notification as read. Already-read rows are left untouched."""
        try:
            if not notification.read:
                notification.read = True
                await db.flush()
                await db.refresh(notification)
            return notification

        except SQLAlchemyError as e:
            logger.error(f"Error marking notification {notification.id} as read: {e}")
            raise

    async def mark_all_as_read_for_user(
        self,
        db: AsyncSession,
        user_id: UUID
    ) -> int:
        """
        Mark all unread notifications for a user as read.

        Returns:
            Number of notifications updated
        """
        try:
            stmt = (
                sql_update(Notification)
                .where(
                    and_(
                        Notification.user_id == user_id,
                        Notification.read == False  # noqa: E712
                    )
                )
                .values(read=True)
            )

            result = await db.execute(stmt)
            await db.flush()
            return result.rowcount or 0

        except SQLAlchemyError as e:
            logger.error(f"Error marking all notifications as read for user {user_id}: {e}")
            raise

    async def get_unread_count_for_user(
        self,
        db: AsyncSession,
        user_id: UUID
    ) -> int:
        """Count of unread notifications owned by the user."""
        try:
            stmt = (
                select(func.count())
                .select_from(Notification)
                .where(
                    and_(
                        Notification.user_id == user_id,
                        Notification.read == False  # noqa: E712
                    )
                )
            )

            result = await db.execute(stmt)
            return result.scalar_one()

        except SQLAlchemyError as e:
            logger.error(f"Error getting unread notification count for user {user_id}: {e}")
            raise
