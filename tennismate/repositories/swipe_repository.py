"""
Swipe repository.

Swipes are append-only; the unique (user_id, target_user_id) constraint
rejects a second decision on the same target.
"""

from __future__ import annotations
from typing import Iterable, Optional
from uuid import UUID
from sqlalchemy import select, and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.models.swipe import Swipe, SwipeAction
from .base import BaseRepository

logger = logging.getLogger(__name__)


class SwipeRepository(BaseRepository[Swipe]):

    def __init__(self):
        super().__init__(Swipe)

    async def get_swiped_target_ids(
        self,
        db: AsyncSession,
        user_id: UUID
    ) -> set[UUID]:
        """
        Ids of every profile the user has already swiped on, like or pass.

        Args:
            db: Active database session
            user_id: UUID of the swiping user

        Returns:
            Set of target user ids
        """
        try:
            stmt = select(Swipe.target_user_id).where(Swipe.user_id == user_id)
            result = await db.execute(stmt)
            return set(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching swiped ids for user {user_id}: {e}")
            raise

    async def get_liker_ids(
        self,
        db: AsyncSession,
        target_user_id: UUID,
        candidate_ids: Optional[Iterable[UUID]] = None
    ) -> set[UUID]:
        """
        Ids of users who liked ``target_user_id``.

        Args:
            db: Active database session
            target_user_id: The liked user
            candidate_ids: Restrict the lookup to these actors when given

        Returns:
            Set of actor ids
        """
        try:
            stmt = select(Swipe.user_id).where(
                and_(
                    Swipe.target_user_id == target_user_id,
                    Swipe.action == SwipeAction.LIKE.value
                )
            )
            if candidate_ids is not None:
                wanted = set(candidate_ids)
                if not wanted:
                    return set()
                stmt = stmt.where(Swipe.user_id.in_(wanted))

            result = await db.execute(stmt)
            return set(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching incoming likes for user {target_user_id}: {e}")
            raise

    async def has_liked(
        self,
        db: AsyncSession,
        user_id: UUID,
        target_user_id: UUID
    ) -> bool:
        """True when ``user_id`` has a like swipe on ``target_user_id``."""
        try:
            stmt = (
                select(func.count(Swipe.id))
                .where(
                    and_(
                        Swipe.user_id == user_id,
                        Swipe.target_user_id == target_user_id,
                        Swipe.action == SwipeAction.LIKE.value
                    )
                )
            )
            result = await db.execute(stmt)
            return (result.scalar() or 0) > 0

        except SQLAlchemyError as e:
            logger.error(f"Error checking like from {user_id} to {target_user_id}: {e}")
            raise
