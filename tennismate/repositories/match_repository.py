"""
Match repository.

Pairs are stored in canonical order (see ``canonical_pair``), so a lookup
between two users never needs to try both directions.
"""

from __future__ import annotations
from typing import Optional
from uuid import UUID
from sqlalchemy import select, or_, and_, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.models.match import Match, canonical_pair
from .base import BaseRepository

logger = logging.getLogger(__name__)


class MatchRepository(BaseRepository[Match]):

    def __init__(self):
        super().__init__(Match)

    async def get_for_user(
        self,
        db: AsyncSession,
        user_id: UUID
    ) -> list[Match]:
        """
        All matches the user takes part in, most recent first.

        Args:
            db: Active database session
            user_id: UUID of the participant

        Returns:
            List of matches ordered by created_at descending
        """
        try:
            stmt = (
                select(Match)
                .where(or_(Match.user1_id == user_id, Match.user2_id == user_id))
                .order_by(desc(Match.created_at), Match.id)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching matches for user {user_id}: {e}")
            raise

    async def get_between(
        self,
        db: AsyncSession,
        user_a: UUID,
        user_b: UUID
    ) -> Optional[Match]:
        """Return the match between two users, in either order, if one exists."""
        user1_id, user2_id = canonical_pair(user_a, user_b)
        try:
            stmt = select(Match).where(
                and_(Match.user1_id == user1_id, Match.user2_id == user2_id)
            )
            result = await db.execute(stmt)
            return result.scalar_one_or_none()

        except SQLAlchemyError as e:
            logger.error(f"Error fetching match between {user_a} and {user_b}: {e}")
            raise
