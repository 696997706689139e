"""
Profile repository: candidate queries for discovery and bulk lookups.
"""

from __future__ import annotations
from typing import Iterable
from uuid import UUID
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.models.profile import Profile
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ProfileRepository(BaseRepository[Profile]):

    def __init__(self):
        super().__init__(Profile)

    async def get_candidates(
        self,
        db: AsyncSession,
        user_id: UUID,
        exclude_ids: Iterable[UUID] = (),
        limit: int = 50
    ) -> list[Profile]:
        """
        Fetch discovery candidates, newest profiles first.

        Args:
            db: Active database session
            user_id: Requesting user, never returned
            exclude_ids: Ids to leave out (already swiped targets)
            limit: Maximum number of profiles to return

        Returns:
            List of profiles ordered by created_at descending
        """
        try:
            excluded = set(exclude_ids)
            excluded.add(user_id)

            stmt = (
                select(Profile)
                .where(Profile.id.notin_(excluded))
                .order_by(desc(Profile.created_at), Profile.id)
                .limit(limit)
            )

            result = await db.execute(stmt)
            return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching discovery candidates for user {user_id}: {e}")
            raise

    async def get_many(
        self,
        db: AsyncSession,
        ids: Iterable[UUID]
    ) -> dict[UUID, Profile]:
        """Load several profiles at once, keyed by id. Missing ids are simply absent."""
        wanted = set(ids)
        if not wanted:
            return {}
        try:
            result = await db.execute(select(Profile).where(Profile.id.in_(wanted)))
            return {profile.id: profile for profile in result.scalars().all()}
        except SQLAlchemyError as e:
            logger.error(f"Error fetching {len(wanted)} profiles: {e}")
            raise
