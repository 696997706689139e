"""
Swipe service: records like/pass decisions and materializes mutual matches.

A swipe is committed before the reciprocal check, so a failure while creating
the match never loses the swipe itself. Two users liking each other at the
same moment may both try to insert the match; the unique pair constraint lets
exactly one insert win and the loser loads the existing row.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
import logging

from tennismate.core.exceptions import SelfSwipeError, is_unique_violation
from tennismate.core.realtime import EventType, RealtimeHub, realtime_hub
from tennismate.models.match import Match, canonical_pair
from tennismate.models.swipe import SwipeAction
from tennismate.repositories.match_repository import MatchRepository
from tennismate.repositories.swipe_repository import SwipeRepository

logger = logging.getLogger(__name__)


@dataclass
class SwipeResult:
    """
    Outcome of a swipe.

    ``conflict`` is set when the actor already swiped on the target; the
    earlier decision stands and no match check is made. ``error`` is set when
    the store failed.
    """

    is_match: bool = False
    match_id: Optional[UUID] = None
    conflict: bool = False
    error: Optional[str] = None


class SwipeService:

    def __init__(
        self,
        swipe_repo: Optional[SwipeRepository] = None,
        match_repo: Optional[MatchRepository] = None,
        hub: Optional[RealtimeHub] = None
    ):
        self.swipe_repo = swipe_repo or SwipeRepository()
        self.match_repo = match_repo or MatchRepository()
        self.hub = hub or realtime_hub

    async def swipe(
        self,
        db: AsyncSession,
        actor_id: UUID,
        target_id: UUID,
        action: Union[SwipeAction, str]
    ) -> SwipeResult:
        """
        Record a swipe and create the match when the like is reciprocal.

        Args:
            db: Active database session
            actor_id: User swiping
            target_id: User being swiped on
            action: like or pass

        Returns:
            SwipeResult; ``match_id`` is set whenever a match exists after a like

        Raises:
            SelfSwipeError: If actor and target are the same user
            ValueError: If action is neither like nor pass
        """
        if actor_id == target_id:
            raise SelfSwipeError("Cannot swipe on your own profile")
        action = SwipeAction(action)

        try:
            swipe = await self.swipe_repo.create(db, {
                "user_id": actor_id,
                "target_user_id": target_id,
                "action": action.value,
            })
            await db.commit()
        except IntegrityError as e:
            if is_unique_violation(e):
                logger.info(f"User {actor_id} already swiped on {target_id}, keeping the earlier decision")
                return SwipeResult(conflict=True)
            logger.error(f"Error recording swipe {actor_id} -> {target_id}: {e}")
            return SwipeResult(error="Failed to record swipe")
        except SQLAlchemyError as e:
            logger.error(f"Error recording swipe {actor_id} -> {target_id}: {e}")
            return SwipeResult(error="Failed to record swipe")

        await self.hub.publish_row(swipe, EventType.INSERT)

        if action != SwipeAction.LIKE:
            return SwipeResult()

        try:
            if not await self.swipe_repo.has_liked(db, target_id, actor_id):
                return SwipeResult()
            match, created = await self._create_match(db, actor_id, target_id)
        except SQLAlchemyError as e:
            logger.error(f"Error creating match between {actor_id} and {target_id}: {e}")
            return SwipeResult(error="Swipe recorded but the match could not be created")

        if created:
            logger.info(f"New match {match.id} between {actor_id} and {target_id}")
            await self.hub.publish_row(match, EventType.INSERT)

        return SwipeResult(is_match=True, match_id=match.id)

    async def _create_match(
        self,
        db: AsyncSession,
        user_a: UUID,
        user_b: UUID
    ) -> Tuple[Match, bool]:
        """Insert the match in canonical order; returns (match, created)."""
        user1_id, user2_id = canonical_pair(user_a, user_b)
        try:
            match = await self.match_repo.create(db, {"user1_id": user1_id, "user2_id": user2_id})
            await db.commit()
            return match, True
        except IntegrityError as e:
            if not is_unique_violation(e):
                raise
            # Lost the race against the other user's like
            existing = await self.match_repo.get_between(db, user1_id, user2_id)
            if existing is None:
                raise
            logger.info(f"Match between {user1_id} and {user2_id} already exists ({existing.id})")
            return existing, False
