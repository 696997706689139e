"""
Discovery service: builds the ranked list of profiles a user can swipe on.

Candidates exclude the requester and everyone they already swiped. Each one
is annotated with whether it already liked the requester and, when both sides
have coordinates, the great-circle distance to it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.core.config import settings
from tennismate.models.profile import Profile
from tennismate.repositories.profile_repository import ProfileRepository
from tennismate.repositories.swipe_repository import SwipeRepository
from tennismate.utils.geo import calculate_distance

logger = logging.getLogger(__name__)


@dataclass
class DiscoveryCandidate:
    profile: Profile
    has_liked_me: bool = False
    distance: Optional[float] = None


@dataclass
class DiscoveryResult:
    candidates: list[DiscoveryCandidate] = field(default_factory=list)
    error: Optional[str] = None


def _sort_key(candidate: DiscoveryCandidate) -> tuple:
    # Likers first, then nearest; unknown distance last within its group
    return (
        not candidate.has_liked_me,
        candidate.distance is None,
        candidate.distance if candidate.distance is not None else 0.0,
    )


class DiscoveryService:
    """
    Service for ranking discovery candidates.

    The ranking is deterministic for identical inputs: the repository returns
    candidates newest first and the final sort is stable.
    """

    def __init__(
        self,
        profile_repo: Optional[ProfileRepository] = None,
        swipe_repo: Optional[SwipeRepository] = None
    ):
        self.profile_repo = profile_repo or ProfileRepository()
        self.swipe_repo = swipe_repo or SwipeRepository()

    async def get_discover_users(
        self,
        db: AsyncSession,
        user_id: UUID,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        max_distance: Optional[float] = None,
        limit: Optional[int] = None
    ) -> DiscoveryResult:
        """
        Get ranked discovery candidates for a user.

        Args:
            db: Active database session
            user_id: Requesting user
            latitude: Current latitude; falls back to the stored profile coordinates
            longitude: Current longitude; falls back to the stored profile coordinates
            max_distance: Radius in km; None means unlimited
            limit: Maximum number of candidates fetched before filtering

        Returns:
            DiscoveryResult with ranked candidates, or an empty list and ``error``
            set when any store query failed
        """
        if limit is None:
            limit = settings.discover_default_limit
        limit = max(1, min(limit, settings.discover_max_limit))

        try:
            if latitude is None or longitude is None:
                me = await self.profile_repo.get(db, user_id)
                if me is not None and me.has_coordinates:
                    latitude, longitude = me.latitude, me.longitude

            swiped_ids = await self.swipe_repo.get_swiped_target_ids(db, user_id)
            profiles = await self.profile_repo.get_candidates(
                db, user_id, exclude_ids=swiped_ids, limit=limit
            )
            liker_ids = await self.swipe_repo.get_liker_ids(
                db, user_id, candidate_ids=[p.id for p in profiles]
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading discovery candidates for user {user_id}: {e}")
            return DiscoveryResult(error="Failed to load discovery candidates")

        has_origin = latitude is not None and longitude is not None
        candidates = []
        seen = set()
        for profile in profiles:
            if profile.id == user_id or profile.id in swiped_ids or profile.id in seen:
                continue
            seen.add(profile.id)

            distance = None
            if has_origin and profile.has_coordinates:
                distance = calculate_distance(latitude, longitude, profile.latitude, profile.longitude)

            candidates.append(
                DiscoveryCandidate(
                    profile=profile,
                    has_liked_me=profile.id in liker_ids,
                    distance=distance,
                )
            )

        if max_distance is not None:
            candidates = [
                c for c in candidates
                if c.distance is not None and c.distance <= max_distance
            ]

        candidates.sort(key=_sort_key)

        logger.info(f"Discovery for user {user_id}: {len(candidates)} of {len(profiles)} candidates kept")
        return DiscoveryResult(candidates=candidates)
