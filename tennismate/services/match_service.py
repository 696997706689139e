"""
Match service: a user's matches with the counterpart's profile.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.core.exceptions import MatchNotFoundError, NotParticipantError
from tennismate.models.match import Match
from tennismate.models.match_proposal import MatchProposal
from tennismate.models.profile import Profile
from tennismate.repositories.match_repository import MatchRepository
from tennismate.repositories.profile_repository import ProfileRepository
from tennismate.services.proposal_service import ProposalService

logger = logging.getLogger(__name__)


@dataclass
class MatchEntry:
    match_id: UUID
    matched_at: datetime
    profile: Profile
    active_proposal: Optional[MatchProposal] = None


@dataclass
class MatchListResult:
    matches: list[MatchEntry] = field(default_factory=list)
    error: Optional[str] = None


class MatchService:

    def __init__(
        self,
        match_repo: Optional[MatchRepository] = None,
        profile_repo: Optional[ProfileRepository] = None,
        proposal_service: Optional[ProposalService] = None
    ):
        self.match_repo = match_repo or MatchRepository()
        self.profile_repo = profile_repo or ProfileRepository()
        self.proposal_service = proposal_service or ProposalService(match_repo=self.match_repo)

    async def get_matches(
        self,
        db: AsyncSession,
        user_id: UUID,
        with_active_proposals: bool = False
    ) -> MatchListResult:
        """
        Get every match of a user, newest first.

        Args:
            db: Active database session
            user_id: The participant
            with_active_proposals: Overlay each match's active proposal

        Returns:
            MatchListResult; a match whose counterpart profile no longer
            exists is left out
        """
        try:
            matches = await self.match_repo.get_for_user(db, user_id)
            profiles = await self.profile_repo.get_many(
                db, [m.other_user_id(user_id) for m in matches]
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading matches for user {user_id}: {e}")
            return MatchListResult(error="Failed to load matches")

        entries = []
        for match in matches:
            profile = profiles.get(match.other_user_id(user_id))
            if profile is None:
                logger.warning(f"Match {match.id} has no counterpart profile, skipping")
                continue
            entries.append(MatchEntry(match_id=match.id, matched_at=match.created_at, profile=profile))

        if with_active_proposals and entries:
            active = await self.proposal_service.get_active_proposals_for_matches(
                db, [e.match_id for e in entries]
            )
            if active.error:
                return MatchListResult(error=active.error)
            for entry in entries:
                entry.active_proposal = active.proposals.get(entry.match_id)

        return MatchListResult(matches=entries)

    async def get_match_for_participant(
        self,
        db: AsyncSession,
        match_id: UUID,
        user_id: UUID
    ) -> Match:
        """
        Load a match and check the user takes part in it.

        Raises:
            MatchNotFoundError: If the match does not exist
            NotParticipantError: If the user is not one of the two players
        """
        match = await self.match_repo.get(db, match_id)
        if match is None:
            raise MatchNotFoundError(f"Match {match_id} not found")
        if not match.involves(user_id):
            raise NotParticipantError("You are not part of this match")
        return match
