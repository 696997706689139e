"""
Match proposal repository.
"""

from __future__ import annotations
from typing import Iterable
from uuid import UUID
from sqlalchemy import select, and_, desc, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.models.match_proposal import MatchProposal, ProposalStatus, ACTIVE_PROPOSAL_STATUSES
from .base import BaseRepository

logger = logging.getLogger(__name__)


class ProposalRepository(BaseRepository[MatchProposal]):

    def __init__(self):
        super().__init__(MatchProposal)

    async def get_for_match(
        self,
        db: AsyncSession,
        match_id: UUID
    ) -> list[MatchProposal]:
        """All proposals of a match, newest first."""
        try:
            stmt = (
                select(MatchProposal)
                .where(MatchProposal.match_id == match_id)
                .order_by(desc(MatchProposal.created_at), MatchProposal.id)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching proposals for match {match_id}: {e}")
            raise

    async def get_active_for_matches(
        self,
        db: AsyncSession,
        match_ids: Iterable[UUID]
    ) -> list[MatchProposal]:
        """
        Pending and accepted proposals for several matches, newest first.

        Args:
            db: Active database session
            match_ids: Matches to look up

        Returns:
            Flat list of proposals; callers pick one per match
        """
        wanted = set(match_ids)
        if not wanted:
            return []
        try:
            stmt = (
                select(MatchProposal)
                .where(
                    and_(
                        MatchProposal.match_id.in_(wanted),
                        MatchProposal.status.in_(ACTIVE_PROPOSAL_STATUSES)
                    )
                )
                .order_by(desc(MatchProposal.created_at))
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

        except SQLAlchemyError as e:
            logger.error(f"Error fetching active proposals for {len(wanted)} matches: {e}")
            raise

    async def count_pending_by_match(
        self,
        db: AsyncSession,
        receiver_id: UUID
    ) -> dict[UUID, int]:
        """Pending proposals addressed to ``receiver_id``, grouped by match."""
        try:
            stmt = (
                select(MatchProposal.match_id, func.count(MatchProposal.id))
                .where(
                    and_(
                        MatchProposal.receiver_id == receiver_id,
                        MatchProposal.status == ProposalStatus.PENDING.value
                    )
                )
                .group_by(MatchProposal.match_id)
            )
            result = await db.execute(stmt)
            return {match_id: count for match_id, count in result.all()}

        except SQLAlchemyError as e:
            logger.error(f"Error counting pending proposals for {receiver_id}: {e}")
            raise
