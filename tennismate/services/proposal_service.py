"""
Proposal service: scheduling a session on a court for a match.

Lifecycle::

    pending  -> accepted | declined | cancelled
    accepted -> cancelled

Declined and cancelled are terminal. Only the receiver answers a proposal;
either participant may cancel it.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging

from tennismate.core.exceptions import (
    InvalidTransitionError,
    MatchNotFoundError,
    NotParticipantError,
    ProposalNotFoundError,
)
from tennismate.core.realtime import Binding, EventType, RealtimeHub, Subscription, realtime_hub
from tennismate.models.match_proposal import MatchProposal, ProposalStatus, PROPOSAL_TRANSITIONS
from tennismate.repositories.match_repository import MatchRepository
from tennismate.repositories.proposal_repository import ProposalRepository

logger = logging.getLogger(__name__)

# Higher wins when a match has several active proposals
_STATUS_PRECEDENCE = {
    ProposalStatus.ACCEPTED.value: 2,
    ProposalStatus.PENDING.value: 1,
}


@dataclass
class ProposalListResult:
    proposals: list[MatchProposal] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class ActiveProposalsResult:
    proposals: dict[UUID, MatchProposal] = field(default_factory=dict)
    error: Optional[str] = None


def pick_active_proposals(proposals: Iterable[MatchProposal]) -> dict[UUID, MatchProposal]:
    """
    Choose the proposal to display for each match.

    Accepted beats pending; within the same status the newest wins.
    Declined and cancelled proposals are never picked.
    """
    active: dict[UUID, MatchProposal] = {}
    for proposal in proposals:
        rank = _STATUS_PRECEDENCE.get(proposal.status)
        if rank is None:
            continue
        current = active.get(proposal.match_id)
        if current is None:
            active[proposal.match_id] = proposal
            continue
        current_rank = _STATUS_PRECEDENCE[current.status]
        if rank > current_rank or (rank == current_rank and _newer(proposal, current)):
            active[proposal.match_id] = proposal
    return active


def _newer(a: MatchProposal, b: MatchProposal) -> bool:
    if a.created_at is None or b.created_at is None:
        return False
    return a.created_at > b.created_at


class ProposalService:
    """
    Service for creating and answering match proposals.

    An instance owns at most one proposal subscription; subscribing again
    releases the previous one first.
    """

    def __init__(
        self,
        proposal_repo: Optional[ProposalRepository] = None,
        match_repo: Optional[MatchRepository] = None,
        hub: Optional[RealtimeHub] = None
    ):
        self.proposal_repo = proposal_repo or ProposalRepository()
        self.match_repo = match_repo or MatchRepository()
        self.hub = hub or realtime_hub
        self._subscription: Optional[Subscription] = None

    async def get_proposals(self, db: AsyncSession, match_id: UUID) -> ProposalListResult:
        """All proposals for a match, newest first."""
        try:
            proposals = await self.proposal_repo.get_for_match(db, match_id)
            return ProposalListResult(proposals=proposals)
        except SQLAlchemyError as e:
            logger.error(f"Error loading proposals for match {match_id}: {e}")
            return ProposalListResult(error="Failed to load proposals")

    async def get_active_proposals_for_matches(
        self,
        db: AsyncSession,
        match_ids: Iterable[UUID]
    ) -> ActiveProposalsResult:
        """
        Get the active proposal of each match.

        Args:
            db: Active database session
            match_ids: Matches to look up

        Returns:
            ActiveProposalsResult mapping match id to its displayed proposal;
            matches without a pending or accepted proposal are absent
        """
        match_ids = list(match_ids)
        if not match_ids:
            return ActiveProposalsResult()
        try:
            proposals = await self.proposal_repo.get_active_for_matches(db, match_ids)
        except SQLAlchemyError as e:
            logger.error(f"Error loading active proposals for {len(match_ids)} matches: {e}")
            return ActiveProposalsResult(error="Failed to load proposals")
        return ActiveProposalsResult(proposals=pick_active_proposals(proposals))

    async def create_proposal(
        self,
        db: AsyncSession,
        match_id: UUID,
        sender_id: UUID,
        scheduled_at: datetime,
        court_name: Optional[str] = None
    ) -> Optional[MatchProposal]:
        """
        Propose a session to the other participant of a match.

        Args:
            db: Active database session
            match_id: Match the proposal belongs to
            sender_id: Proposing participant
            scheduled_at: Start of the session
            court_name: Optional court or venue

        Returns:
            The stored proposal (status pending), or None when the store failed

        Raises:
            MatchNotFoundError: If the match does not exist
            NotParticipantError: If the sender is not part of the match
        """
        try:
            match = await self.match_repo.get(db, match_id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading match {match_id} for a proposal: {e}")
            return None

        if match is None:
            raise MatchNotFoundError(f"Match {match_id} not found")
        if not match.involves(sender_id):
            raise NotParticipantError("Only match participants can propose a session")

        court_name = court_name.strip() if court_name else None

        try:
            proposal = await self.proposal_repo.create(db, {
                "match_id": match_id,
                "sender_id": sender_id,
                "receiver_id": match.other_user_id(sender_id),
                "scheduled_at": scheduled_at,
                "court_name": court_name or None,
                "status": ProposalStatus.PENDING.value,
            })
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error creating proposal in match {match_id}: {e}")
            return None

        logger.info(f"Proposal {proposal.id} created in match {match_id} by {sender_id}")
        await self.hub.publish_row(proposal, EventType.INSERT)
        return proposal

    async def respond_to_proposal(
        self,
        db: AsyncSession,
        proposal_id: UUID,
        actor_id: UUID,
        status: Union[ProposalStatus, str]
    ) -> Optional[MatchProposal]:
        """
        Move a proposal to a new status.

        Returns:
            The updated proposal, or None when the store failed

        Raises:
            ProposalNotFoundError: If the proposal does not exist
            NotParticipantError: If the actor is neither sender nor receiver
            InvalidTransitionError: If the transition is not allowed for this actor
        """
        requested = ProposalStatus(status)

        try:
            proposal = await self.proposal_repo.get(db, proposal_id)
        except SQLAlchemyError as e:
            logger.error(f"Error loading proposal {proposal_id}: {e}")
            return None

        if proposal is None:
            raise ProposalNotFoundError(f"Proposal {proposal_id} not found")
        if actor_id not in (proposal.sender_id, proposal.receiver_id):
            raise NotParticipantError("Only match participants can answer a proposal")

        current = ProposalStatus(proposal.status)
        if requested not in PROPOSAL_TRANSITIONS[current]:
            raise InvalidTransitionError(current.value, requested.value)
        if requested in (ProposalStatus.ACCEPTED, ProposalStatus.DECLINED) and actor_id != proposal.receiver_id:
            raise InvalidTransitionError(current.value, requested.value, "only the receiver can answer")

        try:
            proposal = await self.proposal_repo.update(db, proposal, {"status": requested.value})
            await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error updating proposal {proposal_id} to {requested.value}: {e}")
            return None

        logger.info(f"Proposal {proposal_id}: {current.value} -> {requested.value} by {actor_id}")
        await self.hub.publish_row(proposal, EventType.UPDATE, old={"status": current.value})
        return proposal

    # ── Push subscription ────────────────────────────────────────────────────

    def subscribe_to_proposals(self, match_id: UUID, callback: Callable[[dict], object]) -> Subscription:
        """
        Listen for proposal inserts and updates in one match.

        ``callback`` receives the changed row. Any previous subscription held
        by this service is released first.
        """
        self.unsubscribe()
        self._subscription = self.hub.subscribe(
            f"proposals:{match_id}",
            Binding(
                table=MatchProposal.__tablename__,
                callback=lambda event: callback(event.new),
                filter={"match_id": match_id},
            ),
        )
        return self._subscription

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self.hub.remove(self._subscription)
            self._subscription = None
