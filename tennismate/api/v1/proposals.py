from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from tennismate.core.database import get_db
from tennismate.core.exceptions import ProposalNotFoundError
from tennismate.api.deps import get_current_user
from tennismate.models.match_proposal import MatchProposal
from tennismate.models.profile import Profile
from tennismate.repositories.profile_repository import ProfileRepository
from tennismate.repositories.proposal_repository import ProposalRepository
from tennismate.schemas.proposal import CalendarLink, Proposal as ProposalSchema, ProposalUpdate
from tennismate.services.calendar_service import (
    build_ics,
    create_google_calendar_url,
    event_for_proposal,
    ics_filename,
)
from tennismate.services.proposal_service import ProposalService

router = APIRouter()


@router.patch("/{proposal_id}", response_model=ProposalSchema)
async def respond_to_proposal(
    proposal_id: uuid.UUID,
    update_data: ProposalUpdate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Accept, decline or cancel a proposal"""
    proposal = await ProposalService().respond_to_proposal(
        db, proposal_id, current_user.id, update_data.status
    )
    if proposal is None:
        raise HTTPException(status_code=503, detail="Failed to update proposal")
    return proposal


async def _load_calendar_event(db: AsyncSession, proposal_id: uuid.UUID, user: Profile):
    proposal: MatchProposal = await ProposalRepository().get(db, proposal_id)
    if proposal is None or user.id not in (proposal.sender_id, proposal.receiver_id):
        raise ProposalNotFoundError(f"Proposal {proposal_id} not found")

    other_id = proposal.receiver_id if proposal.sender_id == user.id else proposal.sender_id
    other = await ProfileRepository().get(db, other_id)
    return event_for_proposal(proposal, other.name if other else "your TennisMate partner")


@router.get("/{proposal_id}/calendar", response_model=CalendarLink)
async def get_calendar_link(
    proposal_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Google Calendar template link for the proposed session"""
    event = await _load_calendar_event(db, proposal_id, current_user)
    return {"url": create_google_calendar_url(event)}


@router.get("/{proposal_id}/calendar.ics")
async def download_ics(
    proposal_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """iCalendar file for the proposed session"""
    event = await _load_calendar_event(db, proposal_id, current_user)
    return Response(
        content=build_ics(event),
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{ics_filename(event)}"'},
    )
