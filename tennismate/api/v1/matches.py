from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List
import uuid

from tennismate.core.database import get_db
from tennismate.api.deps import get_current_user, raise_for_error
from tennismate.models.profile import Profile
from tennismate.repositories.match_repository import MatchRepository
from tennismate.schemas.match import MatchItem, MatchListResponse
from tennismate.schemas.message import Message as MessageSchema, MessageCreate, MessageListResponse, MarkReadResponse
from tennismate.schemas.proposal import Proposal as ProposalSchema, ProposalCreate
from tennismate.services.chat_service import ChatService
from tennismate.services.match_service import MatchService
from tennismate.services.proposal_service import ProposalService

router = APIRouter()


@router.get("", response_model=MatchListResponse)
async def get_matches(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Matches of the current user, newest first, with each match's active proposal"""
    result = await MatchService().get_matches(db, current_user.id, with_active_proposals=True)
    raise_for_error(result.error, "Failed to load matches")

    items = [MatchItem.model_validate(entry) for entry in result.matches]
    return {"items": items, "total": len(items)}


@router.get("/active-proposals", response_model=Dict[uuid.UUID, ProposalSchema])
async def get_active_proposals(
    match_ids: List[uuid.UUID] = Query(default=[]),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Active proposal per match; only the current user's matches are considered"""
    if not match_ids:
        return {}
    own = {m.id for m in await MatchRepository().get_for_user(db, current_user.id)}
    result = await ProposalService().get_active_proposals_for_matches(
        db, [mid for mid in match_ids if mid in own]
    )
    raise_for_error(result.error, "Failed to load proposals")
    return result.proposals


@router.get("/{match_id}/proposals", response_model=List[ProposalSchema])
async def get_proposals(
    match_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await MatchService().get_match_for_participant(db, match_id, current_user.id)
    result = await ProposalService().get_proposals(db, match_id)
    raise_for_error(result.error, "Failed to load proposals")
    return result.proposals


@router.post("/{match_id}/proposals", response_model=ProposalSchema, status_code=status.HTTP_201_CREATED)
async def create_proposal(
    match_id: uuid.UUID,
    proposal_data: ProposalCreate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Propose a session to the other player of the match"""
    proposal = await ProposalService().create_proposal(
        db,
        match_id,
        current_user.id,
        proposal_data.scheduled_at,
        court_name=proposal_data.court_name
    )
    if proposal is None:
        raise HTTPException(status_code=503, detail="Failed to create proposal")
    return proposal


@router.get("/{match_id}/messages", response_model=MessageListResponse)
async def get_messages(
    match_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Conversation history, oldest first"""
    await MatchService().get_match_for_participant(db, match_id, current_user.id)
    result = await ChatService().get_messages(db, match_id)
    raise_for_error(result.error, "Failed to load messages")
    return {"items": result.messages, "total": len(result.messages)}


@router.post("/{match_id}/messages", response_model=MessageSchema, status_code=status.HTTP_201_CREATED)
async def send_message(
    match_id: uuid.UUID,
    message_data: MessageCreate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    await MatchService().get_match_for_participant(db, match_id, current_user.id)
    if not message_data.content.strip():
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    message = await ChatService().send_message(db, match_id, current_user.id, message_data.content)
    if message is None:
        raise HTTPException(status_code=503, detail="Failed to send message")
    return message


@router.post("/{match_id}/messages/read", response_model=MarkReadResponse)
async def mark_messages_read(
    match_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark every message from the other player in this match as read"""
    await MatchService().get_match_for_participant(db, match_id, current_user.id)
    updated = await ChatService().mark_match_messages_as_read(db, match_id, current_user.id)
    if updated is None:
        raise HTTPException(status_code=503, detail="Failed to mark messages as read")
    return {"updated": updated}
