from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from tennismate.core.database import get_db
from tennismate.api.deps import get_current_user
from tennismate.models.profile import Profile
from tennismate.repositories.message_repository import MessageRepository
from tennismate.services.chat_service import ChatService
from tennismate.services.match_service import MatchService

router = APIRouter()


@router.patch("/{message_id}/read")
async def mark_message_read(
    message_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Mark a single message as read"""
    message = await MessageRepository().get(db, message_id)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    await MatchService().get_match_for_participant(db, message.match_id, current_user.id)

    if not await ChatService().mark_as_read(db, message_id):
        raise HTTPException(status_code=503, detail="Failed to mark message as read")
    return {"id": message_id, "read": True}
