"""
API endpoints for social notifications and unread badge counts.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from tennismate.core.database import get_db
from tennismate.api.deps import get_current_user, raise_for_error
from tennismate.models.profile import Profile
from tennismate.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountsResponse,
)
from tennismate.services.notification_service import NotificationCounter, NotificationService
from tennismate.utils.pagination import PaginationParams

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    read: Optional[bool] = Query(None, description="Filter by read status"),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Paginated social notifications for the current user, newest first"""
    return await NotificationService().get_user_notifications(
        db, current_user.id, PaginationParams(page=page, limit=limit), read=read
    )


@router.get("/unread-counts", response_model=UnreadCountsResponse)
async def get_unread_counts(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Unread messages and pending proposals per match, plus unread social notifications"""
    counter = NotificationCounter(current_user.id)
    snapshot = await counter.fetch_unread_counts(db)
    raise_for_error(counter.error, "Failed to fetch unread counts")

    return {
        "message_counts": dict(snapshot.message_counts),
        "proposal_counts": dict(snapshot.proposal_counts),
        "social_count": snapshot.social_count,
        "total": snapshot.total,
    }


@router.patch("/read-all", response_model=MarkAllReadResponse)
async def mark_all_notifications_read(
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    updated = await NotificationService().mark_all_as_read(db, current_user.id)
    return {"updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_notification_read(
    notification_id: uuid.UUID,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await NotificationService().mark_as_read(db, notification_id, current_user.id)
