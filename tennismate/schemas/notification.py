from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime
import uuid

from tennismate.utils.pagination import PaginationMeta


class NotificationResponse(BaseModel):
    """Response schema for a single social notification"""
    id: uuid.UUID
    user_id: uuid.UUID
    sender_id: Optional[uuid.UUID] = None
    type: str
    resource_id: Optional[uuid.UUID] = None
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationListResponse(BaseModel):
    """Paginated list of notifications"""
    items: List[NotificationResponse]
    pagination: PaginationMeta


class UnreadCountsResponse(BaseModel):
    """Unread badge counts; total is the sum of the three parts"""
    message_counts: Dict[uuid.UUID, int]
    proposal_counts: Dict[uuid.UUID, int]
    social_count: int
    total: int


class MarkAllReadResponse(BaseModel):
    updated: int
