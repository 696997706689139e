from pydantic import BaseModel
from typing import Optional
from datetime import datetime
import uuid

from tennismate.models.swipe import SwipeAction


class SwipeCreate(BaseModel):
    target_user_id: uuid.UUID
    action: SwipeAction


class Swipe(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    target_user_id: uuid.UUID
    action: str
    created_at: datetime

    class Config:
        from_attributes = True


class SwipeResponse(BaseModel):
    """Outcome of a swipe; match_id is set when the like completed a match"""
    is_match: bool
    match_id: Optional[uuid.UUID] = None
