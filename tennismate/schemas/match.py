from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
import uuid

from tennismate.schemas.profile import Profile
from tennismate.schemas.proposal import Proposal


class MatchItem(BaseModel):
    """A match seen from one participant: the counterpart's profile plus match metadata"""
    match_id: uuid.UUID
    matched_at: datetime
    profile: Profile
    active_proposal: Optional[Proposal] = None

    class Config:
        from_attributes = True


class MatchListResponse(BaseModel):
    items: List[MatchItem]
    total: int
