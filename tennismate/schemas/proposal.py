from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
import uuid

from tennismate.models.match_proposal import ProposalStatus


class ProposalCreate(BaseModel):
    scheduled_at: datetime
    court_name: Optional[str] = Field(default=None, max_length=255)


class ProposalUpdate(BaseModel):
    status: ProposalStatus


class Proposal(BaseModel):
    id: uuid.UUID
    match_id: uuid.UUID
    sender_id: uuid.UUID
    receiver_id: uuid.UUID
    scheduled_at: datetime
    court_name: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class CalendarLink(BaseModel):
    url: str
