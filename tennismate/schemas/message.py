from pydantic import BaseModel, Field
from typing import List
from datetime import datetime
import uuid


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class Message(BaseModel):
    id: uuid.UUID
    match_id: uuid.UUID
    sender_id: uuid.UUID
    content: str
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class MessageListResponse(BaseModel):
    items: List[Message]
    total: int


class MarkReadResponse(BaseModel):
    updated: int
