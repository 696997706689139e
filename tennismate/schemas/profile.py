from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime
import uuid


class AvailabilitySlot(BaseModel):
    day: str
    start: str
    end: str


class Profile(BaseModel):
    id: uuid.UUID
    name: str
    skill_level: str
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    availability: List[AvailabilitySlot] = []
    age: Optional[int] = None
    created_at: Optional[datetime] = None

    @field_validator("availability", mode="before")
    @classmethod
    def default_availability(cls, v):
        return v or []

    class Config:
        from_attributes = True


class DiscoverProfile(Profile):
    """Discovery candidate annotated for the requesting user"""
    has_liked_me: bool = False
    distance: Optional[float] = None  # km, one decimal


class DiscoverResponse(BaseModel):
    items: List[DiscoverProfile]
    total: int
