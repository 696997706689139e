from sqlalchemy import Column, DateTime, Float, Integer, JSON, String, Text
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from tennismate.core.database import Base


class SkillLevel(str, enum.Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"
    PRO = "Pro"


class Profile(Base):
    __tablename__ = "profiles"

    # Same id as the authenticated identity
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    skill_level = Column(String(20), nullable=False, default=SkillLevel.BEGINNER.value)

    location = Column(String(255))
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    bio = Column(Text)
    avatar_url = Column(String(500))
    availability = Column(JSON, default=list)  # [{"day": "Mon", "start": "18:00", "end": "20:00"}, ...]
    age = Column(Integer, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return f"<Profile(id={self.id}, name={self.name}, skill_level={self.skill_level})>"
