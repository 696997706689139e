from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from tennismate.core.database import Base


class NotificationType(str, enum.Enum):
    LIKE = "like"
    COMMENT = "comment"
    MATCH = "match"
    SYSTEM = "system"


class Notification(Base):
    """Social notification, written by database triggers on likes and comments."""

    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=True)

    type = Column(String(20), nullable=False, index=True)
    resource_id = Column(UUID(as_uuid=True), nullable=True)  # post or comment the event refers to
    read = Column(Boolean, nullable=False, default=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<Notification(id={self.id}, user={self.user_id}, type={self.type}, read={self.read})>"
