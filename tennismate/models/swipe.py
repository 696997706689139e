from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from tennismate.core.database import Base


class SwipeAction(str, enum.Enum):
    LIKE = "like"
    PASS = "pass"


class Swipe(Base):
    __tablename__ = "swipes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    target_user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    action = Column(String(10), nullable=False)  # like or pass

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # Swipes are append-only: one decision per actor-target pair
    __table_args__ = (UniqueConstraint('user_id', 'target_user_id', name='unique_user_target_swipe'),)

    def __repr__(self):
        return f"<Swipe(user_id={self.user_id}, target_user_id={self.target_user_id}, action={self.action})>"
