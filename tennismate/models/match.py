from sqlalchemy import Column, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
from typing import Tuple
import uuid
from tennismate.core.database import Base


def canonical_pair(a: uuid.UUID, b: uuid.UUID) -> Tuple[uuid.UUID, uuid.UUID]:
    """Order two user ids so the lexicographically smaller one comes first."""
    return (a, b) if str(a) < str(b) else (b, a)


class Match(Base):
    __tablename__ = "matches"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user1_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)
    user2_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    # user1_id/user2_id are stored in canonical order, so this covers both directions
    __table_args__ = (UniqueConstraint('user1_id', 'user2_id', name='unique_match_pair'),)

    def involves(self, user_id: uuid.UUID) -> bool:
        return user_id in (self.user1_id, self.user2_id)

    def other_user_id(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.user2_id if self.user1_id == user_id else self.user1_id

    def __repr__(self):
        return f"<Match(id={self.id}, user1_id={self.user1_id}, user2_id={self.user2_id})>"
