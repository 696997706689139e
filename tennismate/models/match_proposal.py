from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import UUID
import uuid
import enum
from tennismate.core.database import Base


class ProposalStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


# Allowed status changes; declined and cancelled are terminal
PROPOSAL_TRANSITIONS = {
    ProposalStatus.PENDING: {ProposalStatus.ACCEPTED, ProposalStatus.DECLINED, ProposalStatus.CANCELLED},
    ProposalStatus.ACCEPTED: {ProposalStatus.CANCELLED},
    ProposalStatus.DECLINED: set(),
    ProposalStatus.CANCELLED: set(),
}

ACTIVE_PROPOSAL_STATUSES = (ProposalStatus.PENDING.value, ProposalStatus.ACCEPTED.value)


class MatchProposal(Base):
    __tablename__ = "match_proposals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    match_id = Column(UUID(as_uuid=True), ForeignKey("matches.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    receiver_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False, index=True)

    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    court_name = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=ProposalStatus.PENDING.value, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    def __repr__(self):
        return f"<MatchProposal(id={self.id}, match_id={self.match_id}, status={self.status})>"
