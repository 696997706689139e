from .profile import Profile, AvailabilitySlot, DiscoverProfile, DiscoverResponse
from .swipe import Swipe, SwipeCreate, SwipeResponse
from .proposal import Proposal, ProposalCreate, ProposalUpdate, CalendarLink
from .match import MatchItem, MatchListResponse
from .message import Message, MessageCreate, MessageListResponse, MarkReadResponse
from .notification import (
    NotificationResponse,
    NotificationListResponse,
    UnreadCountsResponse,
    MarkAllReadResponse
)

__all__ = [
    "Profile", "AvailabilitySlot", "DiscoverProfile", "DiscoverResponse",
    "Swipe", "SwipeCreate", "SwipeResponse",
    "Proposal", "ProposalCreate", "ProposalUpdate", "CalendarLink",
    "MatchItem", "MatchListResponse",
    "Message", "MessageCreate", "MessageListResponse", "MarkReadResponse",
    "NotificationResponse", "NotificationListResponse", "UnreadCountsResponse", "MarkAllReadResponse",
]
