# Repositories package
from .base import BaseRepository
from .profile_repository import ProfileRepository
from .swipe_repository import SwipeRepository
from .match_repository import MatchRepository
from .message_repository import MessageRepository
from .proposal_repository import ProposalRepository
from .notification_repository import NotificationRepository

__all__ = [
    "BaseRepository",
    "ProfileRepository",
    "SwipeRepository",
    "MatchRepository",
    "MessageRepository",
    "ProposalRepository",
    "NotificationRepository",
]
