from .profile import Profile, SkillLevel
from .swipe import Swipe, SwipeAction
from .match import Match, canonical_pair
from .message import Message
from .match_proposal import MatchProposal, ProposalStatus
from .notification import Notification, NotificationType

__all__ = [
    "Profile", "SkillLevel", "Swipe", "SwipeAction", "Match", "canonical_pair",
    "Message", "MatchProposal", "ProposalStatus", "Notification", "NotificationType"
]
