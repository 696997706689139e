"""
Async factories for the ORM models.

Usage example (inside an async test with db_session fixture):

    anna = await ProfileFactory.create_async(db_session, name="Anna")
    ben = await ProfileFactory.create_async(db_session)
    match = await MatchFactory.create_async(db_session, users=(anna.id, ben.id))
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from tennismate.models.match import Match, canonical_pair
from tennismate.models.match_proposal import MatchProposal, ProposalStatus
from tennismate.models.message import Message
from tennismate.models.notification import Notification, NotificationType
from tennismate.models.profile import Profile, SkillLevel
from tennismate.models.swipe import Swipe, SwipeAction

BASE_TIME = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Deterministic timestamp ``minutes`` after BASE_TIME."""
    return BASE_TIME + timedelta(minutes=minutes)


# ---------------------------------------------------------------------------
# Base async factory helper
# ---------------------------------------------------------------------------
class _AsyncFactory:
    """Minimal async factory helper.

    Subclasses declare ``_model`` (the ORM class) and override ``_defaults()``
    to supply default column values.  Call ``create_async(session, **kwargs)``
    to insert a row and return the flushed instance.
    """

    _model: type

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return {}

    @classmethod
    def _prepare(cls, data: dict[str, Any]) -> dict[str, Any]:
        return data

    @classmethod
    async def create_async(cls, session, **kwargs) -> Any:
        """Create and flush an ORM instance within the given session."""
        instance = cls.build(**kwargs)
        session.add(instance)
        await session.flush()
        return instance

    @classmethod
    def build(cls, **kwargs) -> Any:
        """Build an unsaved ORM instance (no DB interaction)."""
        data = cls._prepare({**cls._defaults(), **kwargs})
        return cls._model(**data)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
class ProfileFactory(_AsyncFactory):
    _model = Profile

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        suffix = uuid.uuid4().hex[:8]
        return {
            "id": uuid.uuid4(),
            "name": f"Player {suffix}",
            "email": f"player_{suffix}@example.com",
            "skill_level": SkillLevel.INTERMEDIATE.value,
            "location": "Frankfurt",
            "latitude": None,
            "longitude": None,
            "availability": [],
            "created_at": BASE_TIME,
        }


class SwipeFactory(_AsyncFactory):
    _model = Swipe

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return {
            "id": uuid.uuid4(),
            "user_id": None,  # caller must supply
            "target_user_id": None,  # caller must supply
            "action": SwipeAction.LIKE.value,
            "created_at": BASE_TIME,
        }


class MatchFactory(_AsyncFactory):
    """Pass ``users=(a, b)`` in any order; the pair is stored canonically."""

    _model = Match

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return {
            "id": uuid.uuid4(),
            "created_at": BASE_TIME,
        }

    @classmethod
    def _prepare(cls, data: dict[str, Any]) -> dict[str, Any]:
        users = data.pop("users", None)
        if users is not None:
            data["user1_id"], data["user2_id"] = canonical_pair(*users)
        return data


class MessageFactory(_AsyncFactory):
    _model = Message

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return {
            "id": uuid.uuid4(),
            "match_id": None,  # caller must supply
            "sender_id": None,  # caller must supply
            "content": "See you on court!",
            "read": False,
            "created_at": BASE_TIME,
        }


class ProposalFactory(_AsyncFactory):
    _model = MatchProposal

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return {
            "id": uuid.uuid4(),
            "match_id": None,  # caller must supply
            "sender_id": None,  # caller must supply
            "receiver_id": None,  # caller must supply
            "scheduled_at": BASE_TIME + timedelta(days=2),
            "court_name": "Court 3",
            "status": ProposalStatus.PENDING.value,
            "created_at": BASE_TIME,
        }


class NotificationFactory(_AsyncFactory):
    _model = Notification

    @classmethod
    def _defaults(cls) -> dict[str, Any]:
        return {
            "id": uuid.uuid4(),
            "user_id": None,  # caller must supply
            "sender_id": None,
            "type": NotificationType.LIKE.value,
            "resource_id": uuid.uuid4(),
            "read": False,
            "created_at": BASE_TIME,
        }
