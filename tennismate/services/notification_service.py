"""
Unread counters and social notifications.

``NotificationCounter`` keeps, for one user, the unread message count and the
pending proposal count of every match plus the unread social notification
count. Its state is an immutable ``UnreadSnapshot``: every change builds a new
snapshot and swaps it in with a single assignment, so a reader sees either the
state before a resync or the state after it, never a mix.

Push events from the realtime hub apply small deltas:

- a new message from the other player in a known match: +1 for that match;
  in a match the counter does not know yet: full resync
- a new match involving the user: the match is registered with zero counts
- any proposal change in one of the user's matches: full resync
- a new unread social notification for the user: +1; any other change to the
  user's notifications: full resync
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import inspect
import logging

from tennismate.core.database import AsyncSessionLocal
from tennismate.core.exceptions import NotificationNotFoundError
from tennismate.core.realtime import (
    Binding,
    ChangeEvent,
    EventType,
    RealtimeHub,
    Subscription,
    realtime_hub,
)
from tennismate.models.match import Match
from tennismate.models.match_proposal import MatchProposal
from tennismate.models.message import Message
from tennismate.models.notification import Notification
from tennismate.repositories.match_repository import MatchRepository
from tennismate.repositories.message_repository import MessageRepository
from tennismate.repositories.notification_repository import NotificationRepository
from tennismate.repositories.proposal_repository import ProposalRepository
from tennismate.utils.pagination import PaginationMeta, PaginationParams

logger = logging.getLogger(__name__)


def _frozen(counts: Optional[Mapping[UUID, int]] = None) -> Mapping[UUID, int]:
    return MappingProxyType(dict(counts or {}))


@dataclass(frozen=True)
class UnreadSnapshot:
    version: int = 0
    message_counts: Mapping[UUID, int] = field(default_factory=_frozen)
    proposal_counts: Mapping[UUID, int] = field(default_factory=_frozen)
    social_count: int = 0

    @property
    def total(self) -> int:
        return sum(self.message_counts.values()) + sum(self.proposal_counts.values()) + self.social_count

    @property
    def match_ids(self) -> frozenset:
        return frozenset(self.message_counts) | frozenset(self.proposal_counts)

    def unread_message_count(self, match_id: UUID) -> int:
        return self.message_counts.get(match_id, 0)

    def unread_proposal_count(self, match_id: UUID) -> int:
        return self.proposal_counts.get(match_id, 0)

    def with_message_count(self, match_id: UUID, count: int) -> "UnreadSnapshot":
        counts = dict(self.message_counts)
        counts[match_id] = count
        proposals = self.proposal_counts
        if match_id not in proposals:
            proposals = _frozen({**proposals, match_id: 0})
        return replace(self, version=self.version + 1, message_counts=_frozen(counts), proposal_counts=proposals)

    def with_social_count(self, count: int) -> "UnreadSnapshot":
        return replace(self, version=self.version + 1, social_count=count)

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "message_counts": {str(k): v for k, v in self.message_counts.items()},
            "proposal_counts": {str(k): v for k, v in self.proposal_counts.items()},
            "social_count": self.social_count,
            "total": self.total,
        }


SnapshotListener = Callable[[UnreadSnapshot], Any]


def _as_uuid(value: Any) -> Optional[UUID]:
    if value is None or isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class NotificationCounter:
    """
    Unread counters of one user, kept current by realtime events.

    Database work runs in short-lived sessions from ``session_factory`` unless
    a session is passed in explicitly.
    """

    def __init__(
        self,
        user_id: UUID,
        session_factory=None,
        hub: Optional[RealtimeHub] = None,
        match_repo: Optional[MatchRepository] = None,
        message_repo: Optional[MessageRepository] = None,
        proposal_repo: Optional[ProposalRepository] = None,
        notification_repo: Optional[NotificationRepository] = None
    ):
        self.user_id = user_id
        self.session_factory = session_factory or AsyncSessionLocal
        self.hub = hub or realtime_hub
        self.match_repo = match_repo or MatchRepository()
        self.message_repo = message_repo or MessageRepository()
        self.proposal_repo = proposal_repo or ProposalRepository()
        self.notification_repo = notification_repo or NotificationRepository()

        self.snapshot = UnreadSnapshot()
        self.error: Optional[str] = None
        self.loading = False
        self._listeners: list[SnapshotListener] = []
        self._subscription: Optional[Subscription] = None

    # ── Reads ────────────────────────────────────────────────────────────────

    @property
    def total_unread_count(self) -> int:
        return self.snapshot.total

    def unread_count(self, match_id: UUID) -> int:
        snapshot = self.snapshot
        return snapshot.unread_message_count(match_id) + snapshot.unread_proposal_count(match_id)

    def unread_message_count(self, match_id: UUID) -> int:
        return self.snapshot.unread_message_count(match_id)

    def unread_proposal_count(self, match_id: UUID) -> int:
        return self.snapshot.unread_proposal_count(match_id)

    def add_listener(self, listener: SnapshotListener) -> None:
        self._listeners.append(listener)

    # ── Resync ───────────────────────────────────────────────────────────────

    async def fetch_unread_counts(self, db: Optional[AsyncSession] = None) -> UnreadSnapshot:
        """
        Recompute every counter from the store and replace the snapshot.

        On failure the previous snapshot stays in place and ``error`` is set.
        """
        if db is not None:
            return await self._resync(db)
        async with self.session_factory() as session:
            return await self._resync(session)

    async def _resync(self, db: AsyncSession) -> UnreadSnapshot:
        known_before = self.snapshot.match_ids
        self.loading = True
        try:
            matches = await self.match_repo.get_for_user(db, self.user_id)
            match_ids = [m.id for m in matches]
            unread = await self.message_repo.count_unread_by_match(db, match_ids, self.user_id)
            pending = await self.proposal_repo.count_pending_by_match(db, self.user_id)
            social = await self.notification_repo.get_unread_count_for_user(db, self.user_id)
        except SQLAlchemyError as e:
            logger.error(f"Error fetching unread counts for user {self.user_id}: {e}")
            self.error = "Failed to fetch unread counts"
            return self.snapshot
        finally:
            self.loading = False

        message_counts = {mid: unread.get(mid, 0) for mid in match_ids}
        proposal_counts = {mid: pending.get(mid, 0) for mid in match_ids}

        # Matches pushed while the queries were running may be missing from them
        current = self.snapshot
        for mid in current.match_ids - known_before - set(match_ids):
            message_counts[mid] = current.unread_message_count(mid)
            proposal_counts[mid] = current.unread_proposal_count(mid)

        self.error = None
        await self._replace(UnreadSnapshot(
            version=current.version + 1,
            message_counts=_frozen(message_counts),
            proposal_counts=_frozen(proposal_counts),
            social_count=social,
        ))
        return self.snapshot

    # ── Local updates ────────────────────────────────────────────────────────

    async def mark_match_as_read(self, match_id: UUID) -> UnreadSnapshot:
        """Zero the message counter of one match. Proposal counters are left alone."""
        if self.snapshot.unread_message_count(match_id):
            await self._replace(self.snapshot.with_message_count(match_id, 0))
        return self.snapshot

    async def reset(self) -> None:
        """Drop all counters, e.g. on sign-out."""
        self.error = None
        await self._replace(UnreadSnapshot(version=self.snapshot.version + 1))

    async def _replace(self, snapshot: UnreadSnapshot) -> None:
        self.snapshot = snapshot
        for listener in list(self._listeners):
            try:
                result = listener(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Unread counter listener failed for user {self.user_id}: {e}", exc_info=True)

    # ── Realtime ─────────────────────────────────────────────────────────────

    async def start(self, db: Optional[AsyncSession] = None) -> UnreadSnapshot:
        """Subscribe to changes affecting this user, then resync."""
        if self._subscription is None:
            self._subscription = self.hub.subscribe(
                f"unread:{self.user_id}",
                Binding(table=Match.__tablename__, callback=self.handle_event, event=EventType.INSERT),
                Binding(table=Message.__tablename__, callback=self.handle_event, event=EventType.INSERT),
                Binding(table=MatchProposal.__tablename__, callback=self.handle_event),
                Binding(
                    table=Notification.__tablename__,
                    callback=self.handle_event,
                    filter={"user_id": self.user_id},
                ),
            )
        return await self.fetch_unread_counts(db)

    def stop(self) -> None:
        if self._subscription is not None:
            self.hub.remove(self._subscription)
            self._subscription = None

    async def handle_event(self, event: ChangeEvent) -> None:
        row = event.new or {}
        me = str(self.user_id)

        if event.table == Match.__tablename__:
            match_id = _as_uuid(row.get("id"))
            if match_id is None or me not in (str(row.get("user1_id")), str(row.get("user2_id"))):
                return
            if match_id not in self.snapshot.match_ids:
                await self._replace(self.snapshot.with_message_count(match_id, 0))

        elif event.table == Message.__tablename__:
            match_id = _as_uuid(row.get("match_id"))
            if match_id is None or str(row.get("sender_id")) == me:
                return
            if match_id not in self.snapshot.match_ids:
                await self.fetch_unread_counts()
                return
            count = self.snapshot.unread_message_count(match_id)
            await self._replace(self.snapshot.with_message_count(match_id, count + 1))

        elif event.table == MatchProposal.__tablename__:
            match_id = _as_uuid(row.get("match_id"))
            involved = me in (str(row.get("sender_id")), str(row.get("receiver_id")))
            if involved or match_id in self.snapshot.match_ids:
                await self.fetch_unread_counts()

        elif event.table == Notification.__tablename__:
            if str(row.get("user_id")) != me:
                return
            if event.event_type == EventType.INSERT and not row.get("read"):
                await self._replace(self.snapshot.with_social_count(self.snapshot.social_count + 1))
            else:
                await self.fetch_unread_counts()


class NotificationService:
    """Listing and read receipts for social notifications."""

    def __init__(
        self,
        notification_repo: Optional[NotificationRepository] = None,
        hub: Optional[RealtimeHub] = None
    ):
        self.notification_repo = notification_repo or NotificationRepository()
        self.hub = hub or realtime_hub

    async def get_user_notifications(
        self,
        db: AsyncSession,
        user_id: UUID,
        params: Optional[PaginationParams] = None,
        read: Optional[bool] = None
    ) -> dict:
        """
        Get paginated notifications for a user.

        Args:
            db: Active database session
            user_id: UUID of the owner
            params: Page and page size
            read: Optional filter by read status

        Returns:
            Dictionary with ``items`` and ``pagination``

        Raises:
            SQLAlchemyError: If the store failed
        """
        params = params or PaginationParams()
        notifications, total = await self.notification_repo.get_user_notifications(
            db, user_id, skip=params.get_offset(), limit=params.limit, read=read
        )
        return {
            "items": notifications,
            "pagination": PaginationMeta.from_params(params, total),
        }

    async def mark_as_read(
        self,
        db: AsyncSession,
        notification_id: UUID,
        user_id: UUID
    ) -> Notification:
        """
        Mark one of the user's notifications as read.

        Raises:
            NotificationNotFoundError: If it does not exist or belongs to someone else
        """
        notification = await self.notification_repo.get(db, notification_id)
        if notification is None or notification.user_id != user_id:
            raise NotificationNotFoundError(f"Notification {notification_id} not found")

        was_read = notification.read
        notification = await self.notification_repo.mark_as_read(db, notification)
        await db.commit()

        if not was_read:
            await self.hub.publish_row(notification, EventType.UPDATE, old={"read": False})
        return notification

    async def mark_all_as_read(self, db: AsyncSession, user_id: UUID) -> int:
        """Mark every unread notification of the user as read; returns how many changed."""
        updated = await self.notification_repo.mark_all_as_read_for_user(db, user_id)
        await db.commit()

        if updated:
            logger.info(f"Marked {updated} notifications read for user {user_id}")
            await self.hub.publish(ChangeEvent(
                table=Notification.__tablename__,
                event_type=EventType.UPDATE,
                new={"user_id": str(user_id), "read": True},
            ))
        return updated
