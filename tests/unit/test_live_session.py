"""
Unit tests for LiveSession frame handling.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from tennismate.core.exceptions import NotParticipantError
from tennismate.core.realtime import ChangeEvent, EventType, RealtimeHub
from tennismate.services.chat_service import ChatService
from tennismate.services.live_session import LiveSession
from tennismate.services.notification_service import UnreadSnapshot


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
@asynccontextmanager
async def _session_factory():
    yield AsyncMock()


def _make_session(user_id: uuid.UUID) -> tuple[LiveSession, list, RealtimeHub, MagicMock, MagicMock]:
    frames = []

    async def send(frame):
        frames.append(frame)

    hub = RealtimeHub(backend="memory")

    message_repo = MagicMock()
    message_repo.mark_match_read = AsyncMock(return_value=2)
    chat = ChatService(message_repo=message_repo, match_repo=MagicMock(), hub=hub)

    counter = MagicMock()
    counter.start = AsyncMock(return_value=UnreadSnapshot())
    counter.mark_match_as_read = AsyncMock()

    match_service = MagicMock()
    match_service.get_match_for_participant = AsyncMock()

    session = LiveSession(
        user_id,
        send,
        session_factory=_session_factory,
        hub=hub,
        chat_service=chat,
        counter=counter,
        match_service=match_service,
    )
    return session, frames, hub, counter, match_service


def _message_event(match_id) -> ChangeEvent:
    return ChangeEvent(
        table="messages",
        event_type=EventType.INSERT,
        new={"id": str(uuid.uuid4()), "match_id": str(match_id), "content": "hi"},
    )


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------
class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_registers_counter_listener(self):
        session, _, _, counter, _ = _make_session(uuid.uuid4())

        await session.start()

        counter.add_listener.assert_called_once()
        counter.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_releases_everything(self):
        session, _, hub, counter, _ = _make_session(uuid.uuid4())
        await session.start()
        await session.handle_frame({"type": "subscribe_chat", "match_id": str(uuid.uuid4())})

        await session.close()

        assert hub.subscription_count == 0
        counter.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_counts_pushed_as_frames(self):
        session, frames, _, _, _ = _make_session(uuid.uuid4())

        await session._push_counts(UnreadSnapshot(social_count=2))

        assert frames[-1]["type"] == "unread_counts"
        assert frames[-1]["total"] == 2


# ---------------------------------------------------------------------------
# Chat frames
# ---------------------------------------------------------------------------
class TestChatFrames:
    @pytest.mark.asyncio
    async def test_subscribe_then_receive_messages(self):
        session, frames, hub, _, _ = _make_session(uuid.uuid4())
        match_id = uuid.uuid4()

        await session.handle_frame({"type": "subscribe_chat", "match_id": str(match_id)})
        await hub.publish(_message_event(match_id))
        await hub.publish(_message_event(uuid.uuid4()))

        assert frames[0] == {"type": "chat_subscribed", "match_id": str(match_id)}
        assert [f["type"] for f in frames[1:]] == ["message"]
        assert frames[1]["message"]["content"] == "hi"

    @pytest.mark.asyncio
    async def test_subscribe_forbidden_for_outsider(self):
        session, frames, hub, _, match_service = _make_session(uuid.uuid4())
        match_service.get_match_for_participant.side_effect = NotParticipantError("You are not part of this match")

        await session.handle_frame({"type": "subscribe_chat", "match_id": str(uuid.uuid4())})

        assert frames[0]["type"] == "error"
        assert frames[0]["code"] == "FORBIDDEN"
        assert hub.subscription_count == 0

    @pytest.mark.asyncio
    async def test_invalid_match_id(self):
        session, frames, _, _, _ = _make_session(uuid.uuid4())

        await session.handle_frame({"type": "subscribe_chat", "match_id": "not-a-uuid"})

        assert frames[0]["code"] == "INVALID_MATCH_ID"

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_messages(self):
        session, frames, hub, _, _ = _make_session(uuid.uuid4())
        match_id = uuid.uuid4()
        await session.handle_frame({"type": "subscribe_chat", "match_id": str(match_id)})

        await session.handle_frame({"type": "unsubscribe_chat"})
        await hub.publish(_message_event(match_id))

        assert [f["type"] for f in frames] == ["chat_subscribed"]

    @pytest.mark.asyncio
    async def test_mark_match_read_updates_counter(self):
        session, frames, _, counter, _ = _make_session(uuid.uuid4())
        match_id = uuid.uuid4()

        await session.handle_frame({"type": "mark_match_read", "match_id": str(match_id)})

        counter.mark_match_as_read.assert_awaited_once_with(match_id)
        assert frames == []

    @pytest.mark.asyncio
    async def test_mark_match_read_forbidden_for_outsider(self):
        session, frames, _, counter, match_service = _make_session(uuid.uuid4())
        match_service.get_match_for_participant.side_effect = NotParticipantError("You are not part of this match")

        await session.handle_frame({"type": "mark_match_read", "match_id": str(uuid.uuid4())})

        counter.mark_match_as_read.assert_not_awaited()
        assert frames[0]["code"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_subscribe_store_failure_sends_store_error(self):
        session, frames, hub, _, match_service = _make_session(uuid.uuid4())
        match_service.get_match_for_participant.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        await session.handle_frame({"type": "subscribe_chat", "match_id": str(uuid.uuid4())})

        assert frames[0]["type"] == "error"
        assert frames[0]["code"] == "STORE_ERROR"
        assert hub.subscription_count == 0

    @pytest.mark.asyncio
    async def test_mark_match_read_store_failure_sends_store_error(self):
        session, frames, _, counter, match_service = _make_session(uuid.uuid4())
        match_service.get_match_for_participant.side_effect = OperationalError("SELECT", {}, Exception("db down"))

        await session.handle_frame({"type": "mark_match_read", "match_id": str(uuid.uuid4())})

        counter.mark_match_as_read.assert_not_awaited()
        assert frames[0]["code"] == "STORE_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_frame(self):
        session, frames, _, _, _ = _make_session(uuid.uuid4())

        await session.handle_frame({"type": "dance"})

        assert frames == [{"type": "error", "code": "UNKNOWN_MESSAGE_TYPE", "message": "Unsupported message type: dance"}]


# ---------------------------------------------------------------------------
# Match frames
# ---------------------------------------------------------------------------
class TestMatchFrames:
    @pytest.mark.asyncio
    async def test_new_match_pushed_to_participant_only(self):
        me = uuid.uuid4()
        session, frames, hub, _, _ = _make_session(me)
        await session.start()

        await hub.publish(ChangeEvent(
            table="matches",
            event_type=EventType.INSERT,
            new={"id": str(uuid.uuid4()), "user1_id": str(me), "user2_id": str(uuid.uuid4())},
        ))
        await hub.publish(ChangeEvent(
            table="matches",
            event_type=EventType.INSERT,
            new={"id": str(uuid.uuid4()), "user1_id": str(uuid.uuid4()), "user2_id": str(uuid.uuid4())},
        ))

        assert [f["type"] for f in frames] == ["match"]
