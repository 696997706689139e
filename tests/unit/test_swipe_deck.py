"""
Unit tests for the optimistic SwipeDeck.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest

from tennismate.models.profile import Profile
from tennismate.models.swipe import SwipeAction
from tennismate.services.discovery_service import DiscoveryCandidate
from tennismate.services.swipe_deck import PendingSwipe, SwipeDeck
from tennismate.services.swipe_service import SwipeResult


def _candidate(name: str) -> DiscoveryCandidate:
    profile = Profile()
    profile.id = uuid.uuid4()
    profile.name = name
    return DiscoveryCandidate(profile=profile)


class TestSwipeDeck:
    @pytest.mark.asyncio
    async def test_empty_deck_returns_none(self):
        recorder = AsyncMock()
        deck = SwipeDeck(recorder)

        assert await deck.swipe("like") is None
        recorder.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_advances(self):
        anna, ben = _candidate("Anna"), _candidate("Ben")
        recorder = AsyncMock(return_value=SwipeResult())
        deck = SwipeDeck(recorder, [anna, ben])

        await deck.swipe(SwipeAction.PASS)

        assert deck.current is ben
        assert deck.remaining == 1
        assert deck.pending == ()
        recorder.assert_awaited_once_with(anna.profile.id, SwipeAction.PASS)

    @pytest.mark.asyncio
    async def test_card_advances_before_recorder_returns(self):
        anna, ben = _candidate("Anna"), _candidate("Ben")
        seen = {}

        async def recorder(target_id, action):
            seen["current"] = deck.current
            seen["pending"] = deck.pending
            return SwipeResult()

        deck = SwipeDeck(recorder, [anna, ben])
        await deck.swipe("like")

        assert seen["current"] is ben
        assert [p.candidate for p in seen["pending"]] == [anna]

    @pytest.mark.asyncio
    async def test_error_restores_card(self):
        anna, ben = _candidate("Anna"), _candidate("Ben")
        recorder = AsyncMock(return_value=SwipeResult(error="Failed to record swipe"))
        deck = SwipeDeck(recorder, [anna, ben])

        result = await deck.swipe("like")

        assert result.error == "Failed to record swipe"
        assert deck.current is anna
        assert deck.remaining == 2
        assert deck.pending == ()
        assert deck.last_error == "Failed to record swipe"

    @pytest.mark.asyncio
    async def test_exception_restores_card_and_propagates(self):
        anna = _candidate("Anna")
        recorder = AsyncMock(side_effect=RuntimeError("network down"))
        deck = SwipeDeck(recorder, [anna])

        with pytest.raises(RuntimeError):
            await deck.swipe("like")

        assert deck.current is anna
        assert deck.pending == ()

    @pytest.mark.asyncio
    async def test_match_is_collected(self):
        anna = _candidate("Anna")
        match_id = uuid.uuid4()
        recorder = AsyncMock(return_value=SwipeResult(is_match=True, match_id=match_id))
        deck = SwipeDeck(recorder, [anna])

        await deck.swipe("like")

        assert deck.matches == [(anna, match_id)]
        assert deck.current is None

    @pytest.mark.asyncio
    async def test_conflict_still_advances(self):
        anna, ben = _candidate("Anna"), _candidate("Ben")
        recorder = AsyncMock(return_value=SwipeResult(conflict=True))
        deck = SwipeDeck(recorder, [anna, ben])

        await deck.swipe("pass")

        assert deck.current is ben

    def test_reload_skips_in_flight_targets(self):
        anna, ben = _candidate("Anna"), _candidate("Ben")
        deck = SwipeDeck(AsyncMock(), [])
        deck._pending[1] = PendingSwipe(1, anna, SwipeAction.LIKE)

        deck.reload([anna, ben])

        assert deck.current is ben
        assert deck.remaining == 1
