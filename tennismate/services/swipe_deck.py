"""
Client-side swipe deck with optimistic advance.

Swiping moves the next candidate into view at once and records the action as
pending. When the recorder reports a failure the candidate is put back on top
of the deck so it can be swiped again.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Optional, Union
from uuid import UUID
import itertools
import logging

from tennismate.models.swipe import SwipeAction
from tennismate.services.discovery_service import DiscoveryCandidate
from tennismate.services.swipe_service import SwipeResult

logger = logging.getLogger(__name__)

SwipeRecorder = Callable[[UUID, SwipeAction], Awaitable[SwipeResult]]


@dataclass(frozen=True)
class PendingSwipe:
    id: int
    candidate: DiscoveryCandidate
    action: SwipeAction


class SwipeDeck:

    def __init__(self, recorder: SwipeRecorder, candidates: Iterable[DiscoveryCandidate] = ()):
        self._recorder = recorder
        self._queue: deque[DiscoveryCandidate] = deque(candidates)
        self._pending: dict[int, PendingSwipe] = {}
        self._ids = itertools.count(1)
        self.matches: list[tuple[DiscoveryCandidate, UUID]] = []
        self.last_error: Optional[str] = None

    @property
    def current(self) -> Optional[DiscoveryCandidate]:
        return self._queue[0] if self._queue else None

    @property
    def remaining(self) -> int:
        return len(self._queue)

    @property
    def pending(self) -> tuple[PendingSwipe, ...]:
        return tuple(self._pending.values())

    def reload(self, candidates: Iterable[DiscoveryCandidate]) -> None:
        """Replace the deck with a fresh discovery result, skipping in-flight targets."""
        in_flight = {p.candidate.profile.id for p in self._pending.values()}
        self._queue = deque(c for c in candidates if c.profile.id not in in_flight)

    async def swipe(self, action: Union[SwipeAction, str]) -> Optional[SwipeResult]:
        """
        Swipe the top candidate.

        Returns:
            The recorder's result, or None when the deck is empty
        """
        if not self._queue:
            return None
        action = SwipeAction(action)

        candidate = self._queue.popleft()
        entry = PendingSwipe(next(self._ids), candidate, action)
        self._pending[entry.id] = entry

        try:
            result = await self._recorder(candidate.profile.id, action)
        except Exception:
            self._rollback(entry)
            raise

        if result.error:
            logger.warning(f"Swipe on {candidate.profile.id} failed, restoring card: {result.error}")
            self.last_error = result.error
            self._rollback(entry)
            return result

        self._pending.pop(entry.id, None)
        self.last_error = None
        if result.is_match and result.match_id is not None:
            self.matches.append((candidate, result.match_id))
        return result

    def _rollback(self, entry: PendingSwipe) -> None:
        self._pending.pop(entry.id, None)
        self._queue.appendleft(entry.candidate)
