"""
Realtime change feed.

Services publish a ``ChangeEvent`` after every committed write. Consumers open
a channel made of one or more bindings (table, event type, optional equality
filter, callback) and receive matching events until they remove the
subscription.

Two delivery backends:
- memory: events are dispatched in-process, in publish order.
- redis: events are published to a Redis pub/sub channel and dispatched by a
  listener task in every worker, so websocket sessions on other workers see
  them too.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import itertools
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import UUID

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class EventType(str, enum.Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ALL = "*"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed row change. ``new``/``old`` hold JSON-safe column values."""

    table: str
    event_type: EventType
    new: dict = field(default_factory=dict)
    old: Optional[dict] = None

    def to_json(self) -> str:
        return json.dumps({
            "table": self.table,
            "event_type": EventType(self.event_type).value,
            "new": self.new,
            "old": self.old,
        })

    @classmethod
    def from_json(cls, raw: str) -> "ChangeEvent":
        data = json.loads(raw)
        return cls(
            table=data["table"],
            event_type=EventType(data["event_type"]),
            new=data.get("new") or {},
            old=data.get("old"),
        )


EventCallback = Callable[[ChangeEvent], Union[None, Awaitable[None]]]


def _json_value(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def serialize_row(obj: Any) -> dict:
    """Convert an ORM instance into a JSON-safe dict keyed by column name."""
    return {
        column.name: _json_value(getattr(obj, column.key))
        for column in obj.__table__.columns
    }


@dataclass(frozen=True)
class Binding:
    """One listener on a table, optionally narrowed to an event type and column values."""

    table: str
    callback: EventCallback
    event: EventType = EventType.ALL
    filter: Optional[dict] = None

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        if self.event != EventType.ALL and event.event_type != self.event:
            return False
        if self.filter:
            row = event.new if event.event_type != EventType.DELETE else (event.old or {})
            for column, expected in self.filter.items():
                if str(row.get(column)) != str(_json_value(expected)):
                    return False
        return True


class Subscription:
    """Handle returned by ``RealtimeHub.subscribe``; owned by exactly one caller."""

    def __init__(self, hub: "RealtimeHub", subscription_id: int, channel: str, bindings: tuple):
        self._hub = hub
        self.id = subscription_id
        self.channel = channel
        self.bindings = bindings
        self.active = True

    def unsubscribe(self) -> None:
        self._hub.remove(self)

    def __repr__(self):
        return f"<Subscription(id={self.id}, channel={self.channel}, active={self.active})>"


class RealtimeHub:
    """
    Registry of channel subscriptions and event dispatcher.

    Dispatch happens on the event loop thread only, so the registry needs no
    locking.
    """

    def __init__(
        self,
        backend: str = "memory",
        redis_factory=None,
        channel_prefix: str = "tennismate:realtime",
        reconnect_delay: float = 0.5,
        max_reconnect_delay: float = 30.0
    ):
        self.backend = backend
        self._redis_factory = redis_factory
        self._channel = channel_prefix
        self._subscriptions: dict[int, Subscription] = {}
        self._ids = itertools.count(1)
        self._listener_task: Optional[asyncio.Task] = None
        self._pubsub = None
        self._reconnect_delay = reconnect_delay
        self._max_reconnect_delay = max_reconnect_delay

    # ── Subscriptions ────────────────────────────────────────────────────────

    def subscribe(self, channel: str, *bindings: Binding) -> Subscription:
        if not bindings:
            raise ValueError("A channel needs at least one binding")
        subscription = Subscription(self, next(self._ids), channel, tuple(bindings))
        self._subscriptions[subscription.id] = subscription
        logger.debug("Opened channel %s (subscription %s)", channel, subscription.id)
        return subscription

    def remove(self, subscription: Optional[Subscription]) -> None:
        if subscription is None or not subscription.active:
            return
        subscription.active = False
        self._subscriptions.pop(subscription.id, None)
        logger.debug("Closed channel %s (subscription %s)", subscription.channel, subscription.id)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    # ── Publishing ───────────────────────────────────────────────────────────

    async def publish(self, event: ChangeEvent) -> None:
        if self.backend == "redis" and self._redis_factory is not None:
            try:
                redis = await self._redis_factory()
                await redis.publish(self._channel, event.to_json())
                return
            except Exception as e:
                logger.error(f"Redis publish failed for {event.table} {event.event_type}, dispatching locally: {e}")
        await self.dispatch(event)

    async def publish_row(self, obj: Any, event_type: EventType, old: Optional[dict] = None) -> ChangeEvent:
        """Publish the current state of an ORM row; returns the event sent."""
        event = ChangeEvent(table=obj.__tablename__, event_type=event_type, new=serialize_row(obj), old=old)
        await self.publish(event)
        return event

    async def dispatch(self, event: ChangeEvent) -> None:
        # Snapshot so callbacks may (un)subscribe while we iterate
        for subscription in list(self._subscriptions.values()):
            for binding in subscription.bindings:
                if not subscription.active or not binding.matches(event):
                    continue
                try:
                    result = binding.callback(event)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    logger.error(
                        f"Realtime callback on channel {subscription.channel} failed: {e}",
                        exc_info=True,
                    )

    # ── Redis listener ───────────────────────────────────────────────────────

    async def start(self) -> None:
        if self.backend != "redis" or self._listener_task is not None:
            return
        await self._open_pubsub()
        self._listener_task = asyncio.create_task(self._listen())
        logger.info("Realtime listener started on %s", self._channel)

    async def _open_pubsub(self) -> None:
        redis = await self._redis_factory()
        self._pubsub = redis.pubsub()
        await self._pubsub.subscribe(self._channel)

    async def _close_pubsub(self) -> None:
        pubsub, self._pubsub = self._pubsub, None
        if pubsub is None:
            return
        try:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
        except (RedisError, OSError) as e:
            logger.warning(f"Error closing realtime pubsub: {e}")

    async def _listen(self) -> None:
        delay = self._reconnect_delay
        while True:
            try:
                if self._pubsub is None:
                    await self._open_pubsub()
                    logger.info("Realtime listener resubscribed to %s", self._channel)
                message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            except asyncio.CancelledError:
                return
            except (RedisError, OSError) as e:
                logger.error(f"Realtime listener lost Redis, retrying in {delay:.1f}s: {e}")
                await self._close_pubsub()
                try:
                    await asyncio.sleep(delay)
                except asyncio.CancelledError:
                    return
                delay = min(delay * 2, self._max_reconnect_delay)
                continue

            delay = self._reconnect_delay
            if message is None or message.get("type") != "message":
                continue
            data = message["data"]
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            try:
                event = ChangeEvent.from_json(data)
            except (ValueError, KeyError) as e:
                logger.warning(f"Dropping malformed realtime payload: {e}")
                continue
            await self.dispatch(event)

    @property
    def listening(self) -> bool:
        return self._listener_task is not None and not self._listener_task.done()

    async def stop(self) -> None:
        if self._listener_task is not None:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Realtime listener ended with an error: {e}", exc_info=True)
            self._listener_task = None
        if self._pubsub is not None:
            await self._close_pubsub()
            logger.info("Realtime listener stopped")


def _build_hub() -> RealtimeHub:
    from tennismate.core.config import settings
    from tennismate.core.redis import get_redis

    return RealtimeHub(
        backend=settings.realtime_backend,
        redis_factory=get_redis,
        channel_prefix=settings.realtime_channel_prefix,
    )


# Global singleton instance
realtime_hub = _build_hub()
