"""
Unit tests for the websocket ConnectionManager.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from tennismate.core.websocket_manager import ConnectionManager


def _make_ws() -> MagicMock:
    ws = MagicMock()
    ws.send_json = AsyncMock()
    return ws


class TestConnectionManager:
    @pytest.mark.asyncio
    async def test_counts_connections_per_user(self):
        manager = ConnectionManager()
        user_id = uuid.uuid4()

        await manager.connect(_make_ws(), user_id)
        await manager.connect(_make_ws(), user_id)
        await manager.connect(_make_ws(), uuid.uuid4())

        assert manager.get_connection_count() == {"total_connections": 3, "unique_users": 2}

    @pytest.mark.asyncio
    async def test_disconnect_cleans_up(self):
        manager = ConnectionManager()
        ws = _make_ws()
        await manager.connect(ws, uuid.uuid4())

        manager.disconnect(ws)
        manager.disconnect(ws)

        assert manager.get_connection_count() == {"total_connections": 0, "unique_users": 0}
        assert ws not in manager.connections

    @pytest.mark.asyncio
    async def test_failed_send_unregisters(self):
        manager = ConnectionManager()
        ws = _make_ws()
        ws.send_json.side_effect = RuntimeError("socket closed")
        await manager.connect(ws, uuid.uuid4())

        assert await manager.send(ws, {"type": "ping"}) is False
        assert manager.get_connection_count()["total_connections"] == 0

    @pytest.mark.asyncio
    async def test_send_success(self):
        manager = ConnectionManager()
        ws = _make_ws()
        await manager.connect(ws, uuid.uuid4())

        assert await manager.send(ws, {"type": "ping"}) is True
        ws.send_json.assert_awaited_once_with({"type": "ping"})

    @pytest.mark.asyncio
    async def test_stale_after_missed_pongs(self):
        manager = ConnectionManager()
        ws = _make_ws()
        await manager.connect(ws, uuid.uuid4())
        registered_at = manager.connections[ws].last_pong

        assert manager.is_stale(ws, 60, now=registered_at + timedelta(seconds=30)) is False
        assert manager.is_stale(ws, 60, now=registered_at + timedelta(seconds=61)) is True

    @pytest.mark.asyncio
    async def test_pong_refreshes_connection(self):
        manager = ConnectionManager()
        ws = _make_ws()
        await manager.connect(ws, uuid.uuid4())
        before = manager.connections[ws].last_pong

        manager.update_pong(ws)

        assert manager.connections[ws].last_pong >= before

    def test_unknown_connection_is_stale(self):
        assert ConnectionManager().is_stale(_make_ws(), 60) is True
