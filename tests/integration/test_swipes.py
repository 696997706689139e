"""
Integration tests for swipe API endpoints.

Covers:
  POST /api/v1/swipes
"""

from __future__ import annotations

import uuid

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tennismate.models.match import Match, canonical_pair
from tennismate.models.profile import Profile
from tennismate.models.swipe import Swipe
from tests.factories import SwipeFactory


# ---------------------------------------------------------------------------
# POST /api/v1/swipes
# ---------------------------------------------------------------------------
class TestCreateSwipe:
    async def test_like_without_reciprocal_is_not_a_match(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
        other_user: Profile,
    ):
        payload = {"target_user_id": str(other_user.id), "action": "like"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"is_match": False, "match_id": None}

        swipes = (await db_session.execute(select(Swipe))).scalars().all()
        assert len(swipes) == 1
        assert swipes[0].user_id == test_user.id
        assert swipes[0].action == "like"

    async def test_reciprocal_like_creates_match(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
        other_user: Profile,
    ):
        await SwipeFactory.create_async(db_session, user_id=other_user.id, target_user_id=test_user.id)

        payload = {"target_user_id": str(other_user.id), "action": "like"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["is_match"] is True

        match = (await db_session.execute(select(Match))).scalar_one()
        assert str(match.id) == data["match_id"]
        assert (match.user1_id, match.user2_id) == canonical_pair(test_user.id, other_user.id)

    async def test_pass_on_liker_is_not_a_match(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
        other_user: Profile,
    ):
        await SwipeFactory.create_async(db_session, user_id=other_user.id, target_user_id=test_user.id)

        payload = {"target_user_id": str(other_user.id), "action": "pass"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["is_match"] is False
        assert (await db_session.execute(select(Match))).scalars().all() == []

    async def test_duplicate_swipe_returns_409(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
        other_user: Profile,
    ):
        target_id = str(other_user.id)
        await SwipeFactory.create_async(
            db_session, user_id=test_user.id, target_user_id=other_user.id, action="pass"
        )

        payload = {"target_user_id": target_id, "action": "like"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 409

    async def test_self_swipe_returns_400(
        self,
        async_client: AsyncClient,
        auth_headers: dict,
        test_user: Profile,
    ):
        payload = {"target_user_id": str(test_user.id), "action": "like"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 400

    async def test_unknown_target_returns_404(
        self,
        async_client: AsyncClient,
        auth_headers: dict,
    ):
        payload = {"target_user_id": str(uuid.uuid4()), "action": "like"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 404

    async def test_invalid_action_returns_422(
        self,
        async_client: AsyncClient,
        auth_headers: dict,
        other_user: Profile,
    ):
        payload = {"target_user_id": str(other_user.id), "action": "superlike"}
        response = await async_client.post("/api/v1/swipes", json=payload, headers=auth_headers)

        assert response.status_code == 422

    async def test_swipe_without_token_rejected(
        self,
        async_client: AsyncClient,
        other_user: Profile,
    ):
        payload = {"target_user_id": str(other_user.id), "action": "like"}
        response = await async_client.post("/api/v1/swipes", json=payload)

        assert response.status_code in (401, 403)

    async def test_invalid_token_returns_401(
        self,
        async_client: AsyncClient,
        other_user: Profile,
    ):
        payload = {"target_user_id": str(other_user.id), "action": "like"}
        response = await async_client.post(
            "/api/v1/swipes", json=payload, headers={"Authorization": "Bearer not-a-jwt"}
        )

        assert response.status_code == 401
