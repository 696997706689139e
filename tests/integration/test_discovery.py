"""
Integration tests for the discovery endpoint.

Covers:
  GET /api/v1/discover
"""

from __future__ import annotations

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tennismate.models.profile import Profile
from tests.factories import ProfileFactory, SwipeFactory, at


class TestDiscover:
    async def test_excludes_self_and_swiped(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
        other_user: Profile,
    ):
        fresh = await ProfileFactory.create_async(db_session, name="Fresh")
        await SwipeFactory.create_async(db_session, user_id=test_user.id, target_user_id=other_user.id)

        response = await async_client.get("/api/v1/discover", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data["items"]] == [str(fresh.id)]
        assert data["total"] == 1

    async def test_likers_first_then_nearest(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
    ):
        # Frankfurt origin from the stored profile
        await ProfileFactory.create_async(
            db_session, name="Far", latitude=52.52, longitude=13.405, created_at=at(1)
        )
        await ProfileFactory.create_async(
            db_session, name="Near", latitude=50.12, longitude=8.70, created_at=at(2)
        )
        liker = await ProfileFactory.create_async(
            db_session, name="Liker", latitude=48.1351, longitude=11.582, created_at=at(3)
        )
        await SwipeFactory.create_async(db_session, user_id=liker.id, target_user_id=test_user.id)

        response = await async_client.get("/api/v1/discover", headers=auth_headers)

        items = response.json()["items"]
        assert [item["name"] for item in items] == ["Liker", "Near", "Far"]
        assert items[0]["has_liked_me"] is True
        assert items[1]["distance"] < items[2]["distance"]

    async def test_max_distance_filters(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        auth_headers: dict,
        test_user: Profile,
    ):
        await ProfileFactory.create_async(db_session, name="Far", latitude=52.52, longitude=13.405)
        await ProfileFactory.create_async(db_session, name="Near", latitude=50.12, longitude=8.70)
        await ProfileFactory.create_async(db_session, name="Nowhere")

        response = await async_client.get(
            "/api/v1/discover",
            params={"latitude": 50.1109, "longitude": 8.6821, "max_distance": 25},
            headers=auth_headers,
        )

        assert [item["name"] for item in response.json()["items"]] == ["Near"]

    async def test_invalid_latitude_returns_422(
        self,
        async_client: AsyncClient,
        auth_headers: dict,
    ):
        response = await async_client.get("/api/v1/discover", params={"latitude": 123}, headers=auth_headers)

        assert response.status_code == 422

    async def test_requires_authentication(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/discover")

        assert response.status_code in (401, 403)
