from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from tennismate.core.config import settings
from tennismate.core.database import get_db
from tennismate.api.deps import get_current_user, raise_for_error
from tennismate.models.profile import Profile
from tennismate.schemas.profile import DiscoverProfile, DiscoverResponse
from tennismate.services.discovery_service import DiscoveryService

router = APIRouter()


@router.get("", response_model=DiscoverResponse)
async def discover(
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    max_distance: Optional[float] = Query(None, gt=0, description="Radius in km; omit for unlimited"),
    limit: int = Query(settings.discover_default_limit, ge=1, le=settings.discover_max_limit),
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Ranked profiles the current user has not swiped yet"""
    result = await DiscoveryService().get_discover_users(
        db,
        current_user.id,
        latitude=latitude,
        longitude=longitude,
        max_distance=max_distance,
        limit=limit
    )
    raise_for_error(result.error, "Failed to load discovery candidates")

    items = [
        DiscoverProfile.model_validate(c.profile).model_copy(
            update={"has_liked_me": c.has_liked_me, "distance": c.distance}
        )
        for c in result.candidates
    ]
    return {"items": items, "total": len(items)}
