from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from tennismate.core.database import get_db
from tennismate.api.deps import get_current_user, raise_for_error
from tennismate.models.profile import Profile
from tennismate.repositories.profile_repository import ProfileRepository
from tennismate.schemas.swipe import SwipeCreate, SwipeResponse
from tennismate.services.swipe_service import SwipeService

router = APIRouter()


@router.post("", response_model=SwipeResponse)
async def create_swipe(
    swipe_data: SwipeCreate,
    current_user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Record a like or pass; a like on someone who liked you back creates a match"""
    if swipe_data.target_user_id != current_user.id:
        if not await ProfileRepository().exists(db, swipe_data.target_user_id):
            raise HTTPException(status_code=404, detail="Profile not found")

    result = await SwipeService().swipe(
        db, current_user.id, swipe_data.target_user_id, swipe_data.action
    )
    if result.conflict:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="You already swiped on this profile"
        )
    raise_for_error(result.error, result.error or "")

    return {"is_match": result.is_match, "match_id": result.match_id}
