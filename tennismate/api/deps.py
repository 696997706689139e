from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from tennismate.core.database import get_db
from tennismate.core.security import verify_token
from tennismate.models.profile import Profile
from tennismate.repositories.profile_repository import ProfileRepository

security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Profile:
    """Resolve the bearer token to the acting profile"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    user_id = verify_token(credentials.credentials, "access")
    if user_id is None:
        raise credentials_exception

    profile = await ProfileRepository().get(db, user_id)
    if profile is None:
        raise credentials_exception

    return profile


def raise_for_error(error, detail: str = "Service temporarily unavailable"):
    """Map a service result's error flag to 503"""
    if error:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)
