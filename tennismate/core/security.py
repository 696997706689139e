"""
Access token handling.

Sign-up and sign-in happen against the identity provider; this service only
verifies the bearer token and turns its subject into a profile id.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from jose import JWTError, jwt
import logging

from tennismate.core.config import settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(seconds=settings.access_token_expires)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """Decode JWT token and return payload if valid"""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGORITHM])
    except JWTError:
        return None


def verify_token(token: str, token_type: str = "access") -> Optional[UUID]:
    """Verify JWT token and return the subject as a profile id if valid"""
    payload = decode_token(token)
    if payload is None:
        return None

    subject = payload.get("sub")
    if subject is None or payload.get("type") != token_type:
        return None

    try:
        return UUID(subject)
    except (ValueError, TypeError):
        logger.debug("Token subject is not a UUID: %s", subject)
        return None
