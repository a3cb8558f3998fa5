"""
Route dependencies.

Bearer JWT authentication for customer and order endpoints. With
AUTH_ENABLED=false every request runs as the development user.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
import structlog

from config import settings
from exceptions import AuthenticationError

logger = structlog.get_logger(__name__)

security = HTTPBearer(auto_error=False)

DEV_USER = {
    "sub": "dev-user",
    "email": "dev@omnix-ai.com",
    "role": "manager",
}


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=24))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and validate a token. None if invalid or expired."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("invalid_access_token", error=str(e))
        return None


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Authenticated user payload.

    Raises:
        AuthenticationError: Missing, invalid or expired token
    """
    if not settings.auth_enabled:
        return DEV_USER

    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise AuthenticationError("Invalid or expired token")
    return payload
