"""JWT token handling."""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Any
from jose import jwt

from src.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    The identity provider only reads ``sub`` (the user id); the login
    service that issues tokens lives outside this application.
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.ALGORITHM
    )


def verify_token(token: str) -> Dict[str, Any]:
    """Verify and decode a JWT token."""
    return jwt.decode(
        token,
        settings.JWT_SECRET_KEY,
        algorithms=[settings.ALGORITHM]
    )
