"""Authentication dependencies."""

import logging
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.jwt import verify_token
from src.core.database import get_db
from src.models.user import User
from src.repositories.user import UserRepository
from src.utils.messages import get_message

logger = logging.getLogger(__name__)


class JWTBearer(HTTPBearer):
    """JWT handler reading the ``access_token`` cookie, then the bearer header."""

    def __init__(self, auto_error: bool = True):
        super(JWTBearer, self).__init__(auto_error=False)
        self.require_token = auto_error

    async def __call__(self, request: Request):
        access_token = request.cookies.get("access_token")
        if access_token:
            return access_token

        credentials = await super(JWTBearer, self).__call__(request)
        if credentials and credentials.scheme.lower() == "bearer":
            return credentials.credentials

        if self.require_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=get_message("auth", "authentication_required"),
                headers={"WWW-Authenticate": "Bearer"},
            )

        return None


jwt_bearer = JWTBearer()


async def get_current_user(
    token: str = Depends(jwt_bearer),
    session: AsyncSession = Depends(get_db)
) -> User:
    """Get the current authenticated user from JWT token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=get_message("auth", "invalid_credentials"),
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = verify_token(token)
    except JWTError:
        raise credentials_exception

    try:
        user_id = int(payload.get("sub"))
    except (ValueError, TypeError):
        raise credentials_exception

    user = await UserRepository(session).get_by_id(user_id)
    if not user:
        logger.warning(f"Token subject {user_id} does not match any user")
        raise credentials_exception

    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Ensure the current user is active."""
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=get_message("auth", "user_inactive")
        )
    return current_user

