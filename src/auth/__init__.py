"""Auth module init."""

from .jwt import create_access_token, verify_token
from .permissions import get_current_user, get_current_active_user

__all__ = [
    # JWT functions
    "create_access_token",
    "verify_token",
    # Auth dependencies
    "get_current_user",
    "get_current_active_user",
]
