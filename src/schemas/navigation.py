"""Navigation schemas."""

from typing import List
from pydantic import BaseModel

from src.models.enums import UserRole


class CapabilityResponse(BaseModel):
    key: str
    label: str
    path: str


class NavigationResponse(BaseModel):
    """Ordered views available to the user's role."""
    role: UserRole
    items: List[CapabilityResponse]
