"""Navigation endpoint."""

from fastapi import APIRouter, Depends

from src.auth.permissions import get_current_active_user
from src.core.navigation import get_navigation
from src.models.user import User
from src.schemas.navigation import CapabilityResponse, NavigationResponse

router = APIRouter()


@router.get("", response_model=NavigationResponse, summary="Get navigation for current role")
async def get_role_navigation(
    current_user: User = Depends(get_current_active_user),
):
    """Return the ordered views the current user's role may open."""
    return NavigationResponse(
        role=current_user.role,
        items=[CapabilityResponse(**item._asdict()) for item in get_navigation(current_user.role)],
    )
