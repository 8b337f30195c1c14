"""Appraisal cycle endpoints."""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import RequestIdentityProvider
from src.auth.permissions import get_current_active_user
from src.core.database import get_db
from src.models.user import User
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.repositories.user import UserRepository
from src.schemas.appraisal_cycle import AppraisalCycleCreate, AppraisalCycleResponse
from src.services.appraisal_cycle import AppraisalCycleService

router = APIRouter()


async def get_appraisal_cycle_service(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AppraisalCycleService:
    """Get appraisal cycle service dependency."""
    identity = RequestIdentityProvider(current_user, UserRepository(session))
    return AppraisalCycleService(AppraisalCycleRepository(session), identity)


@router.get("", response_model=List[AppraisalCycleResponse], summary="List appraisal cycles")
async def list_cycles(
    service: AppraisalCycleService = Depends(get_appraisal_cycle_service),
):
    """Get every appraisal cycle, latest first."""
    return await service.list_cycles()


@router.post(
    "",
    response_model=AppraisalCycleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create appraisal cycle",
)
async def create_cycle(
    cycle_data: AppraisalCycleCreate,
    service: AppraisalCycleService = Depends(get_appraisal_cycle_service),
):
    """
    Create a new appraisal cycle (admin only).

    - **academic_year**: unique, e.g. 2025-26
    - **is_open**: open the cycle straight away, closing the current one
    """
    return await service.create_cycle(cycle_data)


@router.post("/{cycle_id}/open", response_model=AppraisalCycleResponse, summary="Open appraisal cycle")
async def open_cycle(
    cycle_id: int,
    service: AppraisalCycleService = Depends(get_appraisal_cycle_service),
):
    """Open a cycle (admin only). Any other open cycle is closed."""
    return await service.open_cycle(cycle_id)


@router.post("/{cycle_id}/close", response_model=AppraisalCycleResponse, summary="Close appraisal cycle")
async def close_cycle(
    cycle_id: int,
    service: AppraisalCycleService = Depends(get_appraisal_cycle_service),
):
    """Close a cycle (admin only)."""
    return await service.close_cycle(cycle_id)
