"""Appraisal report endpoints."""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import RequestIdentityProvider
from src.auth.permissions import get_current_active_user
from src.core.database import get_db
from src.models.user import User
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.repositories.user import UserRepository
from src.schemas.report import ReportSummary
from src.services.report import AppraisalReportService

router = APIRouter()


async def get_report_service(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AppraisalReportService:
    """Get report service dependency."""
    identity = RequestIdentityProvider(current_user, UserRepository(session))
    return AppraisalReportService(
        AppraisalRepository(session),
        AppraisalCycleRepository(session),
        identity,
    )


@router.get("/summary", response_model=ReportSummary, summary="Appraisal statistics")
async def get_report_summary(
    cycle_id: Optional[int] = Query(None, description="Limit to one cycle"),
    department: Optional[str] = Query(None, max_length=100, description="Limit to one department"),
    service: AppraisalReportService = Depends(get_report_service),
):
    """
    Status counts, completion and score statistics.

    - HODs always get their own department
    - IQAC, principal and admin get the institution, optionally one department
    - Teachers are not allowed
    """
    return await service.get_summary(cycle_id=cycle_id, department=department)
