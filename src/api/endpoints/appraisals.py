"""Appraisal endpoints."""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import RequestIdentityProvider
from src.auth.permissions import get_current_active_user
from src.core.database import get_db
from src.models.enums import AppraisalStatus
from src.models.user import User
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.repositories.user import UserRepository
from src.schemas.appraisal import (
    AppraisalDetailResponse,
    AppraisalFilterParams,
    AppraisalListResponse,
    AppraisalResponse,
    AppraisalSummary,
    GradeResponse,
    PartSaveRequest,
    ProvisionRequest,
    TotalsResponse,
    TransitionRequest,
)
from src.services.appraisal_workflow import AppraisalWorkflowService
from src.services.calculators import grade_for, percentage
from src.services.notification import get_notification_emitter

router = APIRouter()


async def get_appraisal_workflow_service(
    session: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> AppraisalWorkflowService:
    """Get appraisal workflow service dependency."""
    identity = RequestIdentityProvider(current_user, UserRepository(session))
    return AppraisalWorkflowService(
        AppraisalRepository(session),
        identity,
        AppraisalCycleRepository(session),
        get_notification_emitter(),
    )


@router.get(
    "/current",
    response_model=Optional[AppraisalResponse],
    summary="Get appraisal in the open cycle",
)
async def get_current_appraisal(
    user_id: Optional[int] = Query(None, description="Teacher ID, defaults to the current user"),
    current_user: User = Depends(get_current_active_user),
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """
    Get a teacher's appraisal in the open cycle.

    Returns `null` when there is no open cycle or no appraisal was provisioned.
    """
    return await service.get_current_appraisal(user_id or current_user.id)


@router.get("", response_model=AppraisalListResponse, summary="List appraisals")
async def list_appraisals(
    page: int = Query(1, ge=1, description="Page number"),
    size: int = Query(10, ge=1, le=100, description="Items per page"),
    status_filter: Optional[AppraisalStatus] = Query(None, alias="status", description="Filter by status"),
    department: Optional[str] = Query(None, max_length=100, description="Filter by department"),
    cycle_id: Optional[int] = Query(None, description="Filter by cycle ID"),
    teacher_id: Optional[int] = Query(None, description="Filter by teacher ID"),
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """
    List appraisals visible to the current user.

    - Teachers see their own appraisals
    - HODs see appraisals of their department
    - IQAC, principal and admin see all appraisals
    """
    filters = AppraisalFilterParams(
        page=page,
        size=size,
        status=status_filter,
        department=department,
        cycle_id=cycle_id,
        teacher_id=teacher_id,
    )
    items, total = await service.list_appraisals(filters)
    return AppraisalListResponse(
        items=[AppraisalSummary.model_validate(item) for item in items],
        total=total,
        page=page,
        size=size,
        pages=(total + size - 1) // size,
    )


@router.post(
    "",
    response_model=AppraisalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Provision appraisal",
)
async def provision_appraisal(
    request: ProvisionRequest,
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """
    Create an empty draft appraisal for a teacher (admin only).

    The cycle defaults to the open cycle and must be open.
    """
    return await service.provision_appraisal(request.teacher_id, request.cycle_id)


@router.get(
    "/review-queue",
    response_model=List[AppraisalSummary],
    summary="Appraisals awaiting my action",
)
async def get_review_queue(
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """Appraisals waiting on the current user's role, oldest submission first."""
    return await service.list_review_queue()


@router.get(
    "/{appraisal_id}",
    response_model=AppraisalDetailResponse,
    summary="Get full appraisal data",
)
async def get_appraisal(
    appraisal_id: int,
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """Get appraisal with teacher, cycle, history and a scored view of every part."""
    return await service.get_full_appraisal_data(appraisal_id)


@router.put(
    "/{appraisal_id}/parts/{part_key}",
    response_model=AppraisalResponse,
    summary="Save one part",
)
async def save_part(
    appraisal_id: int,
    part_key: str,
    request: PartSaveRequest,
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """
    Replace the values of one part (A-E) of a draft appraisal.

    Only the owning teacher may save. Totals are recomputed in the same write.
    """
    return await service.save_part(
        appraisal_id, part_key, request.values, request.expected_version
    )


@router.post(
    "/{appraisal_id}/recalculate",
    response_model=TotalsResponse,
    summary="Verify appraisal totals",
)
async def recalculate_totals(
    appraisal_id: int,
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """Recompute totals from the stored parts; drafts are repaired if they drifted."""
    totals = await service.recalculate_totals(appraisal_id)
    pct = percentage(totals)
    grade = grade_for(pct)
    return TotalsResponse(
        appraisal_id=appraisal_id,
        totals=totals,
        percentage=pct,
        grade=GradeResponse(grade=grade.grade, label=grade.label),
    )


@router.post(
    "/{appraisal_id}/transitions",
    response_model=AppraisalResponse,
    summary="Perform a workflow action",
)
async def transition_appraisal(
    appraisal_id: int,
    request: TransitionRequest,
    current_user: User = Depends(get_current_active_user),
    service: AppraisalWorkflowService = Depends(get_appraisal_workflow_service),
):
    """
    Move the appraisal through the workflow.

    - **action**: submit, review, reject, approve, reopen, lock or override
    - **comment**: reviewer comment, required for override
    - **target_status**: override only
    - **expected_version**: optional optimistic concurrency check
    """
    return await service.transition(
        appraisal_id,
        request.action,
        current_user.id,
        comment=request.comment,
        target_status=request.target_status,
        expected_version=request.expected_version,
    )
