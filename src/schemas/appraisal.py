"""Appraisal schemas for requests, responses and filters."""

from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .shared import BaseListResponse, PaginationParams
from .user import UserResponse, UserSummary
from .appraisal_cycle import AppraisalCycleResponse
from ..models.enums import AppraisalStatus, PartKey, UserRole, WorkflowAction
from ..utils.sanitize_html import sanitize_optional_text


# ===== REQUEST SCHEMAS =====

class PartSaveRequest(BaseModel):
    """Schema for saving one part's raw values."""
    values: Dict[str, Any] = Field(..., description="Raw field values of the part")
    expected_version: Optional[int] = Field(
        None, ge=1, description="Version the client last read; mismatch gives 409"
    )


class TransitionRequest(BaseModel):
    """Schema for a workflow transition."""
    action: WorkflowAction = Field(..., description="Workflow action to perform")
    comment: Optional[str] = Field(None, max_length=2000, description="Reviewer comment")
    target_status: Optional[AppraisalStatus] = Field(
        None, description="Target status, administrative override only"
    )
    expected_version: Optional[int] = Field(None, ge=1)

    @field_validator("comment")
    @classmethod
    def sanitize_comment(cls, v):
        return sanitize_optional_text(v)


class ProvisionRequest(BaseModel):
    """Schema for provisioning a draft appraisal."""
    teacher_id: int = Field(..., description="Teacher to be appraised")
    cycle_id: Optional[int] = Field(None, description="Cycle ID, defaults to the open cycle")


class AppraisalFilterParams(PaginationParams):
    """Filter parameters for appraisal listings."""
    status: Optional[AppraisalStatus] = Field(None, description="Filter by status")
    department: Optional[str] = Field(None, max_length=100, description="Filter by department")
    cycle_id: Optional[int] = Field(None, description="Filter by cycle ID")
    teacher_id: Optional[int] = Field(None, description="Filter by teacher ID")


# ===== RESPONSE SCHEMAS =====

class AppraisalHistoryResponse(BaseModel):
    """One audit trail entry."""
    model_config = ConfigDict(from_attributes=True)

    sequence: int
    action: str
    from_status: AppraisalStatus
    to_status: AppraisalStatus
    actor_id: int
    actor_role: UserRole
    timestamp: datetime
    comment: Optional[str] = None


class AppraisalResponse(BaseModel):
    """Schema for appraisal response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    teacher_id: int
    cycle_id: int
    department: Optional[str] = None
    status: AppraisalStatus
    parts: Dict[str, Any]
    totals: Dict[str, Dict[str, float]]
    version: int
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    locked_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    history: List[AppraisalHistoryResponse] = Field(default_factory=list)


class AppraisalSummary(BaseModel):
    """Appraisal row in listings and review queues, without part values."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    teacher_id: int
    cycle_id: int
    department: Optional[str] = None
    status: AppraisalStatus
    totals: Dict[str, Dict[str, float]]
    version: int
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    teacher: Optional[UserSummary] = None


class PartView(BaseModel):
    """Resolved view of one part."""
    key: PartKey
    label: str
    saved: bool
    values: Dict[str, Any] = Field(default_factory=dict)
    score: float
    max: float
    subtotals: Dict[str, float] = Field(default_factory=dict)


class GradeResponse(BaseModel):
    grade: str
    label: str


class AppraisalDetailResponse(BaseModel):
    """Appraisal with teacher, cycle and one resolved view per part."""
    appraisal: AppraisalResponse
    teacher: UserResponse
    cycle: AppraisalCycleResponse
    parts: List[PartView]
    percentage: float
    grade: GradeResponse
    available_actions: List[WorkflowAction] = Field(default_factory=list)


class TotalsResponse(BaseModel):
    """Result of a totals verification."""
    appraisal_id: int
    totals: Dict[str, Dict[str, float]]
    percentage: float
    grade: GradeResponse


AppraisalListResponse = BaseListResponse[AppraisalSummary]
