"""Appraisal report schemas."""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from ..models.enums import AppraisalStatus


class StatusBreakdown(BaseModel):
    """Progress counts and score average for a group of appraisals."""
    total: int = 0
    completed: int = Field(0, description="Approved or locked")
    in_progress: int = Field(0, description="Submitted and under review")
    draft: int = Field(0, description="Draft or returned to the teacher")
    average_score: float = Field(0.0, description="Mean overall score of completed appraisals")
    completion_rate: float = Field(0.0, description="Completed share of total, in percent")


class DepartmentReport(StatusBreakdown):
    department: Optional[str] = None


class CycleReport(StatusBreakdown):
    cycle_id: int
    label: str
    academic_year: str


class ScoreBand(BaseModel):
    """Number of completed appraisals whose overall score falls in a band."""
    label: str
    min: float
    max: float
    count: int = 0


class ReportSummary(StatusBreakdown):
    """Appraisal statistics visible to the requesting role."""
    cycle_id: Optional[int] = None
    department: Optional[str] = None
    by_status: Dict[AppraisalStatus, int] = Field(default_factory=dict)
    highest_score: float = 0.0
    lowest_score: float = 0.0
    score_distribution: List[ScoreBand] = Field(default_factory=list)
    departments: List[DepartmentReport] = Field(default_factory=list)
    cycles: List[CycleReport] = Field(default_factory=list)
