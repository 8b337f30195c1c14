"""Schemas initialization."""

# Shared schemas
from .shared import (
    BaseListResponse,
    ErrorResponse,
    PaginationParams,
    StatusResponse,
)

# User schemas
from .user import (
    UserResponse,
    UserSummary,
)

# Appraisal cycle schemas
from .appraisal_cycle import AppraisalCycleCreate, AppraisalCycleResponse

# Part raw-value schemas
from .parts import (
    PART_SCHEMAS,
    PartAValues,
    PartBValues,
    PartCValues,
    PartDValues,
    PartEValues,
    parse_part_key,
    validate_part_values,
)

# Appraisal schemas
from .appraisal import (
    PartSaveRequest,
    TransitionRequest,
    ProvisionRequest,
    AppraisalFilterParams,
    AppraisalHistoryResponse,
    AppraisalResponse,
    AppraisalSummary,
    AppraisalListResponse,
    AppraisalDetailResponse,
    PartView,
    GradeResponse,
    TotalsResponse,
)

# Report schemas
from .report import (
    CycleReport,
    DepartmentReport,
    ReportSummary,
    ScoreBand,
    StatusBreakdown,
)

# Navigation schemas
from .navigation import (
    CapabilityResponse,
    NavigationResponse,
)

__all__ = [
    # Shared
    "BaseListResponse",
    "ErrorResponse",
    "PaginationParams",
    "StatusResponse",
    # User
    "UserResponse",
    "UserSummary",
    # Cycle
    "AppraisalCycleCreate",
    "AppraisalCycleResponse",
    # Parts
    "PART_SCHEMAS",
    "PartAValues",
    "PartBValues",
    "PartCValues",
    "PartDValues",
    "PartEValues",
    "parse_part_key",
    "validate_part_values",
    # Appraisal
    "PartSaveRequest",
    "TransitionRequest",
    "ProvisionRequest",
    "AppraisalFilterParams",
    "AppraisalHistoryResponse",
    "AppraisalResponse",
    "AppraisalSummary",
    "AppraisalListResponse",
    "AppraisalDetailResponse",
    "PartView",
    "GradeResponse",
    "TotalsResponse",
    # Report
    "CycleReport",
    "DepartmentReport",
    "ReportSummary",
    "ScoreBand",
    "StatusBreakdown",
    # Navigation
    "CapabilityResponse",
    "NavigationResponse",
]
