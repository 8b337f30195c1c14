"""Database models initialization."""

# Base classes
from .base import BaseModel, TimestampMixin, AuditMixin

# Core models
from .user import User
from .appraisal_cycle import AppraisalCycle
from .appraisal import Appraisal
from .appraisal_history import AppraisalHistory

# Enums
from .enums import (
    UserRole,
    AppraisalStatus,
    WorkflowAction,
    PartKey,
)

__all__ = [
    # Base classes
    "BaseModel",
    "TimestampMixin",
    "AuditMixin",

    # Core models
    "User",
    "AppraisalCycle",
    "Appraisal",
    "AppraisalHistory",

    # Enums
    "UserRole",
    "AppraisalStatus",
    "WorkflowAction",
    "PartKey",
]
