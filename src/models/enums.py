"""Enums for database models."""

from enum import Enum


class UserRole(str, Enum):
    """User role enum for role-based access control."""
    TEACHER = "TEACHER"
    HOD = "HOD"
    IQAC = "IQAC"
    PRINCIPAL = "PRINCIPAL"
    ADMIN = "ADMIN"


class AppraisalStatus(str, Enum):
    """Appraisal lifecycle status."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    HOD_REVIEWED = "HOD_REVIEWED"
    IQAC_REVIEWED = "IQAC_REVIEWED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    LOCKED = "LOCKED"


class WorkflowAction(str, Enum):
    """Actions that move an appraisal between statuses."""
    SUBMIT = "submit"
    REVIEW = "review"
    REJECT = "reject"
    APPROVE = "approve"
    REOPEN = "reopen"
    LOCK = "lock"
    OVERRIDE = "override"


class PartKey(str, Enum):
    """Scored sections of an appraisal."""
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    E = "E"

    @classmethod
    def get_display_names(cls):
        """Get display names for parts."""
        return {
            cls.A.value: "General Information",
            cls.B.value: "Research & Academic Contributions",
            cls.C.value: "Academic/Administrative Contribution",
            cls.D.value: "Values",
            cls.E.value: "Self Assessment",
        }
