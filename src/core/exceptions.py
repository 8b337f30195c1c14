"""Custom exceptions for the appraisal workflow."""

from typing import Optional

from fastapi import HTTPException, status
from ..utils.messages import get_message


class AppraisalError(HTTPException):
    """Base class for workflow errors; ``code`` is stable for callers."""

    code = "APPRAISAL_ERROR"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(status_code=self.status_code_default, detail=message)


class NotFoundError(AppraisalError):
    """Exception raised when an appraisal or user id is unknown."""

    code = "NOT_FOUND"
    status_code_default = status.HTTP_404_NOT_FOUND


class AppraisalNotFoundError(NotFoundError):
    """Exception raised when appraisal is not found."""

    def __init__(self, appraisal_id: Optional[int] = None):
        if appraisal_id is not None:
            message = get_message("appraisal", "not_found_with_id", appraisal_id=appraisal_id)
        else:
            message = get_message("appraisal", "not_found")
        super().__init__(message)


class UserNotFoundError(NotFoundError):
    """Exception raised when user is not found."""

    def __init__(self, user_id: Optional[int] = None):
        if user_id is not None:
            message = get_message("user", "not_found_with_id", user_id=user_id)
        else:
            message = get_message("user", "not_found")
        super().__init__(message)


class CycleNotFoundError(NotFoundError):
    """Exception raised when no matching appraisal cycle exists."""

    def __init__(self, cycle_id: Optional[int] = None):
        if cycle_id is not None:
            message = get_message("cycle", "not_found_with_id", cycle_id=cycle_id)
        else:
            message = get_message("cycle", "no_open_cycle")
        super().__init__(message)


class ForbiddenError(AppraisalError):
    """Actor lacks the role, ownership or department the operation needs."""

    code = "FORBIDDEN"
    status_code_default = status.HTTP_403_FORBIDDEN


class InvalidTransitionError(AppraisalError):
    """Action is not legal from the appraisal's current status."""

    code = "INVALID_TRANSITION"
    status_code_default = status.HTTP_409_CONFLICT


class InvalidStateError(AppraisalError):
    """Mutating action attempted on an appraisal that is not in DRAFT."""

    code = "INVALID_STATE"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, current_status: str):
        super().__init__(get_message("appraisal", "invalid_state", status=current_status))


class AppraisalValidationError(AppraisalError):
    """Part raw values are malformed beyond what clamping can fix."""

    code = "VALIDATION_ERROR"
    status_code_default = 422


class ConflictError(AppraisalError):
    """Version mismatch on a concurrent write."""

    code = "CONFLICT"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(
        self,
        appraisal_id: int,
        expected: Optional[int] = None,
        actual: Optional[int] = None,
    ):
        if expected is not None and actual is not None:
            message = get_message(
                "appraisal", "conflict_with_version",
                appraisal_id=appraisal_id, expected=expected, actual=actual,
            )
        else:
            message = get_message("appraisal", "conflict", appraisal_id=appraisal_id)
        super().__init__(message)


class DuplicateError(AppraisalError):
    """Record already exists for the same teacher and cycle, or the same academic year."""

    code = "DUPLICATE"
    status_code_default = status.HTTP_409_CONFLICT
