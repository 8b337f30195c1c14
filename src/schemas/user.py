"""User schemas."""

from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from src.models.enums import UserRole


class UserSummary(BaseModel):
    """Compact user reference embedded in appraisal listings."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    role: UserRole
    department: Optional[str] = None


class UserResponse(UserSummary):
    """Schema for user response."""

    employee_no: Optional[str] = None
    email: EmailStr = Field(..., description="User email address")
    designation: Optional[str] = None
    is_active: bool = True
