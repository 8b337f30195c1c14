"""Appraisal cycle schemas."""

from datetime import date
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.sanitize_html import sanitize_optional_text


class AppraisalCycleCreate(BaseModel):
    """Schema for creating an appraisal cycle."""
    label: str = Field(..., min_length=1, max_length=100, description="Display name of the cycle")
    academic_year: str = Field(
        ..., pattern=r"^\d{4}-\d{2}$", description="Academic year, e.g. 2025-26"
    )
    start_date: date
    end_date: date
    is_open: bool = Field(False, description="Open the cycle immediately, closing any other")

    @field_validator("label")
    @classmethod
    def sanitize_label(cls, v):
        return sanitize_optional_text(v)


class AppraisalCycleResponse(BaseModel):
    """Schema for appraisal cycle response."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    label: str
    academic_year: str
    start_date: date
    end_date: date
    is_open: bool
    created_by: Optional[int] = None
