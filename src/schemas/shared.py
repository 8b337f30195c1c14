"""Shared schemas for API responses."""

from typing import List, Optional, TypeVar, Generic
from pydantic import BaseModel, Field

T = TypeVar('T')


class PaginationParams(BaseModel):
    """Base pagination parameters."""

    page: int = Field(default=1, ge=1, description="Page number")
    size: int = Field(default=10, ge=1, le=100, description="Items per page")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.size


class BaseListResponse(BaseModel, Generic[T]):
    """Base list response with pagination."""

    items: List[T] = Field(..., description="List of items")
    total: int = Field(..., description="Total number of items")
    page: int = Field(..., description="Current page number")
    size: int = Field(..., description="Items per page")
    pages: int = Field(..., description="Total number of pages")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Detailed error description")
    code: Optional[str] = Field(default=None, description="Error code")


class StatusResponse(BaseModel):
    """Status check response."""

    status: str = Field(..., description="Service status")
    version: Optional[str] = Field(default=None, description="API version")
    timestamp: Optional[str] = Field(default=None, description="Response timestamp")
