"""Appraisal cycle model."""

from typing import List, Optional, TYPE_CHECKING
from datetime import date
from sqlmodel import Field, SQLModel, Relationship

from .base import BaseModel

if TYPE_CHECKING:
    from .appraisal import Appraisal


class AppraisalCycle(BaseModel, SQLModel, table=True):
    """Bounded period during which appraisals are collected."""

    __tablename__ = "appraisal_cycles"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    label: str = Field(max_length=100, nullable=False)
    academic_year: str = Field(max_length=20, nullable=False, index=True)
    start_date: date = Field(nullable=False)
    end_date: date = Field(nullable=False)
    is_open: bool = Field(default=False, index=True)

    appraisals: List["Appraisal"] = Relationship(back_populates="cycle")

    def __repr__(self) -> str:
        return f"<AppraisalCycle(id={self.id}, {self.academic_year}, open={self.is_open})>"
