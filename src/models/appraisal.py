"""Appraisal model - central record owned by the workflow engine."""

from typing import Any, Dict, List, Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, SQLModel, Relationship, UniqueConstraint, Column
from sqlalchemy import DateTime, Enum as SQLEnum, JSON

from .base import BaseModel
from .enums import AppraisalStatus

if TYPE_CHECKING:
    from .user import User
    from .appraisal_cycle import AppraisalCycle
    from .appraisal_history import AppraisalHistory


class Appraisal(BaseModel, SQLModel, table=True):
    """One teacher's appraisal for one cycle.

    ``parts`` maps a part key to that part's raw values and ``totals`` maps
    a part key to ``{"score", "max"}`` plus an ``overall`` entry. Both are
    replaced wholesale on every write so SQLAlchemy sees the change.
    """

    __tablename__ = "appraisals"
    __table_args__ = (
        UniqueConstraint("teacher_id", "cycle_id", name="uq_appraisal_teacher_cycle"),
        {"sqlite_autoincrement": True}
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    teacher_id: int = Field(foreign_key="users.id", nullable=False, index=True)
    cycle_id: int = Field(foreign_key="appraisal_cycles.id", nullable=False, index=True)
    department: Optional[str] = Field(default=None, max_length=100, index=True)
    status: AppraisalStatus = Field(
        default=AppraisalStatus.DRAFT,
        sa_column=Column(
            SQLEnum(AppraisalStatus, name="appraisal_status"), nullable=False, index=True
        )
    )
    parts: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    totals: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    version: int = Field(default=1, nullable=False)

    submitted_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    locked_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    teacher: "User" = Relationship(
        back_populates="appraisals",
        sa_relationship_kwargs={"foreign_keys": "Appraisal.teacher_id"}
    )
    cycle: "AppraisalCycle" = Relationship(back_populates="appraisals")
    history: List["AppraisalHistory"] = Relationship(
        back_populates="appraisal",
        sa_relationship_kwargs={
            "order_by": "AppraisalHistory.sequence",
            "cascade": "all, delete-orphan",
        }
    )

    def __repr__(self) -> str:
        return f"<Appraisal(id={self.id}, teacher_id={self.teacher_id}, cycle_id={self.cycle_id}, status={self.status})>"

    @property
    def is_editable(self) -> bool:
        """Only drafts accept part saves."""
        return self.status == AppraisalStatus.DRAFT

    @property
    def overall_score(self) -> float:
        """Get overall score from stored totals."""
        return float((self.totals or {}).get("overall", {}).get("score", 0))
