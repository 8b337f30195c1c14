"""Appraisal history model - append-only audit trail of transitions."""

from typing import Optional, TYPE_CHECKING
from datetime import datetime
from sqlmodel import Field, SQLModel, Relationship, UniqueConstraint, Column
from sqlalchemy import DateTime, Enum as SQLEnum

from .base import utcnow
from .enums import AppraisalStatus, UserRole

if TYPE_CHECKING:
    from .appraisal import Appraisal


class AppraisalHistory(SQLModel, table=True):
    """One status transition; rows are inserted and never updated."""

    __tablename__ = "appraisal_history"
    __table_args__ = (
        UniqueConstraint("appraisal_id", "sequence", name="uq_appraisal_history_sequence"),
        {"sqlite_autoincrement": True}
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    appraisal_id: int = Field(foreign_key="appraisals.id", nullable=False, index=True)
    sequence: int = Field(nullable=False)
    action: str = Field(max_length=20, nullable=False)
    from_status: AppraisalStatus = Field(
        sa_column=Column(SQLEnum(AppraisalStatus, name="appraisal_status"), nullable=False)
    )
    to_status: AppraisalStatus = Field(
        sa_column=Column(SQLEnum(AppraisalStatus, name="appraisal_status"), nullable=False)
    )
    actor_id: int = Field(foreign_key="users.id", nullable=False)
    actor_role: UserRole = Field(
        sa_column=Column(SQLEnum(UserRole, name="user_role"), nullable=False)
    )
    timestamp: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=True)
    )
    comment: Optional[str] = Field(default=None, max_length=2000)

    appraisal: "Appraisal" = Relationship(back_populates="history")

    def __repr__(self) -> str:
        return f"<AppraisalHistory(appraisal_id={self.appraisal_id}, #{self.sequence}, {self.from_status}->{self.to_status})>"
