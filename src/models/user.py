"""User model as resolved by the identity provider."""

from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Column, Relationship
from sqlalchemy import Enum as SQLEnum

from .base import BaseModel
from .enums import UserRole

if TYPE_CHECKING:
    from .appraisal import Appraisal


class User(BaseModel, SQLModel, table=True):
    """Staff member taking part in, or reviewing, appraisals."""

    __tablename__ = "users"
    __table_args__ = ({"sqlite_autoincrement": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_no: Optional[str] = Field(default=None, max_length=20, index=True)
    name: str = Field(max_length=255, nullable=False)
    email: str = Field(max_length=255, unique=True, nullable=False, index=True)
    role: UserRole = Field(
        sa_column=Column(SQLEnum(UserRole, name="user_role"), nullable=False)
    )
    department: Optional[str] = Field(default=None, max_length=100, index=True)
    designation: Optional[str] = Field(default=None, max_length=100)
    is_active: bool = Field(default=True)

    appraisals: List["Appraisal"] = Relationship(
        back_populates="teacher",
        sa_relationship_kwargs={"foreign_keys": "Appraisal.teacher_id"}
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"

    def has_role(self, *roles: UserRole) -> bool:
        """Check if user has any of the given roles."""
        return self.role in roles
