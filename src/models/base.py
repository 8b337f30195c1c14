"""Base model mixins shared by all tables."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp, as stored in every table."""
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """Creation and update timestamps."""

    created_at: datetime = Field(
        default_factory=utcnow, nullable=False, sa_type=DateTime(timezone=True)
    )
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class AuditMixin(SQLModel):
    """Who created or last updated the row."""

    created_by: Optional[int] = Field(default=None)
    updated_by: Optional[int] = Field(default=None)


class BaseModel(TimestampMixin, AuditMixin):
    """Base class combining timestamps and audit columns."""

    pass
