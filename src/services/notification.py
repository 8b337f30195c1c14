"""Notification emitter informed of workflow transitions.

Delivery is out of scope for this service; emitters here only hand the
event over. The workflow never depends on the result.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from src.core.config import settings
from src.models.base import utcnow
from src.models.enums import AppraisalStatus, UserRole, WorkflowAction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionEvent:
    appraisal_id: int
    new_status: AppraisalStatus
    actor_role: UserRole
    action: WorkflowAction
    previous_status: Optional[AppraisalStatus] = None
    occurred_at: datetime = field(default_factory=utcnow)


class NotificationEmitter(Protocol):
    async def notify(self, event: TransitionEvent) -> None:
        ...


class LoggingNotificationEmitter:
    """Writes each transition event to the application log."""

    async def notify(self, event: TransitionEvent) -> None:
        logger.info(
            f"Appraisal {event.appraisal_id} moved {event.previous_status.value if event.previous_status else '-'}"
            f" -> {event.new_status.value} by {event.actor_role.value} ({event.action.value})"
        )


class NullNotificationEmitter:
    """Discards events."""

    async def notify(self, event: TransitionEvent) -> None:
        return None


def get_notification_emitter() -> NotificationEmitter:
    """Emitter selected by ``NOTIFICATIONS_ENABLED``."""
    if settings.NOTIFICATIONS_ENABLED:
        return LoggingNotificationEmitter()
    return NullNotificationEmitter()
