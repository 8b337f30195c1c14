"""Appraisal workflow service.

Owns the appraisal lifecycle: part saves while in draft, status
transitions through the review chain, totals verification and the audit
trail. Collaborators are injected so the service can run against any
store, identity source or notifier.
"""

import copy
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from src.auth.identity import IdentityProvider
from src.auth.policy import (
    available_actions,
    can_edit,
    can_transition,
    can_view,
    resolve_transition,
)
from src.core.exceptions import (
    AppraisalNotFoundError,
    AppraisalValidationError,
    ConflictError,
    CycleNotFoundError,
    DuplicateError,
    ForbiddenError,
    InvalidStateError,
    InvalidTransitionError,
    UserNotFoundError,
)
from src.models.appraisal import Appraisal
from src.models.appraisal_history import AppraisalHistory
from src.models.base import utcnow
from src.models.enums import AppraisalStatus, PartKey, UserRole, WorkflowAction
from src.models.user import User
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.schemas.appraisal import (
    AppraisalDetailResponse,
    AppraisalFilterParams,
    AppraisalResponse,
    GradeResponse,
    PartView,
)
from src.schemas.appraisal_cycle import AppraisalCycleResponse
from src.schemas.parts import parse_part_key, validate_part_values
from src.schemas.user import UserResponse
from src.services.calculators import (
    PART_MAXIMA,
    calculate,
    compute_totals,
    grade_for,
    percentage,
)
from src.services.notification import NotificationEmitter, TransitionEvent
from src.utils.messages import get_message

logger = logging.getLogger(__name__)


# Statuses waiting on each role
REVIEW_QUEUES: Dict[UserRole, Tuple[AppraisalStatus, ...]] = {
    UserRole.TEACHER: (AppraisalStatus.REJECTED,),
    UserRole.HOD: (AppraisalStatus.SUBMITTED,),
    UserRole.IQAC: (AppraisalStatus.HOD_REVIEWED,),
    UserRole.PRINCIPAL: (AppraisalStatus.IQAC_REVIEWED,),
    UserRole.ADMIN: (AppraisalStatus.APPROVED, AppraisalStatus.REJECTED),
}


class AppraisalWorkflowService:
    """Service for appraisal workflow operations."""

    def __init__(
        self,
        appraisal_repo: AppraisalRepository,
        identity: IdentityProvider,
        cycle_repo: AppraisalCycleRepository,
        notifier: NotificationEmitter,
    ):
        self.appraisal_repo = appraisal_repo
        self.identity = identity
        self.cycle_repo = cycle_repo
        self.notifier = notifier

    # ===== HELPERS =====

    async def _require_actor(self) -> User:
        actor = await self.identity.get_acting_user()
        if actor is None:
            raise ForbiddenError(get_message("appraisal", "forbidden_unauthenticated"))
        return actor

    async def _load(self, appraisal_id: int) -> Appraisal:
        appraisal = await self.appraisal_repo.get(appraisal_id)
        if not appraisal:
            raise AppraisalNotFoundError(appraisal_id)
        return appraisal

    @staticmethod
    def _check_version(appraisal: Appraisal, expected_version: Optional[int]) -> None:
        if expected_version is not None and expected_version != appraisal.version:
            raise ConflictError(appraisal.id, expected=expected_version, actual=appraisal.version)

    async def _notify(self, event: TransitionEvent) -> None:
        """Inform the notifier; failures are logged and never propagated."""
        try:
            await self.notifier.notify(event)
        except Exception:
            logger.exception(
                f"Notification failed for appraisal {event.appraisal_id} ({event.new_status.value})"
            )

    # ===== READ OPERATIONS =====

    async def get_appraisal(self, appraisal_id: int) -> Appraisal:
        """Get appraisal by ID with access control."""
        appraisal = await self._load(appraisal_id)
        actor = await self._require_actor()
        if not can_view(actor, appraisal):
            raise ForbiddenError(get_message("appraisal", "forbidden_view"))
        return appraisal

    async def get_current_appraisal(self, user_id: int) -> Optional[Appraisal]:
        """Get a user's appraisal in the open cycle, if any."""
        actor = await self._require_actor()
        cycle = await self.cycle_repo.get_open()
        if cycle is None:
            return None

        appraisal = await self.appraisal_repo.find_by_user_and_cycle(user_id, cycle.id)
        if appraisal is None:
            return None
        if not can_view(actor, appraisal):
            raise ForbiddenError(get_message("appraisal", "forbidden_view"))
        return appraisal

    async def get_full_appraisal_data(self, appraisal_id: int) -> AppraisalDetailResponse:
        """Get appraisal with teacher, cycle and a resolved view of every part."""
        appraisal = await self.get_appraisal(appraisal_id)
        actor = await self._require_actor()

        parts = appraisal.parts or {}
        labels = PartKey.get_display_names()
        views = []
        for key in PartKey:
            saved = key.value in parts
            if saved:
                result = calculate(key, parts[key.value])
                score, maximum, subtotals = result.score, result.max, result.subtotals
            else:
                score, maximum, subtotals = 0.0, PART_MAXIMA[key.value], {}
            views.append(PartView(
                key=key,
                label=labels[key.value],
                saved=saved,
                values=parts.get(key.value) or {},
                score=score,
                max=maximum,
                subtotals=subtotals,
            ))

        pct = percentage(appraisal.totals or {})
        grade = grade_for(pct)
        actions = available_actions(actor, appraisal)
        if actor.role == UserRole.ADMIN:
            actions.append(WorkflowAction.OVERRIDE)

        return AppraisalDetailResponse(
            appraisal=AppraisalResponse.model_validate(appraisal),
            teacher=UserResponse.model_validate(appraisal.teacher),
            cycle=AppraisalCycleResponse.model_validate(appraisal.cycle),
            parts=views,
            percentage=pct,
            grade=GradeResponse(grade=grade.grade, label=grade.label),
            available_actions=actions,
        )

    async def list_appraisals(self, filters: AppraisalFilterParams) -> Tuple[List[Appraisal], int]:
        """List appraisals visible to the acting user."""
        actor = await self._require_actor()

        if actor.role == UserRole.TEACHER:
            return await self.appraisal_repo.list_filtered(filters, teacher_id=actor.id)
        if actor.role == UserRole.HOD:
            if actor.department is None:
                return [], 0
            return await self.appraisal_repo.list_filtered(filters, department=actor.department)
        return await self.appraisal_repo.list_filtered(filters)

    async def list_review_queue(self) -> List[Appraisal]:
        """Appraisals waiting on the acting user's next action."""
        actor = await self._require_actor()
        statuses = REVIEW_QUEUES.get(actor.role, ())

        if actor.role == UserRole.HOD:
            if actor.department is None:
                return []
            return await self.appraisal_repo.list_by_statuses(statuses, department=actor.department)
        if actor.role == UserRole.TEACHER:
            return await self.appraisal_repo.list_by_statuses(statuses, teacher_id=actor.id)
        return await self.appraisal_repo.list_by_statuses(statuses)

    # ===== MUTATING OPERATIONS =====

    async def provision_appraisal(self, teacher_id: int, cycle_id: Optional[int] = None) -> Appraisal:
        """Create an empty draft appraisal for a teacher in a cycle.

        Only administrators provision. The cycle defaults to the open one
        and must be open; each teacher has at most one appraisal per cycle.
        """
        actor = await self._require_actor()
        if actor.role != UserRole.ADMIN:
            raise ForbiddenError(get_message("appraisal", "forbidden_provision"))

        teacher = await self.identity.get_user(teacher_id)
        if teacher is None:
            raise UserNotFoundError(teacher_id)
        if teacher.role != UserRole.TEACHER:
            raise AppraisalValidationError(get_message("appraisal", "not_a_teacher", user_id=teacher_id))

        if cycle_id is not None:
            cycle = await self.cycle_repo.get_by_id(cycle_id)
        else:
            cycle = await self.cycle_repo.get_open()
        if cycle is None:
            raise CycleNotFoundError(cycle_id)
        if not cycle.is_open:
            raise AppraisalValidationError(get_message("appraisal", "cycle_closed", cycle_id=cycle.id))

        resolved_cycle_id = cycle.id
        duplicate_message = get_message(
            "appraisal", "duplicate", teacher_id=teacher_id, cycle_id=resolved_cycle_id
        )
        if await self.appraisal_repo.find_by_user_and_cycle(teacher_id, resolved_cycle_id):
            raise DuplicateError(duplicate_message)

        admin_id = actor.id
        try:
            appraisal = await self.appraisal_repo.create(teacher, cycle, created_by=admin_id)
        except IntegrityError:
            raise DuplicateError(duplicate_message) from None

        logger.info(
            f"Appraisal {appraisal.id} provisioned for teacher {teacher_id} "
            f"in cycle {resolved_cycle_id} by user {admin_id}"
        )
        return appraisal

    async def save_part(
        self,
        appraisal_id: int,
        part_key: Any,
        raw_values: Any,
        expected_version: Optional[int] = None,
    ) -> Appraisal:
        """Replace one part's values and update its total and the overall total."""
        appraisal = await self._load(appraisal_id)
        if not appraisal.is_editable:
            raise InvalidStateError(appraisal.status.value)

        actor = await self.identity.get_acting_user()
        if not can_edit(actor, appraisal):
            raise ForbiddenError(get_message("appraisal", "forbidden_edit"))

        key = parse_part_key(part_key)
        values = validate_part_values(key, raw_values)
        self._check_version(appraisal, expected_version)

        parts = copy.deepcopy(appraisal.parts or {})
        parts[key.value] = values

        appraisal.parts = parts
        appraisal.totals = compute_totals(parts)
        appraisal.updated_by = actor.id

        saved = await self.appraisal_repo.save(appraisal, expected_version)
        logger.info(
            f"Part {key.value} of appraisal {saved.id} saved by user {actor.id}: "
            f"{saved.totals[key.value]['score']}/{saved.totals[key.value]['max']}, "
            f"overall {saved.totals['overall']['score']}"
        )
        return saved

    async def recalculate_totals(self, appraisal_id: int) -> Dict[str, Dict[str, float]]:
        """Verify stored totals against the parts.

        Matching totals are returned untouched. A draft with drifted totals
        is repaired; any other status keeps its stored totals and the drift
        is logged.
        """
        appraisal = await self.get_appraisal(appraisal_id)
        expected = compute_totals(appraisal.parts)
        if expected == appraisal.totals:
            return appraisal.totals

        if not appraisal.is_editable:
            logger.warning(
                f"Totals drift on appraisal {appraisal.id} in status {appraisal.status.value}: "
                f"stored {appraisal.totals}, computed {expected}; stored totals kept"
            )
            return appraisal.totals

        logger.info(f"Repairing totals of draft appraisal {appraisal.id}")
        appraisal.totals = expected
        saved = await self.appraisal_repo.save(appraisal)
        return saved.totals

    async def transition(
        self,
        appraisal_id: int,
        action: WorkflowAction,
        actor_id: int,
        comment: Optional[str] = None,
        target_status: Optional[AppraisalStatus] = None,
        expected_version: Optional[int] = None,
    ) -> Appraisal:
        """Move an appraisal to its next status and append one history entry."""
        appraisal = await self._load(appraisal_id)
        actor = await self.identity.get_user(actor_id)
        if actor is None:
            raise UserNotFoundError(actor_id)

        current = appraisal.status
        try:
            action = WorkflowAction(action)
        except ValueError:
            raise InvalidTransitionError(
                get_message("appraisal", "unknown_action", action=action, status=current.value)
            ) from None
        rule = None
        if action != WorkflowAction.OVERRIDE:
            rule = resolve_transition(current, action)
            if rule is None:
                raise InvalidTransitionError(
                    get_message("appraisal", "invalid_transition", action=action.value, status=current.value)
                )

        acting_user = await self.identity.get_acting_user()
        if acting_user is None or acting_user.id != actor.id or not can_transition(actor, appraisal, action):
            raise ForbiddenError(
                get_message(
                    "appraisal", "forbidden_action",
                    role=actor.role.value, action=action.value, status=current.value,
                )
            )

        if rule is not None:
            target = rule.to_status
        else:
            if not comment or not comment.strip():
                raise AppraisalValidationError(get_message("appraisal", "override_comment_required"))
            if target_status is None:
                raise AppraisalValidationError(get_message("appraisal", "override_target_required"))
            try:
                target = AppraisalStatus(target_status)
            except ValueError:
                raise AppraisalValidationError(
                    get_message("appraisal", "override_target_invalid", status=target_status)
                ) from None
            if target == current:
                raise InvalidTransitionError(
                    get_message("appraisal", "override_same_status", status=current.value)
                )

        self._check_version(appraisal, expected_version)

        now = utcnow()
        if action == WorkflowAction.SUBMIT:
            appraisal.totals = compute_totals(appraisal.parts)
            appraisal.submitted_at = now
        if target == AppraisalStatus.APPROVED:
            appraisal.approved_at = now
        if target == AppraisalStatus.LOCKED:
            appraisal.locked_at = now

        last_sequence = appraisal.history[-1].sequence if appraisal.history else 0
        appraisal.history.append(AppraisalHistory(
            appraisal_id=appraisal.id,
            sequence=last_sequence + 1,
            action=action.value,
            from_status=current,
            to_status=target,
            actor_id=actor.id,
            actor_role=actor.role,
            timestamp=now,
            comment=comment,
        ))
        appraisal.status = target
        appraisal.updated_by = actor.id

        saved = await self.appraisal_repo.save(appraisal, expected_version)
        logger.info(
            f"Appraisal {saved.id} {action.value}: {current.value} -> {target.value} "
            f"by user {actor.id} ({actor.role.value})"
        )

        await self._notify(TransitionEvent(
            appraisal_id=saved.id,
            new_status=target,
            actor_role=actor.role,
            action=action,
            previous_status=current,
        ))
        return saved
