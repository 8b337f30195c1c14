"""Access policy for appraisals.

Pure predicates over ``(actor, appraisal)``. Nothing here touches the
database; the workflow service and read paths call these after loading.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from src.models.appraisal import Appraisal
from src.models.enums import AppraisalStatus, UserRole, WorkflowAction
from src.models.user import User


# Scope an actor role must satisfy for a transition
OWNER = "owner"
DEPARTMENT = "department"
ANY = "any"

# Roles that may see every appraisal
INSTITUTION_WIDE_ROLES = frozenset({UserRole.IQAC, UserRole.PRINCIPAL, UserRole.ADMIN})


@dataclass(frozen=True)
class TransitionRule:
    """One row of the workflow transition table."""
    from_status: AppraisalStatus
    action: WorkflowAction
    to_status: AppraisalStatus
    actors: Mapping[UserRole, str]


_RULES: List[TransitionRule] = [
    TransitionRule(AppraisalStatus.DRAFT, WorkflowAction.SUBMIT, AppraisalStatus.SUBMITTED,
                   {UserRole.TEACHER: OWNER}),
    TransitionRule(AppraisalStatus.SUBMITTED, WorkflowAction.REVIEW, AppraisalStatus.HOD_REVIEWED,
                   {UserRole.HOD: DEPARTMENT}),
    TransitionRule(AppraisalStatus.SUBMITTED, WorkflowAction.REJECT, AppraisalStatus.REJECTED,
                   {UserRole.HOD: DEPARTMENT}),
    TransitionRule(AppraisalStatus.HOD_REVIEWED, WorkflowAction.REVIEW, AppraisalStatus.IQAC_REVIEWED,
                   {UserRole.IQAC: ANY}),
    TransitionRule(AppraisalStatus.HOD_REVIEWED, WorkflowAction.REJECT, AppraisalStatus.REJECTED,
                   {UserRole.IQAC: ANY}),
    TransitionRule(AppraisalStatus.IQAC_REVIEWED, WorkflowAction.APPROVE, AppraisalStatus.APPROVED,
                   {UserRole.PRINCIPAL: ANY}),
    TransitionRule(AppraisalStatus.IQAC_REVIEWED, WorkflowAction.REJECT, AppraisalStatus.REJECTED,
                   {UserRole.PRINCIPAL: ANY}),
    TransitionRule(AppraisalStatus.REJECTED, WorkflowAction.REOPEN, AppraisalStatus.DRAFT,
                   {UserRole.TEACHER: OWNER, UserRole.ADMIN: ANY}),
    TransitionRule(AppraisalStatus.APPROVED, WorkflowAction.LOCK, AppraisalStatus.LOCKED,
                   {UserRole.ADMIN: ANY}),
]

TRANSITIONS: Dict[Tuple[AppraisalStatus, WorkflowAction], TransitionRule] = {
    (rule.from_status, rule.action): rule for rule in _RULES
}


def is_owner(actor: Optional[User], appraisal: Appraisal) -> bool:
    return actor is not None and actor.id == appraisal.teacher_id


def is_same_department(actor: Optional[User], appraisal: Appraisal) -> bool:
    """Strict equality; a missing department never matches."""
    return (
        actor is not None
        and actor.department is not None
        and actor.department == appraisal.department
    )


def can_view(actor: Optional[User], appraisal: Appraisal) -> bool:
    """Owner, institution-wide roles, or the HOD of the appraisal's department."""
    if actor is None:
        return False
    if is_owner(actor, appraisal):
        return True
    if actor.role in INSTITUTION_WIDE_ROLES:
        return True
    return actor.role == UserRole.HOD and is_same_department(actor, appraisal)


def can_edit(actor: Optional[User], appraisal: Appraisal) -> bool:
    """Only the owning teacher, only while the appraisal is a draft."""
    return (
        can_view(actor, appraisal)
        and appraisal.is_editable
        and is_owner(actor, appraisal)
    )


def resolve_transition(
    status: AppraisalStatus, action: WorkflowAction
) -> Optional[TransitionRule]:
    """Look up the table row for ``(status, action)``."""
    return TRANSITIONS.get((AppraisalStatus(status), WorkflowAction(action)))


def actor_satisfies(rule: TransitionRule, actor: Optional[User], appraisal: Appraisal) -> bool:
    """Check the actor's role and its scope against a table row."""
    if actor is None:
        return False
    scope = rule.actors.get(actor.role)
    if scope is None:
        return False
    if scope == OWNER:
        return is_owner(actor, appraisal)
    if scope == DEPARTMENT:
        return is_same_department(actor, appraisal)
    return True


def can_transition(actor: Optional[User], appraisal: Appraisal, action: WorkflowAction) -> bool:
    if actor is None:
        return False
    if WorkflowAction(action) == WorkflowAction.OVERRIDE:
        return actor.role == UserRole.ADMIN
    rule = resolve_transition(appraisal.status, action)
    return rule is not None and actor_satisfies(rule, actor, appraisal)


def available_actions(actor: Optional[User], appraisal: Appraisal) -> List[WorkflowAction]:
    """Table actions the actor may take on the appraisal right now."""
    return [
        rule.action
        for rule in _RULES
        if rule.from_status == appraisal.status and actor_satisfies(rule, actor, appraisal)
    ]
