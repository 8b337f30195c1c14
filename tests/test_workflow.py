import logging
from datetime import date

import pytest

from conftest import FailingEmitter, force_status, force_totals
from src.auth.policy import _RULES, can_transition
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
from src.models.enums import AppraisalStatus, PartKey, UserRole, WorkflowAction
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.schemas.appraisal import AppraisalFilterParams
from src.services.calculators import OVERALL_MAX, compute_totals

PART_D = {
    "attendance": 4, "responsibility": 3, "honesty": 4,
    "teamwork": 2, "inclusiveness": 4, "conduct": 3,
}
PART_C = {
    "keyContribution": {"contribution": "Coordinated NAAC criterion 2", "selfMarks": 18},
    "committeeRoles": [{"committee": "Exam Cell", "role": "Member", "selfMarks": 10}],
    "studentFeedback": {"averageRating": 4.2, "totalResponses": 64, "courseName": "DBMS"},
}
PART_B = {
    "researchJournals": [
        {"title": "Graph indexing at scale", "journal": "IJCA", "selfMarks": 8},
        {"title": "Query caching", "journal": "JISE", "selfMarks": 9},
    ],
    "seminars": [{"title": "FDP on ML", "selfMarks": 4}],
}

# A user key from the fixture that satisfies each role's scope on the teacher's appraisal
ROLE_ACTOR = {
    UserRole.TEACHER: "teacher",
    UserRole.HOD: "hod",
    UserRole.IQAC: "iqac",
    UserRole.PRINCIPAL: "principal",
    UserRole.ADMIN: "admin",
}


async def reload(session, appraisal_id):
    return await AppraisalRepository(session).get(appraisal_id)


async def submit(service_for, users, appraisal_id):
    return await service_for(users["teacher"]).transition(
        appraisal_id, WorkflowAction.SUBMIT, users["teacher"].id
    )


class TestSavePart:
    @pytest.mark.asyncio
    async def test_save_updates_part_and_overall(self, service_for, users, appraisal):
        saved = await service_for(users["teacher"]).save_part(appraisal.id, "D", PART_D)

        assert saved.parts["D"]["attendance"] == 4
        assert saved.totals["D"] == {"score": 20, "max": 25}
        assert saved.totals["overall"] == {"score": 20, "max": OVERALL_MAX}
        assert saved.version == 2

    @pytest.mark.asyncio
    async def test_overall_is_sum_of_saved_parts(self, service_for, users, appraisal):
        service = service_for(users["teacher"])
        await service.save_part(appraisal.id, PartKey.D, PART_D)
        await service.save_part(appraisal.id, PartKey.C, PART_C)
        saved = await service.save_part(appraisal.id, PartKey.B, PART_B)

        part_scores = [entry["score"] for key, entry in saved.totals.items() if key != "overall"]
        assert saved.totals["overall"]["score"] == round(sum(part_scores), 2)
        assert saved.totals == compute_totals(saved.parts)
        assert saved.version == 4

    @pytest.mark.asyncio
    async def test_resave_replaces_part(self, service_for, users, appraisal):
        service = service_for(users["teacher"])
        await service.save_part(appraisal.id, "D", PART_D)
        saved = await service.save_part(appraisal.id, "D", {"attendance": 5})

        assert saved.parts["D"]["responsibility"] is None
        assert saved.totals["D"]["score"] == 5
        assert saved.totals["overall"]["score"] == 5

    @pytest.mark.asyncio
    async def test_out_of_range_marks_are_stored_and_clamped(self, service_for, users, appraisal):
        saved = await service_for(users["teacher"]).save_part(
            appraisal.id, "D", {"responsibility": 7}
        )
        assert saved.parts["D"]["responsibility"] == 7
        assert saved.totals["D"]["score"] == 4

    @pytest.mark.asyncio
    async def test_descriptive_part_text_is_sanitised(self, service_for, users, appraisal):
        saved = await service_for(users["teacher"]).save_part(
            appraisal.id, "E", {"selfSummary": "<p>Mentored <b>12</b> projects</p><script>x()</script>"}
        )
        assert "<script>" not in saved.parts["E"]["selfSummary"]
        assert saved.totals["E"] == {"score": 0, "max": 0}

    @pytest.mark.asyncio
    async def test_unknown_part(self, session, service_for, users, appraisal):
        with pytest.raises(AppraisalValidationError):
            await service_for(users["teacher"]).save_part(appraisal.id, "Z", {})
        assert (await reload(session, appraisal.id)).version == 1

    @pytest.mark.asyncio
    async def test_malformed_values(self, session, service_for, users, appraisal):
        with pytest.raises(AppraisalValidationError):
            await service_for(users["teacher"]).save_part(appraisal.id, "D", {"attendance": "good"})
        with pytest.raises(AppraisalValidationError):
            await service_for(users["teacher"]).save_part(appraisal.id, "D", {"punctuality": 3})
        assert (await reload(session, appraisal.id)).parts == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_key", ["other_teacher", "hod", "iqac", "principal", "admin"])
    async def test_only_owner_edits(self, session, service_for, users, appraisal, user_key):
        with pytest.raises(ForbiddenError):
            await service_for(users[user_key]).save_part(appraisal.id, "D", PART_D)
        assert (await reload(session, appraisal.id)).version == 1

    @pytest.mark.asyncio
    async def test_unknown_appraisal(self, service_for, users):
        with pytest.raises(AppraisalNotFoundError):
            await service_for(users["teacher"]).save_part(9999, "D", PART_D)

    @pytest.mark.asyncio
    async def test_state_checked_before_permission(self, session, service_for, users, appraisal):
        await force_status(session, appraisal.id, AppraisalStatus.SUBMITTED)
        with pytest.raises(InvalidStateError):
            await service_for(users["hod"]).save_part(appraisal.id, "D", PART_D)

    @pytest.mark.asyncio
    async def test_stale_version(self, session, service_for, users, appraisal):
        service = service_for(users["teacher"])
        await service.save_part(appraisal.id, "D", PART_D, expected_version=1)
        with pytest.raises(ConflictError):
            await service.save_part(appraisal.id, "D", {"attendance": 1}, expected_version=1)

        current = await reload(session, appraisal.id)
        assert current.version == 2
        assert current.totals["D"]["score"] == 20

    @pytest.mark.asyncio
    async def test_overall_counts_parts_missing_from_stored_totals(self, session, service_for, users, appraisal):
        appraisal_id = appraisal.id
        service = service_for(users["teacher"])
        await service.save_part(appraisal_id, "B", PART_B)
        saved = await service.save_part(appraisal_id, "D", PART_D)
        await force_totals(session, appraisal_id, {k: v for k, v in saved.totals.items() if k != "B"})

        saved = await service.save_part(appraisal_id, "D", PART_D)

        assert set(saved.totals) == {"B", "D", "overall"}
        assert saved.totals == compute_totals(saved.parts)


class TestTransitions:
    @pytest.mark.asyncio
    async def test_hod_review_scoped_to_department(self, session, service_for, users, appraisal):
        await service_for(users["teacher"]).save_part(appraisal.id, "D", PART_D)
        submitted = await submit(service_for, users, appraisal.id)
        assert submitted.status == AppraisalStatus.SUBMITTED
        assert submitted.submitted_at is not None
        assert len(submitted.history) == 1

        with pytest.raises(ForbiddenError):
            await service_for(users["other_hod"]).transition(
                appraisal.id, WorkflowAction.REVIEW, users["other_hod"].id
            )
        unchanged = await reload(session, appraisal.id)
        assert unchanged.status == AppraisalStatus.SUBMITTED
        assert len(unchanged.history) == 1

        reviewed = await service_for(users["hod"]).transition(
            appraisal.id, WorkflowAction.REVIEW, users["hod"].id, comment="Verified publications"
        )
        assert reviewed.status == AppraisalStatus.HOD_REVIEWED
        assert len(reviewed.history) == 2
        entry = reviewed.history[-1]
        assert entry.sequence == 2
        assert entry.from_status == AppraisalStatus.SUBMITTED
        assert entry.to_status == AppraisalStatus.HOD_REVIEWED
        assert entry.actor_id == users["hod"].id
        assert entry.actor_role == UserRole.HOD
        assert entry.comment == "Verified publications"

    @pytest.mark.asyncio
    async def test_full_chain_to_locked(self, service_for, users, appraisal, emitter):
        await submit(service_for, users, appraisal.id)
        steps = [
            ("hod", WorkflowAction.REVIEW, AppraisalStatus.HOD_REVIEWED),
            ("iqac", WorkflowAction.REVIEW, AppraisalStatus.IQAC_REVIEWED),
            ("principal", WorkflowAction.APPROVE, AppraisalStatus.APPROVED),
            ("admin", WorkflowAction.LOCK, AppraisalStatus.LOCKED),
        ]
        for user_key, action, expected in steps:
            result = await service_for(users[user_key]).transition(appraisal.id, action, users[user_key].id)
            assert result.status == expected

        assert [entry.sequence for entry in result.history] == [1, 2, 3, 4, 5]
        assert result.approved_at is not None
        assert result.locked_at is not None
        assert [event.new_status for event in emitter.events] == [
            AppraisalStatus.SUBMITTED,
            AppraisalStatus.HOD_REVIEWED,
            AppraisalStatus.IQAC_REVIEWED,
            AppraisalStatus.APPROVED,
            AppraisalStatus.LOCKED,
        ]
        assert emitter.events[-1].actor_role == UserRole.ADMIN
        assert emitter.events[-1].previous_status == AppraisalStatus.APPROVED

    @pytest.mark.asyncio
    async def test_reject_reopen_resubmit(self, service_for, users, appraisal):
        await submit(service_for, users, appraisal.id)
        rejected = await service_for(users["hod"]).transition(
            appraisal.id, WorkflowAction.REJECT, users["hod"].id, comment="Attach evidence for Part B"
        )
        assert rejected.status == AppraisalStatus.REJECTED

        reopened = await service_for(users["teacher"]).transition(
            appraisal.id, WorkflowAction.REOPEN, users["teacher"].id
        )
        assert reopened.status == AppraisalStatus.DRAFT

        await service_for(users["teacher"]).save_part(appraisal.id, "B", PART_B)
        resubmitted = await submit(service_for, users, appraisal.id)
        assert resubmitted.status == AppraisalStatus.SUBMITTED
        assert [entry.action for entry in resubmitted.history] == ["submit", "reject", "reopen", "submit"]

    @pytest.mark.asyncio
    async def test_submit_recomputes_totals(self, session, service_for, users, appraisal):
        await service_for(users["teacher"]).save_part(appraisal.id, "D", PART_D)
        await force_totals(session, appraisal.id, {"overall": {"score": 999, "max": OVERALL_MAX}})

        submitted = await submit(service_for, users, appraisal.id)
        assert submitted.totals["overall"]["score"] == 20

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", list(AppraisalStatus))
    async def test_illegal_moves_change_nothing(self, session, service_for, users, appraisal, status):
        await force_status(session, appraisal.id, status)
        loaded = await reload(session, appraisal.id)

        for user in users.values():
            for action in WorkflowAction:
                if action == WorkflowAction.OVERRIDE or can_transition(user, loaded, action):
                    continue
                with pytest.raises((InvalidTransitionError, ForbiddenError)):
                    await service_for(user).transition(appraisal.id, action, user.id)

        after = await reload(session, appraisal.id)
        assert after.status == status
        assert after.version == 1
        assert after.history == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "rule", _RULES, ids=lambda rule: f"{rule.from_status.value}-{rule.action.value}"
    )
    async def test_each_legal_move_appends_one_entry(self, session, service_for, users, appraisal, rule):
        await force_status(session, appraisal.id, rule.from_status)
        user = users[ROLE_ACTOR[next(iter(rule.actors))]]

        result = await service_for(user).transition(appraisal.id, rule.action, user.id)

        assert result.status == rule.to_status
        assert result.version == 2
        assert len(result.history) == 1
        entry = result.history[0]
        assert (entry.from_status, entry.to_status) == (rule.from_status, rule.to_status)
        assert entry.action == rule.action.value
        assert entry.actor_role == user.role

    @pytest.mark.asyncio
    async def test_unlisted_action_is_invalid_transition(self, service_for, users, appraisal):
        with pytest.raises(InvalidTransitionError):
            await service_for(users["principal"]).transition(
                appraisal.id, WorkflowAction.APPROVE, users["principal"].id
            )

    @pytest.mark.asyncio
    async def test_unknown_action_name(self, session, service_for, users, appraisal):
        with pytest.raises(InvalidTransitionError) as exc_info:
            await service_for(users["teacher"]).transition(appraisal.id, "publish", users["teacher"].id)
        assert "publish" in exc_info.value.message
        assert (await reload(session, appraisal.id)).status == AppraisalStatus.DRAFT

    @pytest.mark.asyncio
    async def test_actor_must_be_acting_user(self, service_for, users, appraisal):
        with pytest.raises(ForbiddenError):
            await service_for(users["hod"]).transition(
                appraisal.id, WorkflowAction.SUBMIT, users["teacher"].id
            )

    @pytest.mark.asyncio
    async def test_unauthenticated(self, service_for, users, appraisal):
        with pytest.raises(ForbiddenError):
            await service_for(None).transition(appraisal.id, WorkflowAction.SUBMIT, users["teacher"].id)

    @pytest.mark.asyncio
    async def test_unknown_actor(self, service_for, users, appraisal):
        with pytest.raises(UserNotFoundError):
            await service_for(users["teacher"]).transition(appraisal.id, WorkflowAction.SUBMIT, 9999)

    @pytest.mark.asyncio
    async def test_stale_version(self, session, service_for, users, appraisal):
        with pytest.raises(ConflictError):
            await service_for(users["teacher"]).transition(
                appraisal.id, WorkflowAction.SUBMIT, users["teacher"].id, expected_version=3
            )
        current = await reload(session, appraisal.id)
        assert current.status == AppraisalStatus.DRAFT
        assert current.history == []

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_undo(self, session, service_for, users, appraisal, caplog):
        caplog.set_level(logging.ERROR, logger="src.services.appraisal_workflow")
        service = service_for(users["teacher"], notifier=FailingEmitter())

        result = await service.transition(appraisal.id, WorkflowAction.SUBMIT, users["teacher"].id)

        assert result.status == AppraisalStatus.SUBMITTED
        assert (await reload(session, appraisal.id)).status == AppraisalStatus.SUBMITTED
        assert "Notification failed" in caplog.text


class TestTerminalStates:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [AppraisalStatus.APPROVED, AppraisalStatus.REJECTED, AppraisalStatus.LOCKED]
    )
    async def test_parts_and_totals_frozen(self, session, service_for, users, appraisal, status):
        await service_for(users["teacher"]).save_part(appraisal.id, "D", PART_D)
        await force_status(session, appraisal.id, status)
        before = await reload(session, appraisal.id)
        parts, totals, version = dict(before.parts), dict(before.totals), before.version

        with pytest.raises(InvalidStateError):
            await service_for(users["teacher"]).save_part(appraisal.id, "D", {"attendance": 1})

        after = await reload(session, appraisal.id)
        assert after.parts == parts
        assert after.totals == totals
        assert after.version == version


class TestOverride:
    @pytest.mark.asyncio
    async def test_admin_override_with_comment(self, session, service_for, users, appraisal):
        await force_status(session, appraisal.id, AppraisalStatus.LOCKED)
        result = await service_for(users["admin"]).transition(
            appraisal.id,
            WorkflowAction.OVERRIDE,
            users["admin"].id,
            comment="Reopened on Principal's written request",
            target_status=AppraisalStatus.DRAFT,
        )
        assert result.status == AppraisalStatus.DRAFT
        assert result.history[-1].action == "override"
        assert result.history[-1].from_status == AppraisalStatus.LOCKED

    @pytest.mark.asyncio
    async def test_override_needs_comment(self, service_for, users, appraisal):
        with pytest.raises(AppraisalValidationError):
            await service_for(users["admin"]).transition(
                appraisal.id, WorkflowAction.OVERRIDE, users["admin"].id,
                comment="  ", target_status=AppraisalStatus.APPROVED,
            )

    @pytest.mark.asyncio
    async def test_override_needs_target(self, service_for, users, appraisal):
        with pytest.raises(AppraisalValidationError):
            await service_for(users["admin"]).transition(
                appraisal.id, WorkflowAction.OVERRIDE, users["admin"].id, comment="Data fix"
            )

    @pytest.mark.asyncio
    async def test_override_to_unknown_status(self, session, service_for, users, appraisal):
        with pytest.raises(AppraisalValidationError):
            await service_for(users["admin"]).transition(
                appraisal.id, "override", users["admin"].id,
                comment="Data fix", target_status="ARCHIVED",
            )
        assert (await reload(session, appraisal.id)).status == AppraisalStatus.DRAFT

    @pytest.mark.asyncio
    async def test_override_to_same_status(self, service_for, users, appraisal):
        with pytest.raises(InvalidTransitionError):
            await service_for(users["admin"]).transition(
                appraisal.id, WorkflowAction.OVERRIDE, users["admin"].id,
                comment="Data fix", target_status=AppraisalStatus.DRAFT,
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_key", ["teacher", "hod", "iqac", "principal"])
    async def test_override_admin_only(self, service_for, users, appraisal, user_key):
        with pytest.raises(ForbiddenError):
            await service_for(users[user_key]).transition(
                appraisal.id, WorkflowAction.OVERRIDE, users[user_key].id,
                comment="Data fix", target_status=AppraisalStatus.APPROVED,
            )


class TestRecalculate:
    @pytest.mark.asyncio
    async def test_idempotent(self, session, service_for, users, appraisal):
        service = service_for(users["teacher"])
        await service.save_part(appraisal.id, "D", PART_D)

        first = await service.recalculate_totals(appraisal.id)
        second = await service.recalculate_totals(appraisal.id)

        assert first == second
        assert (await reload(session, appraisal.id)).version == 2

    @pytest.mark.asyncio
    async def test_draft_drift_repaired(self, session, service_for, users, appraisal):
        service = service_for(users["teacher"])
        await service.save_part(appraisal.id, "D", PART_D)
        await force_totals(session, appraisal.id, {"overall": {"score": 3, "max": OVERALL_MAX}})

        totals = await service.recalculate_totals(appraisal.id)

        assert totals["overall"]["score"] == 20
        current = await reload(session, appraisal.id)
        assert current.totals == totals
        assert current.version == 3

    @pytest.mark.asyncio
    async def test_drift_after_submission_kept(self, session, service_for, users, appraisal, caplog):
        caplog.set_level(logging.WARNING, logger="src.services.appraisal_workflow")
        await service_for(users["teacher"]).save_part(appraisal.id, "D", PART_D)
        await submit(service_for, users, appraisal.id)
        stale = {"D": {"score": 18, "max": 25}, "overall": {"score": 18, "max": OVERALL_MAX}}
        await force_totals(session, appraisal.id, stale)

        totals = await service_for(users["hod"]).recalculate_totals(appraisal.id)

        assert totals == stale
        assert (await reload(session, appraisal.id)).version == 3
        assert "Totals drift" in caplog.text


class TestReads:
    @pytest.mark.asyncio
    async def test_full_appraisal_data(self, service_for, users, appraisal):
        await service_for(users["teacher"]).save_part(appraisal.id, "D", PART_D)

        detail = await service_for(users["teacher"]).get_full_appraisal_data(appraisal.id)

        assert [view.key for view in detail.parts] == list(PartKey)
        part_d = detail.parts[3]
        assert part_d.saved and part_d.score == 20 and part_d.max == 25
        part_b = detail.parts[1]
        assert not part_b.saved and part_b.max == 120
        assert detail.teacher.id == users["teacher"].id
        assert detail.cycle.is_open
        assert detail.percentage == round(20 / OVERALL_MAX * 100, 2)
        assert detail.grade.grade == "F"
        assert detail.available_actions == [WorkflowAction.SUBMIT]

    @pytest.mark.asyncio
    async def test_admin_sees_override(self, service_for, users, appraisal):
        detail = await service_for(users["admin"]).get_full_appraisal_data(appraisal.id)
        assert detail.available_actions == [WorkflowAction.OVERRIDE]

    @pytest.mark.asyncio
    async def test_view_forbidden_for_colleague(self, service_for, users, appraisal):
        with pytest.raises(ForbiddenError):
            await service_for(users["other_teacher"]).get_appraisal(appraisal.id)
        with pytest.raises(ForbiddenError):
            await service_for(users["other_hod"]).get_appraisal(appraisal.id)

    @pytest.mark.asyncio
    async def test_current_appraisal(self, service_for, users, appraisal):
        current = await service_for(users["teacher"]).get_current_appraisal(users["teacher"].id)
        assert current.id == appraisal.id
        assert await service_for(users["other_teacher"]).get_current_appraisal(
            users["other_teacher"].id
        ) is None

    @pytest.mark.asyncio
    async def test_list_scope(self, session, service_for, users, cycle, appraisal):
        await AppraisalRepository(session).create(users["other_teacher"], cycle)
        filters = AppraisalFilterParams()

        _, teacher_total = await service_for(users["teacher"]).list_appraisals(filters)
        _, hod_total = await service_for(users["hod"]).list_appraisals(filters)
        _, other_hod_total = await service_for(users["other_hod"]).list_appraisals(filters)
        _, principal_total = await service_for(users["principal"]).list_appraisals(filters)

        assert (teacher_total, hod_total, other_hod_total, principal_total) == (1, 2, 0, 2)

    @pytest.mark.asyncio
    async def test_review_queue(self, service_for, users, appraisal):
        await submit(service_for, users, appraisal.id)

        hod_queue = await service_for(users["hod"]).list_review_queue()
        assert [item.id for item in hod_queue] == [appraisal.id]
        assert await service_for(users["other_hod"]).list_review_queue() == []
        assert await service_for(users["iqac"]).list_review_queue() == []


class TestProvision:
    @pytest.mark.asyncio
    async def test_admin_provisions_draft_in_open_cycle(self, service_for, users, cycle, caplog):
        caplog.set_level(logging.INFO, logger="src.services.appraisal_workflow")
        created = await service_for(users["admin"]).provision_appraisal(users["other_teacher"].id)

        assert created.teacher_id == users["other_teacher"].id
        assert created.cycle_id == cycle.id
        assert created.status == AppraisalStatus.DRAFT
        assert created.version == 1
        assert created.department == "Computer Science"
        assert created.created_by == users["admin"].id
        assert f"provisioned for teacher {users['other_teacher'].id} in cycle {cycle.id}" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_key", ["teacher", "hod", "iqac", "principal"])
    async def test_admin_only(self, service_for, users, cycle, user_key):
        with pytest.raises(ForbiddenError):
            await service_for(users[user_key]).provision_appraisal(users["other_teacher"].id)

    @pytest.mark.asyncio
    async def test_only_teachers_are_appraised(self, service_for, users, cycle):
        with pytest.raises(AppraisalValidationError):
            await service_for(users["admin"]).provision_appraisal(users["hod"].id)
        with pytest.raises(UserNotFoundError):
            await service_for(users["admin"]).provision_appraisal(9999)

    @pytest.mark.asyncio
    async def test_one_per_teacher_and_cycle(self, service_for, users, appraisal):
        with pytest.raises(DuplicateError) as exc_info:
            await service_for(users["admin"]).provision_appraisal(users["teacher"].id)
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_cycle_must_exist_and_be_open(self, session, service_for, users, cycle):
        repo = AppraisalCycleRepository(session)
        closed = await repo.create("Academic Year 2024-25", "2024-25", date(2024, 6, 1), date(2025, 5, 31))
        service = service_for(users["admin"])

        with pytest.raises(AppraisalValidationError):
            await service.provision_appraisal(users["other_teacher"].id, closed.id)
        with pytest.raises(CycleNotFoundError):
            await service.provision_appraisal(users["other_teacher"].id, 9999)

        await repo.set_open(cycle, False)
        with pytest.raises(CycleNotFoundError):
            await service.provision_appraisal(users["other_teacher"].id)
