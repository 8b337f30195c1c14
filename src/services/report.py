"""Report service for appraisal statistics."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from src.auth.identity import IdentityProvider
from src.core.exceptions import CycleNotFoundError, ForbiddenError
from src.models.appraisal import Appraisal
from src.models.enums import AppraisalStatus, UserRole
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.schemas.report import CycleReport, DepartmentReport, ReportSummary, ScoreBand
from src.services.calculators import OVERALL_MAX, round2
from src.utils.messages import get_message

logger = logging.getLogger(__name__)


COMPLETED_STATUSES: Tuple[AppraisalStatus, ...] = (AppraisalStatus.APPROVED, AppraisalStatus.LOCKED)
IN_PROGRESS_STATUSES: Tuple[AppraisalStatus, ...] = (
    AppraisalStatus.SUBMITTED,
    AppraisalStatus.HOD_REVIEWED,
    AppraisalStatus.IQAC_REVIEWED,
)

# Inclusive upper bounds of the score distribution bands
SCORE_BANDS: Tuple[Tuple[float, float], ...] = (
    (0, 50), (50, 100), (100, 150), (150, 200), (200, OVERALL_MAX),
)

REPORT_ROLES = frozenset({UserRole.HOD, UserRole.IQAC, UserRole.PRINCIPAL, UserRole.ADMIN})


@dataclass
class _Tally:
    total: int = 0
    completed: int = 0
    in_progress: int = 0
    draft: int = 0
    scores: List[float] = field(default_factory=list)

    def add(self, status: AppraisalStatus, count: int) -> None:
        self.total += count
        if status in COMPLETED_STATUSES:
            self.completed += count
        elif status in IN_PROGRESS_STATUSES:
            self.in_progress += count
        else:
            self.draft += count

    def as_fields(self) -> Dict[str, float]:
        average = sum(self.scores) / len(self.scores) if self.scores else 0.0
        rate = self.completed / self.total * 100 if self.total else 0.0
        return {
            "total": self.total,
            "completed": self.completed,
            "in_progress": self.in_progress,
            "draft": self.draft,
            "average_score": round2(average),
            "completion_rate": round2(rate),
        }


def score_distribution(scores: List[float]) -> List[ScoreBand]:
    """Bucket overall scores into fixed bands; the first band includes zero."""
    bands = [
        ScoreBand(label=f"{int(low) + 1 if low else 0}-{int(high)}", min=low, max=high)
        for low, high in SCORE_BANDS
    ]
    for score in scores:
        for band in bands:
            if score <= band.max:
                band.count += 1
                break
    return bands


class AppraisalReportService:
    """Aggregates appraisal progress and scores for reviewers and administrators.

    HODs only ever see their own department. IQAC, principal and admin see
    the whole institution and may narrow by department. Teachers have no
    report access.
    """

    def __init__(
        self,
        appraisal_repo: AppraisalRepository,
        cycle_repo: AppraisalCycleRepository,
        identity: IdentityProvider,
    ):
        self.appraisal_repo = appraisal_repo
        self.cycle_repo = cycle_repo
        self.identity = identity

    async def get_summary(
        self,
        cycle_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> ReportSummary:
        """Get status counts and score statistics visible to the acting user."""
        actor = await self.identity.get_acting_user()
        if actor is None:
            raise ForbiddenError(get_message("appraisal", "forbidden_unauthenticated"))
        if actor.role not in REPORT_ROLES:
            raise ForbiddenError(get_message("report", "forbidden", role=actor.role.value))

        cycles = {cycle.id: cycle for cycle in await self.cycle_repo.list_all()}
        if cycle_id is not None and cycle_id not in cycles:
            raise CycleNotFoundError(cycle_id)

        if actor.role == UserRole.HOD:
            department = actor.department
            if department is None:
                return ReportSummary(cycle_id=cycle_id, score_distribution=score_distribution([]))

        counts = await self.appraisal_repo.count_by_status(cycle_id=cycle_id, department=department)
        completed: List[Appraisal] = await self.appraisal_repo.list_by_statuses(
            COMPLETED_STATUSES, department=department, cycle_id=cycle_id
        )

        overall = _Tally()
        by_status: Dict[AppraisalStatus, int] = {status: 0 for status in AppraisalStatus}
        by_department: Dict[Optional[str], _Tally] = {}
        by_cycle: Dict[int, _Tally] = {}
        for row_cycle_id, row_department, status, count in counts:
            by_status[status] += count
            overall.add(status, count)
            by_department.setdefault(row_department, _Tally()).add(status, count)
            by_cycle.setdefault(row_cycle_id, _Tally()).add(status, count)

        for appraisal in completed:
            score = appraisal.overall_score
            overall.scores.append(score)
            by_department.setdefault(appraisal.department, _Tally()).scores.append(score)
            by_cycle.setdefault(appraisal.cycle_id, _Tally()).scores.append(score)

        logger.info(
            f"Report for user {actor.id} ({actor.role.value}): cycle {cycle_id or 'all'}, "
            f"department {department or 'all'}, {overall.total} appraisal(s)"
        )

        return ReportSummary(
            cycle_id=cycle_id,
            department=department,
            by_status=by_status,
            highest_score=max(overall.scores, default=0.0),
            lowest_score=min(overall.scores, default=0.0),
            score_distribution=score_distribution(overall.scores),
            departments=[
                DepartmentReport(department=name, **tally.as_fields())
                for name, tally in sorted(by_department.items(), key=lambda item: item[0] or "")
            ],
            cycles=[
                CycleReport(
                    cycle_id=key,
                    label=cycles[key].label,
                    academic_year=cycles[key].academic_year,
                    **tally.as_fields(),
                )
                for key, tally in sorted(
                    by_cycle.items(), key=lambda item: cycles[item[0]].start_date, reverse=True
                )
            ],
            **overall.as_fields(),
        )
