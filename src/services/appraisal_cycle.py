"""Appraisal cycle service for cycle administration."""

import logging
from typing import List

from src.auth.identity import IdentityProvider
from src.core.exceptions import (
    AppraisalValidationError,
    CycleNotFoundError,
    DuplicateError,
    ForbiddenError,
)
from src.models.appraisal_cycle import AppraisalCycle
from src.models.enums import UserRole
from src.models.user import User
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.schemas.appraisal_cycle import AppraisalCycleCreate
from src.utils.messages import get_message

logger = logging.getLogger(__name__)


class AppraisalCycleService:
    """Service for listing, creating, opening and closing appraisal cycles.

    At most one cycle is open at a time: opening a cycle closes every other
    one in the same commit.
    """

    def __init__(self, cycle_repo: AppraisalCycleRepository, identity: IdentityProvider):
        self.cycle_repo = cycle_repo
        self.identity = identity

    async def _require_admin(self) -> User:
        actor = await self.identity.get_acting_user()
        if actor is None:
            raise ForbiddenError(get_message("appraisal", "forbidden_unauthenticated"))
        if actor.role != UserRole.ADMIN:
            raise ForbiddenError(get_message("cycle", "forbidden_manage"))
        return actor

    async def _load(self, cycle_id: int) -> AppraisalCycle:
        cycle = await self.cycle_repo.get_by_id(cycle_id)
        if not cycle:
            raise CycleNotFoundError(cycle_id)
        return cycle

    async def list_cycles(self) -> List[AppraisalCycle]:
        """Get every cycle, latest first."""
        if await self.identity.get_acting_user() is None:
            raise ForbiddenError(get_message("appraisal", "forbidden_unauthenticated"))
        return await self.cycle_repo.list_all()

    async def create_cycle(self, cycle_data: AppraisalCycleCreate) -> AppraisalCycle:
        """Create a cycle, opening it straight away if requested."""
        admin = await self._require_admin()

        if cycle_data.end_date <= cycle_data.start_date:
            raise AppraisalValidationError(
                get_message(
                    "cycle", "invalid_dates",
                    start_date=cycle_data.start_date, end_date=cycle_data.end_date,
                )
            )
        if await self.cycle_repo.get_by_academic_year(cycle_data.academic_year):
            raise DuplicateError(
                get_message("cycle", "already_exists", academic_year=cycle_data.academic_year)
            )

        cycle = await self.cycle_repo.create(
            label=cycle_data.label,
            academic_year=cycle_data.academic_year,
            start_date=cycle_data.start_date,
            end_date=cycle_data.end_date,
            is_open=False,
            created_by=admin.id,
        )
        logger.info(f"Cycle {cycle.id} ({cycle.academic_year}) created by user {admin.id}")

        if cycle_data.is_open:
            cycle = await self.cycle_repo.set_open(cycle, True, updated_by=admin.id)
            logger.info(f"Cycle {cycle.id} opened by user {admin.id}")
        return cycle

    async def open_cycle(self, cycle_id: int) -> AppraisalCycle:
        """Open a cycle and close whichever cycle was open before."""
        admin = await self._require_admin()
        cycle = await self._load(cycle_id)
        cycle = await self.cycle_repo.set_open(cycle, True, updated_by=admin.id)
        logger.info(f"Cycle {cycle.id} ({cycle.academic_year}) opened by user {admin.id}")
        return cycle

    async def close_cycle(self, cycle_id: int) -> AppraisalCycle:
        """Close a cycle; its appraisals keep their status."""
        admin = await self._require_admin()
        cycle = await self._load(cycle_id)
        if not cycle.is_open:
            return cycle

        cycle = await self.cycle_repo.set_open(cycle, False, updated_by=admin.id)
        logger.info(f"Cycle {cycle.id} ({cycle.academic_year}) closed by user {admin.id}")
        return cycle
