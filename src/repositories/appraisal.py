"""Appraisal repository - durable store for appraisal records."""

import logging
from typing import List, Optional, Sequence, Tuple
from sqlalchemy import select, and_, func, update, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from src.core.exceptions import ConflictError
from src.models.appraisal import Appraisal
from src.models.appraisal_cycle import AppraisalCycle
from src.models.base import utcnow
from src.models.enums import AppraisalStatus
from src.models.user import User
from src.schemas.appraisal import AppraisalFilterParams
from src.services.calculators import empty_totals

logger = logging.getLogger(__name__)


class AppraisalRepository:
    """Repository for appraisal records and their history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _load_options(self):
        return (
            selectinload(Appraisal.history),
            selectinload(Appraisal.teacher),
            selectinload(Appraisal.cycle),
        )

    async def get(self, appraisal_id: int) -> Optional[Appraisal]:
        """Get appraisal by ID with history, teacher and cycle, always re-read."""
        query = (
            select(Appraisal)
            .options(*self._load_options())
            .where(Appraisal.id == appraisal_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_by_user_and_cycle(self, user_id: int, cycle_id: int) -> Optional[Appraisal]:
        """Get a teacher's appraisal for a cycle."""
        query = (
            select(Appraisal)
            .options(*self._load_options())
            .where(and_(Appraisal.teacher_id == user_id, Appraisal.cycle_id == cycle_id))
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(
        self, teacher: User, cycle: AppraisalCycle, created_by: Optional[int] = None
    ) -> Appraisal:
        """Provision a draft appraisal for a teacher in a cycle."""
        appraisal = Appraisal(
            teacher_id=teacher.id,
            cycle_id=cycle.id,
            department=teacher.department,
            status=AppraisalStatus.DRAFT,
            parts={},
            totals=empty_totals(),
            version=1,
            created_by=created_by,
        )
        self.session.add(appraisal)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise
        return await self.get(appraisal.id)

    async def save(self, appraisal: Appraisal, expected_version: Optional[int] = None) -> Appraisal:
        """Persist pending changes and bump the version in one transaction.

        The row is only written if its stored version still equals the
        version it was loaded with; otherwise the whole unit of work is
        rolled back and ``ConflictError`` raised.
        """
        appraisal_id = appraisal.id
        loaded_version = appraisal.version
        if expected_version is not None and expected_version != loaded_version:
            await self.session.rollback()
            raise ConflictError(appraisal_id, expected=expected_version, actual=loaded_version)

        try:
            # Claim the version before flushing so a stale writer writes nothing
            with self.session.no_autoflush:
                result = await self.session.execute(
                    update(Appraisal)
                    .where(and_(Appraisal.id == appraisal_id, Appraisal.version == loaded_version))
                    .values(version=loaded_version + 1)
                    .execution_options(synchronize_session=False)
                )
            if result.rowcount != 1:
                await self.session.rollback()
                logger.warning(
                    f"Concurrent write detected on appraisal {appraisal_id} at version {loaded_version}"
                )
                raise ConflictError(appraisal_id)

            appraisal.updated_at = utcnow()
            await self.session.flush()
            set_committed_value(appraisal, "version", loaded_version + 1)
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            raise

        return appraisal

    async def list_filtered(
        self,
        filters: AppraisalFilterParams,
        department: Optional[str] = None,
        teacher_id: Optional[int] = None,
    ) -> Tuple[List[Appraisal], int]:
        """Get filtered appraisals with pagination.

        ``department`` and ``teacher_id`` are scope restrictions applied on
        top of the caller's filters.
        """
        conditions = []

        if department is not None:
            conditions.append(Appraisal.department == department)
        if teacher_id is not None:
            conditions.append(Appraisal.teacher_id == teacher_id)

        if filters.status:
            conditions.append(Appraisal.status == filters.status)
        if filters.department:
            conditions.append(Appraisal.department == filters.department)
        if filters.cycle_id:
            conditions.append(Appraisal.cycle_id == filters.cycle_id)
        if filters.teacher_id:
            conditions.append(Appraisal.teacher_id == filters.teacher_id)

        query = select(Appraisal).options(selectinload(Appraisal.teacher))
        count_query = select(func.count(Appraisal.id))
        if conditions:
            query = query.where(and_(*conditions))
            count_query = count_query.where(and_(*conditions))

        count_result = await self.session.execute(count_query)
        total = count_result.scalar() or 0

        query = (
            query.order_by(desc(Appraisal.updated_at), desc(Appraisal.id))
            .offset(filters.skip)
            .limit(filters.size)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all()), total

    async def list_by_statuses(
        self,
        statuses: Sequence[AppraisalStatus],
        department: Optional[str] = None,
        teacher_id: Optional[int] = None,
        cycle_id: Optional[int] = None,
    ) -> List[Appraisal]:
        """Get appraisals in any of the given statuses, oldest submission first."""
        if not statuses:
            return []

        conditions = [Appraisal.status.in_(list(statuses))]
        if cycle_id is not None:
            conditions.append(Appraisal.cycle_id == cycle_id)
        if department is not None:
            conditions.append(Appraisal.department == department)
        if teacher_id is not None:
            conditions.append(Appraisal.teacher_id == teacher_id)

        query = (
            select(Appraisal)
            .options(selectinload(Appraisal.teacher))
            .where(and_(*conditions))
            .order_by(Appraisal.submitted_at, Appraisal.id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def count_by_status(
        self,
        cycle_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> List[Tuple[int, Optional[str], AppraisalStatus, int]]:
        """Count appraisals grouped by cycle, department and status."""
        conditions = []
        if cycle_id is not None:
            conditions.append(Appraisal.cycle_id == cycle_id)
        if department is not None:
            conditions.append(Appraisal.department == department)

        query = select(
            Appraisal.cycle_id,
            Appraisal.department,
            Appraisal.status,
            func.count(Appraisal.id),
        ).group_by(Appraisal.cycle_id, Appraisal.department, Appraisal.status)
        if conditions:
            query = query.where(and_(*conditions))

        result = await self.session.execute(query)
        return [(row[0], row[1], AppraisalStatus(row[2]), row[3]) for row in result.all()]
