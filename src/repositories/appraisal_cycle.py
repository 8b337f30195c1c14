"""Appraisal cycle repository."""

from typing import List, Optional
from datetime import date
from sqlalchemy import select, desc, update, and_
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.appraisal_cycle import AppraisalCycle
from src.models.base import utcnow


class AppraisalCycleRepository:
    """Repository for appraisal cycles."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        label: str,
        academic_year: str,
        start_date: date,
        end_date: date,
        is_open: bool = False,
        created_by: Optional[int] = None,
    ) -> AppraisalCycle:
        """Create a cycle."""
        cycle = AppraisalCycle(
            label=label,
            academic_year=academic_year,
            start_date=start_date,
            end_date=end_date,
            is_open=is_open,
            created_by=created_by,
        )

        self.session.add(cycle)
        await self.session.commit()
        await self.session.refresh(cycle)
        return cycle

    async def get_by_id(self, cycle_id: int) -> Optional[AppraisalCycle]:
        """Get cycle by ID."""
        query = select(AppraisalCycle).where(AppraisalCycle.id == cycle_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_open(self) -> Optional[AppraisalCycle]:
        """Get the open cycle; the latest one wins if several are open."""
        query = (
            select(AppraisalCycle)
            .where(AppraisalCycle.is_open == True)
            .order_by(desc(AppraisalCycle.start_date), desc(AppraisalCycle.id))
            .limit(1)
        )
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_academic_year(self, academic_year: str) -> Optional[AppraisalCycle]:
        """Get cycle by academic year."""
        query = select(AppraisalCycle).where(AppraisalCycle.academic_year == academic_year)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def list_all(self) -> List[AppraisalCycle]:
        """Get every cycle, latest first."""
        query = select(AppraisalCycle).order_by(desc(AppraisalCycle.start_date), desc(AppraisalCycle.id))
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def close_all(self, except_id: Optional[int] = None, updated_by: Optional[int] = None) -> int:
        """Close every open cycle other than ``except_id``. Returns count of closed cycles."""
        conditions = [AppraisalCycle.is_open == True]
        if except_id is not None:
            conditions.append(AppraisalCycle.id != except_id)

        update_query = (
            update(AppraisalCycle)
            .where(and_(*conditions))
            .values(is_open=False, updated_by=updated_by, updated_at=utcnow())
        )
        result = await self.session.execute(update_query)
        return result.rowcount

    async def set_open(self, cycle: AppraisalCycle, is_open: bool, updated_by: Optional[int] = None) -> AppraisalCycle:
        """Open or close a cycle; opening closes every other cycle in the same commit."""
        if is_open:
            await self.close_all(except_id=cycle.id, updated_by=updated_by)

        cycle.is_open = is_open
        cycle.updated_by = updated_by
        cycle.updated_at = utcnow()

        await self.session.commit()
        await self.session.refresh(cycle)
        return cycle
