"""Seeding script creating users for every role, cycles and draft appraisals."""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from faker import Faker
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import async_session, create_tables
from src.models.enums import UserRole
from src.repositories.appraisal import AppraisalRepository
from src.repositories.appraisal_cycle import AppraisalCycleRepository
from src.repositories.user import UserRepository

logger = logging.getLogger(__name__)

DEPARTMENTS = ["Computer Science", "Electronics", "Mechanical", "Mathematics"]
TEACHERS_PER_DEPARTMENT = 3
EMAIL_DOMAIN = "college.edu.in"


class AppraisalSeeder:
    """Seeds an appraisal-ready database."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)
        self.cycle_repo = AppraisalCycleRepository(session)
        self.appraisal_repo = AppraisalRepository(session)
        self.fake = Faker("en_IN")
        self._employee_seq = 0

    def _employee_no(self) -> str:
        self._employee_seq += 1
        return f"EMP{self._employee_seq:04d}"

    async def _create_user(self, email_local: str, role: UserRole, department: str, designation: str):
        email = f"{email_local}@{EMAIL_DOMAIN}"
        existing = await self.user_repo.get_by_email(email)
        if existing:
            print(f"User {email} already exists")
            return existing
        user = await self.user_repo.create(
            name=f"Dr. {self.fake.name()}",
            email=email,
            role=role,
            department=department,
            designation=designation,
            employee_no=self._employee_no(),
        )
        print(f"Created {role.value}: {user.name} <{email}>")
        return user

    async def create_cycles(self):
        """Create the previous (closed) and current (open) cycles."""
        print("Creating appraisal cycles...")
        if await self.cycle_repo.get_open():
            print("An open cycle already exists")
            return await self.cycle_repo.get_open()

        await self.cycle_repo.create(
            label="Annual Appraisal 2024-25",
            academic_year="2024-2025",
            start_date=date(2024, 4, 1),
            end_date=date(2025, 3, 31),
            is_open=False,
        )
        return await self.cycle_repo.create(
            label="Annual Appraisal 2025-26",
            academic_year="2025-2026",
            start_date=date(2025, 4, 1),
            end_date=date(2026, 3, 31),
            is_open=True,
        )

    async def create_users(self):
        """Create one admin, principal and IQAC user, an HOD per department and teachers."""
        print("Creating users...")
        await self._create_user("admin", UserRole.ADMIN, "Administration", "System Administrator")
        await self._create_user("principal", UserRole.PRINCIPAL, "Administration", "Principal")
        await self._create_user("iqac", UserRole.IQAC, "Quality Assurance", "IQAC Coordinator")

        teachers = []
        for department in DEPARTMENTS:
            slug = department.lower().replace(" ", "")
            await self._create_user(f"hod.{slug}", UserRole.HOD, department, "Professor & Head")
            for i in range(1, TEACHERS_PER_DEPARTMENT + 1):
                teacher = await self._create_user(
                    f"teacher{i}.{slug}", UserRole.TEACHER, department, "Assistant Professor"
                )
                teachers.append(teacher)
        return teachers

    async def create_appraisals(self, teachers, cycle):
        """Provision a draft appraisal per teacher in the open cycle."""
        print("Creating draft appraisals...")
        created = 0
        for teacher in teachers:
            if await self.appraisal_repo.find_by_user_and_cycle(teacher.id, cycle.id):
                continue
            await self.appraisal_repo.create(teacher, cycle)
            created += 1
        print(f"Created {created} draft appraisals")

    async def clear_all_data(self):
        """Clear all seeded data."""
        print("Clearing all data...")
        try:
            # Reverse order of foreign keys
            await self.session.execute(text("DELETE FROM appraisal_history"))
            await self.session.execute(text("DELETE FROM appraisals"))
            await self.session.execute(text("DELETE FROM appraisal_cycles"))
            await self.session.execute(text("DELETE FROM users"))
            await self.session.commit()
            print("All data cleared successfully!")
        except Exception as e:
            print(f"Error clearing data: {e}")
            await self.session.rollback()
            raise

    async def run_seeding(self):
        """Run the complete seeding process."""
        print("Starting appraisal seeding process...")
        print("=" * 50)
        cycle = await self.create_cycles()
        teachers = await self.create_users()
        await self.create_appraisals(teachers, cycle)
        print("=" * 50)
        print("Seeding completed successfully!")


async def main():
    """Main seeding function."""
    parser = argparse.ArgumentParser(description="Database seeding script")
    parser.add_argument("action", choices=["up", "down"], help="up: create data, down: clear data")
    parser.add_argument("--create-tables", action="store_true", help="create tables before seeding")
    args = parser.parse_args()

    try:
        if args.create_tables:
            await create_tables()
        async with async_session() as session:
            seeder = AppraisalSeeder(session)
            if args.action == "down":
                await seeder.clear_all_data()
            else:
                await seeder.run_seeding()
    except Exception as e:
        logger.exception("Seeding failed")
        print(f"Seeding failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    sys.exit(exit_code)
