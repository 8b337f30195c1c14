"""User repository."""

from typing import List, Optional
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.user import User
from src.models.enums import UserRole


class UserRepository:
    """User repository backing the identity provider."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        name: str,
        email: str,
        role: UserRole,
        department: Optional[str] = None,
        designation: Optional[str] = None,
        employee_no: Optional[str] = None,
    ) -> User:
        """Create user."""
        user = User(
            name=name,
            email=email.lower().strip(),
            role=role,
            department=department,
            designation=designation,
            employee_no=employee_no,
        )

        self.session.add(user)
        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: int) -> Optional[User]:
        """Get user by ID."""
        query = select(User).where(User.id == user_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        query = select(User).where(User.email == email.lower())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_by_role(self, role: UserRole, department: Optional[str] = None) -> List[User]:
        """Get active users with a role, optionally within a department."""
        conditions = [User.role == role, User.is_active == True]
        if department is not None:
            conditions.append(User.department == department)
        query = select(User).where(and_(*conditions)).order_by(User.name)
        result = await self.session.execute(query)
        return list(result.scalars().all())
