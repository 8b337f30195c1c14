"""Identity provider used by the workflow service."""

from typing import Optional, Protocol, runtime_checkable

from src.models.user import User
from src.repositories.user import UserRepository


@runtime_checkable
class IdentityProvider(Protocol):
    """Resolves the acting user and looks up other users."""

    async def get_acting_user(self) -> Optional[User]:
        ...

    async def get_user(self, user_id: int) -> Optional[User]:
        ...


class RequestIdentityProvider:
    """Identity of one request, resolved from its verified token."""

    def __init__(self, acting_user: Optional[User], user_repo: UserRepository):
        self.acting_user = acting_user
        self.user_repo = user_repo

    async def get_acting_user(self) -> Optional[User]:
        return self.acting_user

    async def get_user(self, user_id: int) -> Optional[User]:
        if self.acting_user is not None and self.acting_user.id == user_id:
            return self.acting_user
        return await self.user_repo.get_by_id(user_id)
