"""Repository for interacting with user persistence models."""

from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository for ``User`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_username(self, username: str) -> User | None:
        """Return the user with exactly this username, if any."""
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()
