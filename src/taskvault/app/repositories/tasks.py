"""Repository for owner-scoped task persistence.

Every statement here filters on ``owner_id`` so that a task belonging to
someone else is indistinguishable from one that does not exist.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Task, TaskStatus
from .base import BaseRepository


class TaskRepository(BaseRepository[Task]):
    """Concrete repository encapsulating ``Task`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Task)

    async def list_for_owner(
        self,
        owner_id: int,
        *,
        status: TaskStatus | None = None,
    ) -> list[Task]:
        """Return the owner's tasks by due date, undated tasks last."""
        query = select(Task).where(Task.owner_id == owner_id)
        if status is not None:
            query = query.where(Task.status == status)
        query = query.order_by(Task.due_date.is_(None), Task.due_date, Task.id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_for_owner(self, task_id: int, owner_id: int) -> Task | None:
        """Retrieve a task by ID ensuring it belongs to the provided owner."""
        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id, Task.owner_id == owner_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def exists_for_owner(self, task_id: int, owner_id: int) -> bool:
        """Return whether the owner currently holds the task."""
        result = await self.session.execute(
            select(Task.id).where(Task.id == task_id, Task.owner_id == owner_id)
        )
        return result.scalar_one_or_none() is not None

    async def update_for_owner(
        self,
        task_id: int,
        owner_id: int,
        values: dict[str, Any],
    ) -> int:
        """Write ``values`` in a single owner-scoped statement; return rows affected."""
        result = await self.session.execute(
            update(Task)
            .where(Task.id == task_id, Task.owner_id == owner_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_for_owner(self, task_id: int, owner_id: int) -> int:
        """Delete the task in a single owner-scoped statement; return rows affected."""
        result = await self.session.execute(
            delete(Task)
            .where(Task.id == task_id, Task.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
