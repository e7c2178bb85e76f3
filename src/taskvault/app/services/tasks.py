"""Service layer encapsulating owner-scoped task operations."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models import Task, TaskStatus
from ..repositories import AttachmentRepository, TaskRepository
from ..storage import LocalBlobStore

logger = logging.getLogger(__name__)


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Title must not be blank.", details={"field": "title"})
    return cleaned


class TaskService:
    """High-level business orchestration for ``Task`` entities."""

    def __init__(self, session: AsyncSession, blobs: LocalBlobStore) -> None:
        self._session = session
        self._blobs = blobs
        self._repository = TaskRepository(session)
        self._attachments = AttachmentRepository(session)

    @property
    def repository(self) -> TaskRepository:
        """Expose the underlying repository for advanced scenarios."""
        return self._repository

    async def list_tasks(self, owner_id: int, *, status: TaskStatus | None = None) -> list[Task]:
        """Return the owner's tasks, optionally filtered by status."""
        return await self._repository.list_for_owner(owner_id, status=status)

    async def get_task(self, owner_id: int, task_id: int) -> Task:
        task = await self._repository.get_for_owner(task_id, owner_id)
        if task is None:
            raise NotFoundError("Task not found.")
        return task

    async def create_task(
        self,
        owner_id: int,
        *,
        title: str,
        description: str | None = None,
        status: TaskStatus = TaskStatus.PENDING,
        due_date: date | None = None,
    ) -> Task:
        """Create a new task belonging to the specified owner."""
        task = Task(
            owner_id=owner_id,
            title=_clean_title(title),
            description=description if description is not None else "",
            status=status,
            due_date=due_date,
        )
        await self._repository.add(task)
        await self._session.commit()
        logger.info("Task created", extra={"task_id": task.id, "owner_id": owner_id})
        return await self.get_task(owner_id, task.id)

    async def update_task(self, owner_id: int, task_id: int, changes: dict[str, Any]) -> Task:
        """Apply a sparse patch with one owner-scoped ``UPDATE`` and return the result.

        Keys absent from ``changes`` are left untouched; ``None`` clears
        ``description`` or ``due_date``.
        """
        if not changes:
            return await self.get_task(owner_id, task_id)

        values = dict(changes)
        if "title" in values:
            values["title"] = _clean_title(values["title"])
        for name in ("title", "status"):
            if name in values and values[name] is None:
                raise ValidationError(f"'{name}' cannot be null.", details={"field": name})

        affected = await self._repository.update_for_owner(task_id, owner_id, values)
        if not affected:
            await self._session.rollback()
            raise NotFoundError("Task not found.")
        await self._session.commit()
        logger.info(
            "Task updated",
            extra={"task_id": task_id, "owner_id": owner_id, "fields": sorted(values)},
        )
        return await self.get_task(owner_id, task_id)

    async def delete_task(self, owner_id: int, task_id: int) -> bool:
        """Delete a task with its attachment rows and blobs."""
        task = await self.get_task(owner_id, task_id)
        stored_names = [attachment.stored_name for attachment in task.attachments]

        await self._blobs.discard(stored_names)
        await self._attachments.delete_for_task(task_id)
        affected = await self._repository.delete_for_owner(task_id, owner_id)
        if not affected:
            await self._session.rollback()
            raise NotFoundError("Task not found.")
        await self._session.commit()
        logger.info(
            "Task deleted",
            extra={"task_id": task_id, "owner_id": owner_id, "attachments": len(stored_names)},
        )
        return True


__all__ = ["TaskService"]
