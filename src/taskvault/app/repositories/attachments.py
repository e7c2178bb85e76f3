"""Repository for attachment metadata, authorised through the parent task."""

from __future__ import annotations

from sqlalchemy import delete
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Attachment, Task
from .base import BaseRepository


class AttachmentRepository(BaseRepository[Attachment]):
    """Concrete repository for ``Attachment`` entities."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Attachment)

    async def get_for_owner(self, attachment_id: int, owner_id: int) -> Attachment | None:
        """Return the attachment when its task belongs to ``owner_id``."""
        result = await self.session.execute(
            select(Attachment)
            .join(Task, Task.id == Attachment.task_id)
            .where(Attachment.id == attachment_id, Task.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def list_for_task(self, task_id: int) -> list[Attachment]:
        result = await self.session.execute(
            select(Attachment).where(Attachment.task_id == task_id).order_by(Attachment.id)
        )
        return list(result.scalars().all())

    async def delete_for_owner(self, attachment_id: int, owner_id: int) -> int:
        """Delete one attachment row if the caller owns its task; return rows affected."""
        owned_task_ids = select(Task.id).where(Task.owner_id == owner_id)
        result = await self.session.execute(
            delete(Attachment)
            .where(Attachment.id == attachment_id, Attachment.task_id.in_(owned_task_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def delete_for_task(self, task_id: int) -> int:
        """Delete every attachment row of a task already resolved as owned."""
        result = await self.session.execute(
            delete(Attachment)
            .where(Attachment.task_id == task_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
