"""Task persistence model."""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlmodel import Field, Relationship

from .common import CreatedAtMixin

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from .attachment import Attachment

TITLE_MAX_LENGTH = 255


class TaskStatus(str, Enum):
    """Enumeration of possible task states."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class Task(CreatedAtMixin, table=True):
    """A unit of work owned by exactly one user."""

    __tablename__ = "tasks"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_tasks_title_length"),
        sa.Index("ix_tasks_owner_id_due_date", "owner_id", "due_date"),
    )

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(
        max_length=TITLE_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=TITLE_MAX_LENGTH), nullable=False),
    )
    description: str | None = Field(
        default="",
        sa_column=sa.Column(sa.Text(), nullable=True),
    )
    status: TaskStatus = Field(
        default=TaskStatus.PENDING,
        sa_column=sa.Column(
            sa.Enum(
                TaskStatus,
                name="task_status",
                native_enum=False,
                validate_strings=True,
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
            server_default=TaskStatus.PENDING.value,
        ),
    )
    due_date: date | None = Field(
        default=None,
        sa_column=sa.Column(sa.Date(), nullable=True),
    )
    owner_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    attachments: list["Attachment"] = Relationship(
        sa_relationship_kwargs={
            "lazy": "selectin",
            "order_by": "Attachment.id",
            "passive_deletes": True,
        },
    )


__all__ = ["TITLE_MAX_LENGTH", "Task", "TaskStatus"]
