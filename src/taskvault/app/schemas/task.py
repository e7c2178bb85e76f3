"""Task-related Pydantic schemas."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models import TITLE_MAX_LENGTH, TaskStatus
from .attachment import AttachmentRead

TASK_READ_EXAMPLE = {
    "id": 1,
    "title": "Draft product documentation",
    "description": "Outline sections for the public API guide.",
    "status": TaskStatus.PENDING.value,
    "due_date": "2024-03-01",
    "created_at": "2024-02-01T12:00:00Z",
    "owner_id": 42,
    "attachments": [],
}


class TaskCreate(BaseModel):
    """Payload for creating a new task."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Draft product documentation",
                "description": "Outline sections for the public API guide.",
                "due_date": "2024-03-01",
            }
        }
    )

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.PENDING)
    due_date: date | None = Field(default=None)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value


class TaskUpdate(BaseModel):
    """Sparse patch for an existing task.

    Only fields present in the payload are written. ``description`` and
    ``due_date`` may be cleared with an explicit ``null``; ``title`` and
    ``status`` may not.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": TaskStatus.IN_PROGRESS.value,
                "due_date": None,
            }
        }
    )

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None)
    status: TaskStatus | None = Field(default=None)
    due_date: date | None = Field(default=None)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _reject_null_required_fields(self) -> "TaskUpdate":
        for name in ("title", "status"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"'{name}' cannot be null.")
        return self

    def changes(self) -> dict[str, Any]:
        """Return only the explicitly supplied fields."""
        return self.model_dump(exclude_unset=True)


class TaskRead(BaseModel):
    """Public representation of a task and its attachments."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TASK_READ_EXAMPLE},
    )

    id: int
    title: str
    description: str | None = None
    status: TaskStatus
    due_date: date | None = None
    created_at: datetime
    owner_id: int
    attachments: list[AttachmentRead] = Field(default_factory=list)


__all__ = ["TaskCreate", "TaskRead", "TaskUpdate"]
