"""Domain models exposed for TaskVault."""

from __future__ import annotations

from .attachment import Attachment
from .common import CreatedAtMixin, utcnow
from .task import TITLE_MAX_LENGTH, Task, TaskStatus
from .user import USERNAME_MAX_LENGTH, User

__all__ = [
    "Attachment",
    "CreatedAtMixin",
    "TITLE_MAX_LENGTH",
    "Task",
    "TaskStatus",
    "USERNAME_MAX_LENGTH",
    "User",
    "utcnow",
]
