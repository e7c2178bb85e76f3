"""Database repositories for encapsulating persistence logic."""

from __future__ import annotations

from .attachments import AttachmentRepository
from .base import BaseRepository
from .tasks import TaskRepository
from .users import UserRepository

__all__ = ["AttachmentRepository", "BaseRepository", "TaskRepository", "UserRepository"]
