"""Domain service layer package."""

from __future__ import annotations

from .attachments import AttachmentService, IncomingFile
from .credentials import CredentialStore
from .tasks import TaskService

__all__ = ["AttachmentService", "CredentialStore", "IncomingFile", "TaskService"]
