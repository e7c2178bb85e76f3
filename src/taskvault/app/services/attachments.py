"""Service layer pairing attachment rows with blob store contents."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import BinaryIO, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import (
    FilesRequiredError,
    FileTooLargeError,
    NotFoundError,
    StoreFailureError,
    TooManyFilesError,
)
from ..models import Attachment
from ..repositories import AttachmentRepository, TaskRepository
from ..storage import BlobTooLargeError, LocalBlobStore

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "file"
DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass(slots=True)
class IncomingFile:
    """A client-supplied file about to be stored."""

    filename: str | None
    content_type: str | None
    stream: BinaryIO
    size: int | None = None

    @property
    def display_name(self) -> str:
        name = PurePosixPath((self.filename or "").replace("\\", "/")).name
        return name or DEFAULT_FILENAME

    @property
    def mime_type(self) -> str:
        if self.content_type:
            return self.content_type
        guessed, _ = mimetypes.guess_type(self.display_name)
        return guessed or DEFAULT_MIME_TYPE


@dataclass(slots=True)
class _StoredBlob:
    key: str
    size_bytes: int
    source: IncomingFile


class AttachmentService:
    """Upload and delete attachments of tasks owned by the caller."""

    def __init__(
        self,
        session: AsyncSession,
        blobs: LocalBlobStore,
        *,
        max_bytes: int,
        max_files: int | None = None,
    ) -> None:
        self._session = session
        self._blobs = blobs
        self._max_bytes = max_bytes
        self._max_files = max_files
        self._repository = AttachmentRepository(session)
        self._tasks = TaskRepository(session)

    @property
    def repository(self) -> AttachmentRepository:
        return self._repository

    async def upload(
        self,
        owner_id: int,
        task_id: int,
        files: Sequence[IncomingFile],
    ) -> list[Attachment]:
        """Store ``files`` as blobs, then record them against the owner's task."""
        if not files:
            raise FilesRequiredError()
        if self._max_files is not None and len(files) > self._max_files:
            raise TooManyFilesError(self._max_files)
        for incoming in files:
            if incoming.size is not None and incoming.size > self._max_bytes:
                raise FileTooLargeError(incoming.display_name, self._max_bytes)

        if not await self._tasks.exists_for_owner(task_id, owner_id):
            raise NotFoundError("Task not found.")
        # Release the read transaction before streaming any bytes.
        await self._session.commit()

        stored = await self._write_blobs(files)
        keys = [blob.key for blob in stored]

        try:
            if not await self._tasks.exists_for_owner(task_id, owner_id):
                await self._session.rollback()
                await self._blobs.discard(keys)
                raise NotFoundError("Task not found.")
            attachments = [
                Attachment(
                    task_id=task_id,
                    stored_name=blob.key,
                    original_name=blob.source.display_name,
                    mime_type=blob.source.mime_type,
                    size_bytes=blob.size_bytes,
                )
                for blob in stored
            ]
            await self._repository.add_all(attachments)
            await self._session.commit()
        except IntegrityError as exc:
            # The task can disappear between the re-check and the insert.
            await self._session.rollback()
            await self._blobs.discard(keys)
            if not await self._tasks.exists_for_owner(task_id, owner_id):
                raise NotFoundError("Task not found.") from exc
            raise
        except SQLAlchemyError:
            await self._session.rollback()
            await self._blobs.discard(keys)
            raise

        logger.info(
            "Attachments uploaded",
            extra={"task_id": task_id, "owner_id": owner_id, "count": len(attachments)},
        )
        return attachments

    async def _write_blobs(self, files: Sequence[IncomingFile]) -> list[_StoredBlob]:
        stored: list[_StoredBlob] = []
        try:
            for incoming in files:
                key = self._blobs.generate_key(incoming.display_name)
                size = await self._blobs.save(key, incoming.stream, max_bytes=self._max_bytes)
                stored.append(_StoredBlob(key=key, size_bytes=size, source=incoming))
        except BlobTooLargeError as exc:
            await self._blobs.discard(blob.key for blob in stored)
            raise FileTooLargeError(incoming.display_name, self._max_bytes) from exc
        except OSError as exc:
            logger.error("Failed to write blob", exc_info=exc)
            await self._blobs.discard(blob.key for blob in stored)
            raise StoreFailureError() from exc
        return stored

    async def delete(self, owner_id: int, attachment_id: int) -> bool:
        """Delete an attachment of one of the owner's tasks together with its blob."""
        attachment = await self._repository.get_for_owner(attachment_id, owner_id)
        if attachment is None:
            raise NotFoundError("File not found.")

        await self._blobs.discard([attachment.stored_name])
        affected = await self._repository.delete_for_owner(attachment_id, owner_id)
        if not affected:
            await self._session.rollback()
            raise NotFoundError("File not found.")
        await self._session.commit()
        logger.info(
            "Attachment deleted",
            extra={"attachment_id": attachment_id, "owner_id": owner_id},
        )
        return True


__all__ = ["AttachmentService", "IncomingFile"]
