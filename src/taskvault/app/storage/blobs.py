"""Local filesystem blob store for uploaded file contents."""

from __future__ import annotations

import logging
import re
import uuid
from pathlib import Path
from typing import BinaryIO, Iterable

from starlette.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

_EXTENSION_PATTERN = re.compile(r"^\.[a-z0-9]{1,16}$")


class BlobTooLargeError(Exception):
    """Raised when a stream exceeds the byte limit while being written."""

    def __init__(self, key: str, max_bytes: int) -> None:
        super().__init__(f"Blob '{key}' exceeds {max_bytes} bytes")
        self.key = key
        self.max_bytes = max_bytes


class LocalBlobStore:
    """Key-addressed byte storage rooted at a single directory.

    Keys are flat file names generated by :meth:`generate_key`; they never
    contain path separators.
    """

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def ensure_root(self) -> None:
        self._root.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def generate_key(filename: str | None) -> str:
        """Return a fresh key carrying the lowercased extension of ``filename``."""
        suffix = Path(filename or "").suffix.lower()
        if not _EXTENSION_PATTERN.match(suffix):
            suffix = ""
        return f"{uuid.uuid4().hex}{suffix}"

    def path_for(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key in {".", ".."}:
            raise ValueError(f"Invalid blob key: {key!r}")
        return self._root / key

    async def save(self, key: str, source: BinaryIO, *, max_bytes: int) -> int:
        """Stream ``source`` into the blob ``key`` and return the bytes written.

        Raises :class:`BlobTooLargeError` once more than ``max_bytes`` have been
        read; the partial blob is removed before the error propagates.
        """
        return await run_in_threadpool(self._write, key, source, max_bytes)

    async def delete(self, key: str) -> bool:
        """Remove the blob ``key``; an absent blob is not an error."""
        return await run_in_threadpool(self._remove, key)

    async def discard(self, keys: Iterable[str]) -> None:
        """Best-effort removal of several blobs; failures are logged, never raised."""
        for key in keys:
            try:
                await self.delete(key)
            except OSError:
                logger.warning("Failed to delete blob", extra={"blob_key": key}, exc_info=True)

    def _write(self, key: str, source: BinaryIO, max_bytes: int) -> int:
        self.ensure_root()
        target = self.path_for(key)
        written = 0
        handle = target.open("xb")
        try:
            with handle:
                while chunk := source.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > max_bytes:
                        raise BlobTooLargeError(key, max_bytes)
                    handle.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise
        return written

    def _remove(self, key: str) -> bool:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            logger.debug("Blob already absent", extra={"blob_key": key})
            return False
        return True


__all__ = ["BlobTooLargeError", "CHUNK_SIZE", "LocalBlobStore"]
