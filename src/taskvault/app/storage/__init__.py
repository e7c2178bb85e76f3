"""Blob storage backends."""

from __future__ import annotations

from .blobs import BlobTooLargeError, LocalBlobStore

__all__ = ["BlobTooLargeError", "LocalBlobStore"]
