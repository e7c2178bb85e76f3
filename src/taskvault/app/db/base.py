"""Metadata registry used by migrations and ``init_db``."""

from __future__ import annotations

from sqlmodel import SQLModel

from .. import models  # noqa: F401  - registers every table on SQLModel.metadata

__all__ = ["SQLModel"]
