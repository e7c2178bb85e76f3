"""Database related helpers."""

from __future__ import annotations

from .base import SQLModel
from .session import build_engine, dispose_engine, get_session, init_db

__all__ = ["SQLModel", "build_engine", "dispose_engine", "get_session", "init_db"]
