"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings, get_settings
from .core.security import SessionIdentity, parse_session_token
from .db.session import get_session
from .errors import UnauthorizedError
from .storage import LocalBlobStore

SettingsDependency = Annotated[Settings, Depends(get_settings)]


async def get_db_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in get_session():
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


def get_blob_store(request: Request) -> LocalBlobStore:
    """Return the blob store created alongside the application."""

    return request.app.state.blob_store


BlobStoreDependency = Annotated[LocalBlobStore, Depends(get_blob_store)]


def get_optional_identity(request: Request, settings: SettingsDependency) -> SessionIdentity | None:
    """Resolve the caller from the session cookie, or ``None`` when anonymous."""

    token = request.cookies.get(settings.session_cookie_name)
    return parse_session_token(token, settings=settings)


OptionalIdentityDependency = Annotated[SessionIdentity | None, Depends(get_optional_identity)]


def require_identity(identity: OptionalIdentityDependency) -> SessionIdentity:
    """Reject anonymous callers with ``UnauthorizedError``."""

    if identity is None:
        raise UnauthorizedError()
    return identity


CurrentIdentityDependency = Annotated[SessionIdentity, Depends(require_identity)]


__all__ = [
    "BlobStoreDependency",
    "CurrentIdentityDependency",
    "DatabaseSessionDependency",
    "OptionalIdentityDependency",
    "SettingsDependency",
    "get_blob_store",
    "get_db_session",
    "get_optional_identity",
    "require_identity",
]
