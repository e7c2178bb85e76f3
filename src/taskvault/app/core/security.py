"""Password hashing and session token helpers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .config import Settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class SessionIdentity(BaseModel):
    """Identity carried by a session token."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    username: str = Field(min_length=1)


class SessionTokenPayload(SessionIdentity):
    """Validated claims of a decoded session token."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    iat: datetime
    exp: datetime


@dataclass(slots=True)
class GeneratedToken:
    """A signed session token together with its expiry."""

    token: str
    expires_at: datetime


def get_password_hash(password: str) -> str:
    """Return a one-way verifier for ``password``."""

    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against its stored verifier."""

    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """Spend roughly the time of a real verification without a stored hash."""

    pwd_context.dummy_verify()


def issue_session_token(
    identity: SessionIdentity,
    *,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> GeneratedToken:
    """Sign a session token for ``identity``."""

    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(days=settings.session_token_expire_days)
    expire = now + expires_delta
    payload: dict[str, Any] = {
        "id": identity.id,
        "username": identity.username,
        "iat": now,
        "exp": expire,
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return GeneratedToken(token=token, expires_at=expire)


def parse_session_token(token: str | None, *, settings: Settings) -> SessionIdentity | None:
    """Return the identity carried by ``token`` or ``None`` if it is unusable.

    Missing, malformed, expired and badly signed tokens all yield ``None`` so
    the caller is treated as anonymous.
    """

    if not token:
        return None
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        logger.debug("Rejected session token", extra={"reason": str(exc)})
        return None
    try:
        payload = SessionTokenPayload.model_validate(claims)
    except PydanticValidationError:
        logger.debug("Rejected session token with invalid claims")
        return None
    return SessionIdentity(id=payload.id, username=payload.username)


__all__ = [
    "GeneratedToken",
    "SessionIdentity",
    "SessionTokenPayload",
    "dummy_verify",
    "get_password_hash",
    "issue_session_token",
    "parse_session_token",
    "verify_password",
]
