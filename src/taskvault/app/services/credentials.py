"""Credential store: account registration and password verification."""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..core.security import dummy_verify, get_password_hash, verify_password
from ..errors import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    UsernameRequiredError,
    WeakPasswordError,
)
from ..models import User
from ..repositories import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class CredentialStore:
    """Persist identities and check passwords against their verifiers."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._repository = UserRepository(session)

    @property
    def repository(self) -> UserRepository:
        return self._repository

    async def register(self, username: str, password: str) -> User:
        """Create an account, failing on blank names, short passwords and duplicates.

        The username is stored exactly as given. Whitespace is significant.
        """
        if not username.strip():
            raise UsernameRequiredError()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise WeakPasswordError(MIN_PASSWORD_LENGTH)
        if await self._repository.get_by_username(username) is not None:
            raise DuplicateUsernameError()

        user = User(username=username, hashed_password=get_password_hash(password))
        try:
            await self._repository.add(user)
            await self._session.commit()
        except IntegrityError as exc:
            # A concurrent registration won the unique constraint.
            await self._session.rollback()
            raise DuplicateUsernameError() from exc
        await self._repository.refresh(user)
        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def verify(self, username: str, password: str) -> User:
        """Return the account for valid credentials or raise ``InvalidCredentialsError``."""
        user = await self._repository.get_by_username(username)
        if user is None:
            dummy_verify()
            logger.info("Login failed", extra={"reason": "unknown_username"})
            raise InvalidCredentialsError()
        if not verify_password(password, user.hashed_password):
            logger.info("Login failed", extra={"reason": "bad_password", "user_id": user.id})
            raise InvalidCredentialsError()
        return user


__all__ = ["CredentialStore", "MIN_PASSWORD_LENGTH"]
