"""Schemas describing authentication payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..models import USERNAME_MAX_LENGTH


class CredentialsPayload(BaseModel):
    """Username and password pair submitted by a client."""

    model_config = ConfigDict(
        json_schema_extra={"example": {"username": "ada", "password": "correct-horse"}}
    )

    # Length rules are business errors with their own codes, enforced by the credential store.
    username: str = Field(max_length=USERNAME_MAX_LENGTH)
    password: str


class RegisterRequest(CredentialsPayload):
    """Incoming payload for registering a new user."""


class LoginRequest(CredentialsPayload):
    """Incoming payload for logging in."""


__all__ = ["CredentialsPayload", "LoginRequest", "RegisterRequest"]
