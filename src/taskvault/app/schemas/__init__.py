"""Pydantic schemas exposed by the API."""

from __future__ import annotations

from .attachment import PUBLIC_UPLOADS_PATH, AttachmentRead, public_url
from .auth import CredentialsPayload, LoginRequest, RegisterRequest
from .system import ErrorResponse, HealthCheckResponse, RootResponse
from .task import TaskCreate, TaskRead, TaskUpdate
from .user import UserPublic

__all__ = [
    "AttachmentRead",
    "CredentialsPayload",
    "ErrorResponse",
    "HealthCheckResponse",
    "LoginRequest",
    "PUBLIC_UPLOADS_PATH",
    "RegisterRequest",
    "RootResponse",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "UserPublic",
    "public_url",
]
