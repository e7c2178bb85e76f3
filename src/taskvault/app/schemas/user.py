"""User-facing Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UserPublic(BaseModel):
    """Public projection of an account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


__all__ = ["UserPublic"]
