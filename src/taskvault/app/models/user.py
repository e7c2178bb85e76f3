"""User persistence model."""

import sqlalchemy as sa
from sqlmodel import Field

from .common import CreatedAtMixin

USERNAME_MAX_LENGTH = 150


class User(CreatedAtMixin, table=True):
    """Registered account holding a password verifier."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(
        max_length=USERNAME_MAX_LENGTH,
        sa_column=sa.Column(
            sa.String(length=USERNAME_MAX_LENGTH),
            nullable=False,
            unique=True,
            index=True,
        ),
    )
    hashed_password: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )


__all__ = ["USERNAME_MAX_LENGTH", "User"]
