"""Attachment persistence model."""

import sqlalchemy as sa
from sqlmodel import Field

from .common import CreatedAtMixin


class Attachment(CreatedAtMixin, table=True):
    """Metadata for an uploaded file whose bytes live in the blob store."""

    __tablename__ = "attachments"

    id: int | None = Field(default=None, primary_key=True)
    task_id: int = Field(
        sa_column=sa.Column(
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
    )
    stored_name: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False, unique=True),
    )
    original_name: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    mime_type: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False),
    )
    size_bytes: int = Field(
        default=0,
        sa_column=sa.Column(sa.Integer(), nullable=False, server_default="0"),
    )


__all__ = ["Attachment"]
