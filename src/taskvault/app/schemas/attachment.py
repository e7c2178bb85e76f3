"""Attachment response schemas."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

PUBLIC_UPLOADS_PATH = "/uploads"

_READ_FIELDS = ("id", "task_id", "original_name", "mime_type", "size_bytes")


def public_url(stored_name: str) -> str:
    """Return the public download path for a blob key."""
    return f"{PUBLIC_UPLOADS_PATH}/{stored_name}"


class AttachmentRead(BaseModel):
    """Public representation of an uploaded file."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={
            "example": {
                "id": 7,
                "task_id": 1,
                "original_name": "report.pdf",
                "mime_type": "application/pdf",
                "size_bytes": 48213,
                "url": "/uploads/3f2b8c0d4e5a4f1b9c7d6e5f4a3b2c1d.pdf",
            }
        },
    )

    id: int
    task_id: int
    original_name: str
    mime_type: str
    size_bytes: int
    url: str

    @model_validator(mode="before")
    @classmethod
    def _derive_url(cls, data: Any) -> Any:
        if isinstance(data, dict):
            if "url" not in data and "stored_name" in data:
                return {**data, "url": public_url(data["stored_name"])}
            return data
        stored_name = getattr(data, "stored_name", None)
        if stored_name is None:
            return data
        values = {name: getattr(data, name) for name in _READ_FIELDS}
        values["url"] = public_url(stored_name)
        return values


__all__ = ["AttachmentRead", "PUBLIC_UPLOADS_PATH", "public_url"]
