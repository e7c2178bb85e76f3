"""Routes operating on individual attachments."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import (
    BlobStoreDependency,
    CurrentIdentityDependency,
    DatabaseSessionDependency,
    SettingsDependency,
)
from ...services import AttachmentService

router = APIRouter(prefix="/files", tags=["files"])


@router.delete("/{file_id}", response_model=bool, summary="Delete an attachment")
async def delete_file(
    file_id: int,
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    settings: SettingsDependency,
    identity: CurrentIdentityDependency,
) -> bool:
    service = AttachmentService(session, blobs, max_bytes=settings.max_upload_bytes)
    return await service.delete(identity.id, file_id)
