"""Routes handling owner-scoped task CRUD and uploads."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, File, Query, UploadFile, status

from ...deps import (
    BlobStoreDependency,
    CurrentIdentityDependency,
    DatabaseSessionDependency,
    SettingsDependency,
)
from ...models import Task, TaskStatus
from ...schemas import AttachmentRead, TaskCreate, TaskRead, TaskUpdate
from ...services import AttachmentService, IncomingFile, TaskService
from ..routing import UploadLimitRoute

router = APIRouter(prefix="/tasks", tags=["tasks"], route_class=UploadLimitRoute)

StatusQuery = Annotated[
    TaskStatus | None,
    Query(description="Filter results to tasks matching the supplied status."),
]
UploadedFiles = Annotated[
    list[UploadFile] | None,
    File(description="One or more files to attach to the task."),
]


def _map_task(task: Task) -> TaskRead:
    return TaskRead.model_validate(task)


@router.get("", response_model=list[TaskRead], summary="List the caller's tasks")
async def list_tasks(
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    identity: CurrentIdentityDependency,
    status: StatusQuery = None,
) -> list[TaskRead]:
    tasks = await TaskService(session, blobs).list_tasks(identity.id, status=status)
    return [_map_task(task) for task in tasks]


@router.get("/{task_id}", response_model=TaskRead, summary="Retrieve a task by id")
async def get_task(
    task_id: int,
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    identity: CurrentIdentityDependency,
) -> TaskRead:
    task = await TaskService(session, blobs).get_task(identity.id, task_id)
    return _map_task(task)


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(
    payload: TaskCreate,
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    identity: CurrentIdentityDependency,
) -> TaskRead:
    task = await TaskService(session, blobs).create_task(
        identity.id,
        title=payload.title,
        description=payload.description,
        status=payload.status,
        due_date=payload.due_date,
    )
    return _map_task(task)


@router.patch("/{task_id}", response_model=TaskRead, summary="Update an existing task")
async def update_task(
    task_id: int,
    payload: TaskUpdate,
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    identity: CurrentIdentityDependency,
) -> TaskRead:
    task = await TaskService(session, blobs).update_task(identity.id, task_id, payload.changes())
    return _map_task(task)


@router.delete("/{task_id}", response_model=bool, summary="Delete a task and its files")
async def delete_task(
    task_id: int,
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    identity: CurrentIdentityDependency,
) -> bool:
    return await TaskService(session, blobs).delete_task(identity.id, task_id)


@router.post(
    "/{task_id}/files",
    response_model=list[AttachmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Attach uploaded files to a task",
)
async def upload_files(
    task_id: int,
    session: DatabaseSessionDependency,
    blobs: BlobStoreDependency,
    settings: SettingsDependency,
    identity: CurrentIdentityDependency,
    files: UploadedFiles = None,
) -> list[AttachmentRead]:
    uploads = files or []
    try:
        incoming = [
            IncomingFile(
                filename=upload.filename,
                content_type=upload.content_type,
                stream=upload.file,
                size=upload.size,
            )
            for upload in uploads
        ]
        service = AttachmentService(
            session,
            blobs,
            max_bytes=settings.max_upload_bytes,
            max_files=settings.max_upload_files,
        )
        attachments = await service.upload(identity.id, task_id, incoming)
    finally:
        for upload in uploads:
            await upload.close()
    return [AttachmentRead.model_validate(attachment) for attachment in attachments]
