from __future__ import annotations

from pathlib import Path
from typing import AsyncIterator

import pytest
from fastapi import status
from httpx import AsyncClient

from taskvault.app.core.config import MEBIBYTE, MULTIPART_OVERHEAD_BYTES, Settings


async def _create_task(client: AsyncClient, title: str = "with files") -> int:
    response = await client.post("/api/tasks", json={"title": title})
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["id"]


async def _upload(client: AsyncClient, task_id: int, *files: tuple[str, bytes, str]):
    return await client.post(
        f"/api/tasks/{task_id}/files",
        files=[("files", file) for file in files],
    )


def _stored_blobs(upload_dir: Path) -> list[str]:
    return sorted(path.name for path in upload_dir.iterdir())


async def test_upload_records_files_and_serves_them(alice: AsyncClient, upload_dir: Path) -> None:
    task_id = await _create_task(alice)

    response = await _upload(
        alice,
        task_id,
        ("notes.txt", b"hello world", "text/plain"),
        ("Diagram.PNG", b"\x89PNG fake", "image/png"),
    )

    assert response.status_code == status.HTTP_201_CREATED
    attachments = response.json()
    assert [item["original_name"] for item in attachments] == ["notes.txt", "Diagram.PNG"]
    assert [item["size_bytes"] for item in attachments] == [11, 9]
    assert attachments[0]["mime_type"] == "text/plain"
    assert attachments[1]["url"].startswith("/uploads/")
    assert attachments[1]["url"].endswith(".png")
    assert all(item["task_id"] == task_id for item in attachments)
    assert len(_stored_blobs(upload_dir)) == 2

    download = await alice.get(attachments[0]["url"])
    assert download.status_code == status.HTTP_200_OK
    assert download.content == b"hello world"

    task = (await alice.get(f"/api/tasks/{task_id}")).json()
    assert [item["id"] for item in task["attachments"]] == [item["id"] for item in attachments]


async def test_original_name_is_reduced_to_basename(alice: AsyncClient) -> None:
    task_id = await _create_task(alice)

    response = await _upload(alice, task_id, ("../../etc/passwd.txt", b"x", "text/plain"))

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()[0]["original_name"] == "passwd.txt"


async def test_deleting_task_removes_attachments_and_blobs(
    alice: AsyncClient,
    upload_dir: Path,
) -> None:
    task_id = await _create_task(alice)
    uploaded = (
        await _upload(
            alice,
            task_id,
            ("a.txt", b"first", "text/plain"),
            ("b.txt", b"second", "text/plain"),
        )
    ).json()
    assert len(_stored_blobs(upload_dir)) == 2

    response = await alice.delete(f"/api/tasks/{task_id}")

    assert response.status_code == status.HTTP_200_OK
    assert _stored_blobs(upload_dir) == []
    for attachment in uploaded:
        follow_up = await alice.delete(f"/api/files/{attachment['id']}")
        assert follow_up.status_code == status.HTTP_404_NOT_FOUND


async def test_file_over_limit_is_rejected_before_anything_is_written(
    alice: AsyncClient,
    settings: Settings,
    upload_dir: Path,
) -> None:
    assert settings.max_upload_bytes == 5 * MEBIBYTE
    task_id = await _create_task(alice)

    response = await _upload(
        alice,
        task_id,
        ("small.txt", b"fine", "text/plain"),
        ("big.bin", b"\0" * (5 * MEBIBYTE + 1), "application/octet-stream"),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "file_too_large"
    assert _stored_blobs(upload_dir) == []
    task = (await alice.get(f"/api/tasks/{task_id}")).json()
    assert task["attachments"] == []


async def test_file_of_exactly_the_limit_is_accepted(alice: AsyncClient) -> None:
    task_id = await _create_task(alice)

    response = await _upload(alice, task_id, ("edge.bin", b"\0" * (5 * MEBIBYTE), "application/octet-stream"))

    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()[0]["size_bytes"] == 5 * MEBIBYTE


async def test_upload_requires_files(alice: AsyncClient) -> None:
    task_id = await _create_task(alice)

    response = await alice.post(f"/api/tasks/{task_id}/files", data={"note": "nothing attached"})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "files_required"


async def test_upload_to_foreign_task_is_not_found(
    alice: AsyncClient,
    bob: AsyncClient,
    upload_dir: Path,
) -> None:
    task_id = await _create_task(alice)

    response = await _upload(bob, task_id, ("sneaky.txt", b"data", "text/plain"))

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert _stored_blobs(upload_dir) == []


async def test_delete_file_is_owner_scoped(
    alice: AsyncClient,
    bob: AsyncClient,
    upload_dir: Path,
) -> None:
    task_id = await _create_task(alice)
    attachment = (await _upload(alice, task_id, ("a.txt", b"data", "text/plain"))).json()[0]

    foreign = await bob.delete(f"/api/files/{attachment['id']}")
    assert foreign.status_code == status.HTTP_404_NOT_FOUND
    assert len(_stored_blobs(upload_dir)) == 1

    own = await alice.delete(f"/api/files/{attachment['id']}")
    assert own.status_code == status.HTTP_200_OK
    assert own.json() is True
    assert _stored_blobs(upload_dir) == []
    task = (await alice.get(f"/api/tasks/{task_id}")).json()
    assert task["attachments"] == []


async def test_upload_requires_authentication(client: AsyncClient) -> None:
    response = await _upload(client, 1, ("a.txt", b"data", "text/plain"))

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_oversized_file_to_missing_task_reports_size_first(alice: AsyncClient) -> None:
    response = await _upload(alice, 9999, ("big.bin", b"\0" * (5 * MEBIBYTE + 1), "application/octet-stream"))

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "file_too_large"


async def test_body_over_the_request_cap_is_rejected_before_parsing(
    alice: AsyncClient,
    settings: Settings,
    upload_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "max_upload_files", 1)
    assert settings.max_upload_request_bytes == 5 * MEBIBYTE + MULTIPART_OVERHEAD_BYTES

    response = await _upload(alice, 9999, ("huge.bin", b"\0" * (6 * MEBIBYTE), "application/octet-stream"))

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    body = response.json()
    assert body["code"] == "payload_too_large"
    assert body["details"]["request_id"] == response.headers["X-Request-ID"]
    assert _stored_blobs(upload_dir) == []


async def test_streamed_body_without_length_is_cut_off(
    alice: AsyncClient,
    settings: Settings,
    upload_dir: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "max_upload_bytes", 1024)
    monkeypatch.setattr(settings, "max_upload_files", 1)
    task_id = await _create_task(alice)
    boundary = "taskvault-boundary"

    async def _chunks() -> AsyncIterator[bytes]:
        yield (
            f"--{boundary}\r\n"
            'Content-Disposition: form-data; name="files"; filename="stream.bin"\r\n'
            "Content-Type: application/octet-stream\r\n\r\n"
        ).encode()
        for _ in range(16):
            yield b"\0" * (16 * 1024)
        yield f"\r\n--{boundary}--\r\n".encode()

    response = await alice.post(
        f"/api/tasks/{task_id}/files",
        content=_chunks(),
        headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
    )

    assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
    assert response.json()["code"] == "payload_too_large"
    assert _stored_blobs(upload_dir) == []
    task = (await alice.get(f"/api/tasks/{task_id}")).json()
    assert task["attachments"] == []


async def test_upload_rejects_too_many_files(
    alice: AsyncClient,
    settings: Settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(settings, "max_upload_files", 2)
    task_id = await _create_task(alice)

    response = await _upload(
        alice,
        task_id,
        *[(f"{index}.txt", b"x", "text/plain") for index in range(3)],
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["code"] == "too_many_files"
