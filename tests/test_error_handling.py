from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI, status
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError, OperationalError

from taskvault.app.core.logging import RequestContextFilter
from taskvault.app.errors import ApplicationError, NotFoundError
from taskvault.app.main import create_app


@pytest.fixture()
def bare_app(settings) -> FastAPI:
    return create_app()


def _client(app: FastAPI, *, raise_app_exceptions: bool = True) -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
    return AsyncClient(transport=transport, base_url="http://test")


async def test_application_error_response_schema(bare_app: FastAPI) -> None:
    @bare_app.get("/error/application")
    async def trigger_application_error() -> None:  # pragma: no cover - defined in test
        raise ApplicationError(
            "Example failure",
            code="example_error",
            status_code=status.HTTP_418_IM_A_TEAPOT,
            details={"foo": "bar"},
        )

    async with _client(bare_app) as client:
        response = await client.get("/error/application")

    assert response.status_code == status.HTTP_418_IM_A_TEAPOT
    request_id = response.headers["X-Request-ID"]
    assert response.json() == {
        "code": "example_error",
        "message": "Example failure",
        "details": {"foo": "bar", "request_id": request_id},
    }


async def test_domain_not_found_uses_envelope(bare_app: FastAPI) -> None:
    @bare_app.get("/error/missing")
    async def trigger_not_found() -> None:  # pragma: no cover - defined in test
        raise NotFoundError("Task not found.")

    async with _client(bare_app) as client:
        response = await client.get("/error/missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["code"] == "not_found"
    assert response.json()["message"] == "Task not found."


async def test_validation_error_response_schema(bare_app: FastAPI) -> None:
    class ExamplePayload(BaseModel):
        name: str

    @bare_app.post("/error/validation")
    async def create_item(_: ExamplePayload) -> None:  # pragma: no cover - defined in test
        return None

    async with _client(bare_app) as client:
        response = await client.post("/error/validation", json={})

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    payload = response.json()
    assert payload["code"] == "validation_error"
    assert payload["message"] == "Request validation failed."
    assert "errors" in payload["details"]
    assert payload["details"]["request_id"] == response.headers["X-Request-ID"]


async def test_unknown_route_uses_envelope(bare_app: FastAPI) -> None:
    async with _client(bare_app) as client:
        response = await client.get("/error/not-found")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    payload = response.json()
    assert payload["code"] == "not_found"
    assert payload["details"]["request_id"] == response.headers["X-Request-ID"]


async def test_integrity_error_response_schema(bare_app: FastAPI) -> None:
    @bare_app.get("/error/database")
    async def trigger_integrity_error() -> None:  # pragma: no cover - defined in test
        raise IntegrityError("statement", {}, Exception("constraint"))

    async with _client(bare_app) as client:
        response = await client.get("/error/database")

    assert response.status_code == status.HTTP_409_CONFLICT
    payload = response.json()
    assert payload["code"] == "db_integrity_error"
    assert payload["message"] == "Database integrity violation."


async def test_store_failure_hides_sql(bare_app: FastAPI) -> None:
    @bare_app.get("/error/store")
    async def trigger_store_failure() -> None:  # pragma: no cover - defined in test
        raise OperationalError("SELECT secret FROM vault", {}, Exception("disk I/O error"))

    async with _client(bare_app) as client:
        response = await client.get("/error/store")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["code"] == "store_failure"
    assert "secret" not in response.text


async def test_unhandled_error_hides_internal_details(bare_app: FastAPI) -> None:
    @bare_app.get("/error/unhandled")
    async def trigger_unhandled_error() -> None:  # pragma: no cover - defined in test
        raise RuntimeError("Sensitive detail")

    async with _client(bare_app, raise_app_exceptions=False) as client:
        response = await client.get("/error/unhandled")

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    payload = response.json()
    assert payload["code"] == "server_error"
    assert payload["message"] == "Internal server error."
    assert "Sensitive" not in response.text


class _InMemoryHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.INFO)
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


async def test_request_id_attached_to_logs(bare_app: FastAPI) -> None:
    logger = logging.getLogger("tests.error_handling")
    handler = _InMemoryHandler()
    handler.addFilter(RequestContextFilter())
    logger.addHandler(handler)
    original_level = logger.level
    logger.setLevel(logging.INFO)

    @bare_app.get("/log")
    async def emit_log() -> dict[str, str]:  # pragma: no cover - defined in test
        logger.info("Log entry")
        return {"status": "ok"}

    try:
        async with _client(bare_app) as client:
            response = await client.get("/log", headers={"X-Request-ID": "client-supplied"})
    finally:
        logger.removeHandler(handler)
        logger.setLevel(original_level)
        handler.close()

    assert response.headers["X-Request-ID"] == "client-supplied"
    matching = [record for record in handler.records if record.getMessage() == "Log entry"]
    assert matching
    assert getattr(matching[0], "request_id", None) == "client-supplied"


async def test_malformed_request_id_header_is_not_echoed(bare_app: FastAPI) -> None:
    @bare_app.get("/ping")
    async def ping() -> dict[str, str]:  # pragma: no cover - defined in test
        return {"status": "ok"}

    async with _client(bare_app) as client:
        response = await client.get("/ping", headers={"X-Request-ID": "x" * 200})

    assert response.status_code == 200
    assert response.headers["X-Request-ID"] != "x" * 200
    assert len(response.headers["X-Request-ID"]) == 32
