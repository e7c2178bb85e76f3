from __future__ import annotations

import os

os.environ.setdefault("TASKVAULT_ENVIRONMENT", "test")
os.environ.setdefault("TASKVAULT_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from collections.abc import AsyncIterator, Awaitable, Callable, Iterator  # noqa: E402
from contextlib import AsyncExitStack  # noqa: E402
from pathlib import Path  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from taskvault.app.core.config import Settings, get_settings  # noqa: E402
from taskvault.app.db import SQLModel, build_engine  # noqa: E402
from taskvault.app.deps import get_blob_store, get_db_session  # noqa: E402
from taskvault.app.main import create_app  # noqa: E402
from taskvault.app.storage import LocalBlobStore  # noqa: E402

DEFAULT_PASSWORD = "s3cret-pass"

ClientFactory = Callable[..., Awaitable[AsyncClient]]


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, upload_dir: Path) -> Iterator[Settings]:
    monkeypatch.setenv("TASKVAULT_ENVIRONMENT", "test")
    monkeypatch.setenv("TASKVAULT_UPLOAD_DIR", str(upload_dir))
    monkeypatch.setenv("TASKVAULT_JWT_SECRET_KEY", "test-secret")
    get_settings.cache_clear()
    try:
        yield get_settings()
    finally:
        get_settings.cache_clear()


@pytest.fixture
def blob_store(upload_dir: Path) -> LocalBlobStore:
    return LocalBlobStore(upload_dir)


@pytest_asyncio.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    engine = build_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as connection:
        await connection.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def app(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    blob_store: LocalBlobStore,
) -> AsyncIterator[FastAPI]:
    application = create_app()

    async def _override_db_session() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = _override_db_session
    application.dependency_overrides[get_blob_store] = lambda: blob_store
    try:
        yield application
    finally:
        application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client_factory(app: FastAPI) -> AsyncIterator[ClientFactory]:
    """Build independent clients, each with its own cookie jar."""

    async with AsyncExitStack() as stack:

        async def _factory(
            username: str | None = None,
            password: str = DEFAULT_PASSWORD,
        ) -> AsyncClient:
            client = await stack.enter_async_context(
                AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")
            )
            if username is not None:
                response = await client.post(
                    "/api/auth/register",
                    json={"username": username, "password": password},
                )
                assert response.status_code == 201, response.text
            return client

        yield _factory


@pytest_asyncio.fixture
async def client(client_factory: ClientFactory) -> AsyncClient:
    return await client_factory()


@pytest_asyncio.fixture
async def alice(client_factory: ClientFactory) -> AsyncClient:
    return await client_factory("alice")


@pytest_asyncio.fixture
async def bob(client_factory: ClientFactory) -> AsyncClient:
    return await client_factory("bob")
