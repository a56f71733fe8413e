"""Pytest configuration for all tests."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from contentbase.core.config import get_settings
from contentbase.infrastructure.persistence.database import (
    Base,
    enable_sqlite_savepoints,
    get_db_session,
)
from contentbase.infrastructure.persistence.entry_store import EntryStoreRegistry
from contentbase.infrastructure.persistence.models import CollectionModel  # noqa: F401
from contentbase.infrastructure.services.email import LogEmailProvider
from contentbase.infrastructure.services.notification_service import NotificationService
from contentbase.infrastructure.storage.base import ObjectStorage, ObjectStorageError


class FakeObjectStorage(ObjectStorage):
    """In-memory object storage that records deletions.

    Keys listed in ``failing_keys`` raise on delete.
    """

    def __init__(self) -> None:
        self.deleted: list[str] = []
        self.failing_keys: set[str] = set()

    async def get_signed_url(self, key: str) -> str:
        return f"https://blobs.test/{key}?signature=abc"

    async def delete_object(self, key: str) -> None:
        if key in self.failing_keys:
            raise ObjectStorageError(f"Failed to delete '{key}'")
        self.deleted.append(key)

    async def test_connection(self) -> tuple[bool, str | None]:
        return True, None


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings read from the environment must not leak between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with the fixed tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def registry() -> EntryStoreRegistry:
    return EntryStoreRegistry()


@pytest.fixture
def object_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def email_provider() -> LogEmailProvider:
    return LogEmailProvider()


@pytest.fixture
def app(session_factory, object_storage, email_provider):
    """Application wired to the test database and fake collaborators."""
    from contentbase.infrastructure.api.app import create_app

    application = create_app(
        object_storage=object_storage,
        notifications=NotificationService(provider=email_provider),
    )

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    application.dependency_overrides[get_db_session] = override_get_db_session
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create a test HTTP client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
