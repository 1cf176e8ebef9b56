# ABOUTME: Shared fixtures for journal tests: in-memory database and recording image store
# ABOUTME: The recording store can be told to fail for selected filenames

from __future__ import annotations

from collections.abc import Callable

import pytest
import pytest_asyncio
from sqlalchemy.pool import StaticPool

from trade_journal.content.base import StorageError, StoredImage
from trade_journal.persistence.manager import DatabaseManager
from trade_journal.storage import LocalImageStore

PNG_B64 = "iVBORw0KGgo="
PNG_BYTES = b"\x89PNG\r\n\x1a\n"


class RecordingImageStore:
    """In-memory ImageStore that records writes and fails on demand."""

    def __init__(self, fail_when: Callable[[str], bool] | None = None, public_base_url: str = "/uploads"):
        self.files: dict[str, bytes] = {}
        self.fail_when = fail_when
        self.public_base_url = public_base_url

    def public_url(self, relative_path: str) -> str:
        return f"{self.public_base_url}/{relative_path}"

    async def put(self, data: bytes, suggested_name: str) -> StoredImage:
        if self.fail_when and self.fail_when(suggested_name):
            raise StorageError(f"disk full writing {suggested_name}")
        relative_path = f"images/{suggested_name}"
        self.files[relative_path] = data
        return StoredImage(
            filename=suggested_name,
            stored_relative_path=relative_path,
            public_url=self.public_url(relative_path),
        )


@pytest.fixture
def store_factory() -> type[RecordingImageStore]:
    return RecordingImageStore


@pytest.fixture
def recording_store() -> RecordingImageStore:
    return RecordingImageStore()


@pytest.fixture
def local_store(tmp_path) -> LocalImageStore:
    return LocalImageStore(tmp_path / "uploads", public_base_url="/uploads")


@pytest_asyncio.fixture
async def temp_db() -> DatabaseManager:
    """Provide an in-memory database manager for async tests."""
    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
    from sqlmodel.ext.asyncio.session import AsyncSession

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    db = DatabaseManager("sqlite+aiosqlite:///:memory:")
    await db.engine.dispose()
    db.engine = engine
    db.async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await db.create_tables()
    yield db
    await db.close()
