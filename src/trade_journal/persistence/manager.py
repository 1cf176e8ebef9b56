# ABOUTME: Async database manager for journal entries and their image manifests
# ABOUTME: Applies the re-save rule: direct uploads replaced, inline images kept and appended

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import date, datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from trade_journal.content.models import CHART_UPLOAD_SECTION, ImageManifest, NormalizedEntry
from trade_journal.persistence.models import JournalEntry, JournalImage, utcnow
from trade_journal.utils.logging import get_logger


@dataclass(slots=True)
class JournalEntryState:
    """A stored entry together with its images."""

    entry: JournalEntry
    images: list[JournalImage] = field(default_factory=list)
    created: bool = False

    @property
    def id(self) -> int | None:
        return self.entry.id

    @property
    def entry_date(self) -> date:
        return self.entry.entry_date

    @property
    def content(self) -> dict[str, str | None]:
        return self.entry.content or {}

    @property
    def updated_at(self) -> datetime:
        return self.entry.updated_at

    @property
    def manifest(self) -> ImageManifest:
        return ImageManifest(images=[image.to_extracted() for image in self.images])


class DatabaseManager:
    """Manages async database operations for journal entries."""

    def __init__(self, database_url: str = "sqlite+aiosqlite:///./trade_journal.db"):
        """Initialize the database manager.

        Args:
            database_url: SQLAlchemy async database URL (e.g. sqlite+aiosqlite:///./db.db)
        """
        self.database_url = database_url
        self.logger = get_logger(__name__)
        self.engine = create_async_engine(database_url, echo=False)
        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_tables(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def save_entry(self, entry_date: date, normalized: NormalizedEntry) -> JournalEntryState:
        """Create or update the entry for a date in a single transaction.

        On update, submitted fields overwrite stored ones, the entry's direct uploads are
        deleted, inline images stay, and every newly produced image is appended.
        """
        async with self.async_session() as session:
            result = await session.exec(select(JournalEntry).where(JournalEntry.entry_date == entry_date))
            entry = result.first()
            created = entry is None

            if entry is None:
                entry = JournalEntry(entry_date=entry_date, content=dict(normalized.fields))
            else:
                entry.content = {**(entry.content or {}), **normalized.fields}
                entry.updated_at = utcnow()
                await session.exec(
                    delete(JournalImage).where(
                        JournalImage.entry_id == entry.id,
                        JournalImage.section == CHART_UPLOAD_SECTION,
                    )
                )

            session.add(entry)
            await session.flush()

            for image in normalized.images:
                session.add(JournalImage.from_extracted(entry.id, image))

            await session.commit()
            await session.refresh(entry)
            images = await self._load_images(session, entry.id)

        self.logger.info(
            "Created journal entry" if created else "Updated journal entry",
            entry_date=entry_date.isoformat(),
            entry_id=entry.id,
            new_images=len(normalized.images),
            total_images=len(images),
        )
        return JournalEntryState(entry=entry, images=images, created=created)

    async def get_entry(self, entry_date: date) -> JournalEntryState | None:
        """Return the entry for a date with its images in insertion order."""
        async with self.async_session() as session:
            result = await session.exec(select(JournalEntry).where(JournalEntry.entry_date == entry_date))
            entry = result.first()
            if not entry:
                return None
            images = await self._load_images(session, entry.id)
            return JournalEntryState(entry=entry, images=images)

    async def list_entries(self) -> list[JournalEntry]:
        """Return all entries, newest date first."""
        async with self.async_session() as session:
            result = await session.exec(select(JournalEntry).order_by(JournalEntry.entry_date.desc()))
            return list(result.all())

    async def delete_entry(self, entry_date: date) -> bool:
        """Delete an entry and its image records. Image files are left in the store."""
        async with self.async_session() as session:
            result = await session.exec(select(JournalEntry).where(JournalEntry.entry_date == entry_date))
            entry = result.first()
            if not entry:
                return False
            await session.exec(delete(JournalImage).where(JournalImage.entry_id == entry.id))
            await session.delete(entry)
            await session.commit()
            return True

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield an async session for advanced scenarios."""
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @staticmethod
    async def _load_images(session: AsyncSession, entry_id: int | None) -> list[JournalImage]:
        result = await session.exec(
            select(JournalImage).where(JournalImage.entry_id == entry_id).order_by(JournalImage.id)
        )
        return list(result.all())
