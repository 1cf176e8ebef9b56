# ABOUTME: High-level service API for saving, rendering and exporting journal entries
# ABOUTME: Composes the content normalizer, image store, database and wikilink resolver

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date

from trade_journal.config import Config, get_config
from trade_journal.content import (
    ContentNormalizer,
    DirectUpload,
    StorageError,
    WikilinkImageResolver,
)
from trade_journal.content.base import ImageStore
from trade_journal.core.fields import format_entry_as_text
from trade_journal.core.models import RenderedEntry, SaveResult
from trade_journal.persistence import DatabaseManager, JournalEntry
from trade_journal.storage import LocalImageStore
from trade_journal.utils.logging import get_logger, with_entry_context


class EntryNotFoundError(LookupError):
    """Raised when no entry exists for the requested date."""

    def __init__(self, entry_date: date):
        super().__init__(f"No journal entry for {entry_date.isoformat()}")
        self.entry_date = entry_date


class JournalService:
    """Service for journal entries: normalize on save, resolve image tokens on read."""

    def __init__(
        self,
        database: DatabaseManager,
        store: ImageStore,
        normalizer: ContentNormalizer | None = None,
        resolver: WikilinkImageResolver | None = None,
    ):
        self.database = database
        self.store = store
        self.normalizer = normalizer or ContentNormalizer(store)
        self.resolver = resolver or WikilinkImageResolver.for_store(store)
        self.logger = get_logger(__name__)
        self._tables_ready = False

    @classmethod
    def from_config(cls, config: Config | None = None) -> JournalService:
        """Build a service with its collaborators wired from configuration."""
        config = config or get_config()
        store = LocalImageStore(
            config.upload_dir,
            public_base_url=config.public_base_url,
            subdir=config.image_subdir,
        )
        normalizer = ContentNormalizer(
            store,
            allowed_upload_types=frozenset(config.allowed_upload_types),
            inline_subtypes=frozenset(config.inline_image_subtypes),
        )
        return cls(
            database=DatabaseManager(config.database_url),
            store=store,
            normalizer=normalizer,
        )

    async def _ensure_tables(self) -> None:
        if not self._tables_ready:
            await self.database.create_tables()
            self._tables_ready = True

    async def save_entry(
        self,
        entry_date: date,
        submission: Mapping[str, str | None],
        direct_uploads: Sequence[DirectUpload] = (),
        captions_blob: str | None = None,
    ) -> SaveResult:
        """Normalize a submission and persist it.

        Raises:
            StorageError: An image could not be written. Nothing is persisted.
        """
        await self._ensure_tables()

        with with_entry_context(entry_date) as log:
            try:
                normalized = await self.normalizer.normalize(
                    submission, direct_uploads, entry_date, captions_blob=captions_blob
                )
            except StorageError as e:
                log.error(
                    "Entry not saved because image storage failed",
                    error=str(e),
                    orphaned_paths=e.orphaned_paths,
                )
                raise

            state = await self.database.save_entry(entry_date, normalized)
            log.info(
                "Journal entry saved",
                created=state.created,
                new_images=len(normalized.images),
                skipped=normalized.skipped_count,
            )

        return SaveResult(
            entry_date=entry_date,
            created=state.created,
            fields=dict(state.content),
            manifest=state.manifest,
            new_image_count=len(normalized.images),
            skipped=normalized.skipped,
            updated_at=state.updated_at,
        )

    async def render_entry(self, entry_date: date) -> RenderedEntry:
        """Resolve ``![[filename]]`` tokens against the stored manifest for display."""
        await self._ensure_tables()
        state = await self.database.get_entry(entry_date)
        if state is None:
            raise EntryNotFoundError(entry_date)

        manifest = state.manifest
        fields = {
            key: value if value is None else self.resolver.resolve(value, manifest.images)
            for key, value in state.content.items()
        }
        gallery = [self.resolver.render_block(image) for image in manifest.direct_uploads]
        return RenderedEntry(entry_date=entry_date, fields=fields, manifest=manifest, gallery=gallery)

    async def export_text(self, entry_date: date) -> str:
        """Render an entry as labelled plain text."""
        await self._ensure_tables()
        state = await self.database.get_entry(entry_date)
        if state is None:
            raise EntryNotFoundError(entry_date)
        return format_entry_as_text(entry_date, state.content)

    async def list_entries(self) -> list[JournalEntry]:
        await self._ensure_tables()
        return await self.database.list_entries()

    async def delete_entry(self, entry_date: date) -> bool:
        await self._ensure_tables()
        deleted = await self.database.delete_entry(entry_date)
        if deleted:
            self.logger.info("Journal entry deleted", entry_date=entry_date.isoformat())
        return deleted

    async def close(self) -> None:
        await self.database.close()
