# ABOUTME: Persistence models for journal entries and their images
# ABOUTME: One entry per calendar date; images keep section and position for re-save rules

from __future__ import annotations

from datetime import UTC, date, datetime

from sqlmodel import JSON, Column, Field, SQLModel

from trade_journal.content.models import ExtractedImage


def utcnow() -> datetime:
    """Returns the current UTC timestamp."""

    return datetime.now(UTC)


class JournalEntry(SQLModel, table=True):
    """A journal entry keyed by calendar date."""

    __tablename__ = "journal_entry"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True, description="Primary key for the entry")
    entry_date: date = Field(index=True, unique=True, description="Calendar date of the entry")
    content: dict[str, str | None] = Field(
        default_factory=dict,
        sa_column=Column(JSON),
        description="Normalized field values keyed by field key",
    )
    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last modification timestamp")


class JournalImage(SQLModel, table=True):
    """An image belonging to a journal entry."""

    __tablename__ = "journal_image"  # type: ignore[assignment]

    id: int | None = Field(default=None, primary_key=True, description="Primary key for the image")
    entry_id: int = Field(index=True, foreign_key="journal_entry.id", description="FK to journal_entry.id")
    filename: str = Field(description="Generated filename, referenced by ![[filename]] tokens")
    image_path: str = Field(description="Store-relative path")
    caption: str = Field(default="", description="Caption text")
    section: str = Field(description="Source field key, or chart_upload for direct uploads")
    position: int = Field(default=0, description="Ordinal within the extraction pass or upload list")
    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")

    @classmethod
    def from_extracted(cls, entry_id: int, image: ExtractedImage) -> JournalImage:
        return cls(
            entry_id=entry_id,
            filename=image.filename,
            image_path=image.stored_path,
            caption=image.caption,
            section=image.source_field,
            position=image.ordinal_position,
        )

    def to_extracted(self) -> ExtractedImage:
        return ExtractedImage(
            filename=self.filename,
            stored_path=self.image_path,
            source_field=self.section,
            ordinal_position=self.position,
            caption=self.caption,
        )
