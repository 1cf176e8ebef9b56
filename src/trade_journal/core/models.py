# ABOUTME: Business domain models for the core layer - results handed to CLI and callers
# ABOUTME: Save outcomes and rendered entries built from persisted state

from datetime import date, datetime

from pydantic import BaseModel, Field, computed_field

from trade_journal.content.models import ImageManifest, SkippedImage


class SaveResult(BaseModel):
    """Outcome of saving one journal entry. Same shape for create and update."""

    entry_date: date = Field(description="Calendar date of the entry")
    created: bool = Field(description="True when the entry did not exist before this save")
    fields: dict[str, str | None] = Field(default_factory=dict, description="Stored field values after the merge")
    manifest: ImageManifest = Field(default_factory=ImageManifest, description="All images now attached to the entry")
    new_image_count: int = Field(default=0, ge=0, description="Images produced by this save")
    skipped: list[SkippedImage] = Field(default_factory=list, description="Candidates that were not stored")
    updated_at: datetime | None = Field(default=None, description="Last modification timestamp")

    @computed_field
    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class RenderedEntry(BaseModel):
    """An entry with image tokens resolved for display. Never written back."""

    entry_date: date
    fields: dict[str, str | None] = Field(default_factory=dict, description="Field values ready for embedding")
    manifest: ImageManifest = Field(default_factory=ImageManifest)
    gallery: list[str] = Field(
        default_factory=list, description="Image blocks for direct uploads, in upload order"
    )
