# ABOUTME: Pydantic models for extracted images, image manifests and normalized entries
# ABOUTME: Encodes the replace-on-update rule for direct uploads versus inline images

from collections.abc import Iterable
from datetime import date
from typing import Literal

from pydantic import BaseModel, Field, computed_field

CHART_UPLOAD_SECTION = "chart_upload"

SkipReason = Literal["invalid_base64", "unsupported_subtype", "unsupported_media_type", "empty_upload"]


class ExtractedImage(BaseModel):
    """An image owned by one journal entry, from inline extraction or direct upload."""

    filename: str = Field(..., description="Generated, unique filename")
    stored_path: str = Field(..., description="Opaque store-relative path")
    source_field: str = Field(..., description="Field key the image came from, or chart_upload")
    ordinal_position: int = Field(..., ge=0, description="Index within its extraction pass or upload list")
    caption: str = Field(default="", description="Caption text, possibly empty")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_direct_upload(self) -> bool:
        """Whether this image was attached as a file rather than embedded in rich text."""
        return self.source_field == CHART_UPLOAD_SECTION


class SkippedImage(BaseModel):
    """An image that was not stored; reported back as a partial-success detail."""

    source_field: str
    position: int = Field(..., ge=0, description="Index of the candidate in document or upload order")
    reason: SkipReason
    detail: str = ""


class DirectUpload(BaseModel):
    """An image submitted as a separate file attachment."""

    data: bytes
    original_name: str
    content_type: str
    caption: str | None = Field(default=None, description="Explicit caption; falls back to the captions blob")


class ExtractionContext(BaseModel):
    """Where an HTML fragment came from."""

    entry_date: date
    section_key: str


class ExtractionResult(BaseModel):
    """Rewritten HTML plus the images pulled out of one field."""

    html: str
    images: list[ExtractedImage] = Field(default_factory=list)
    skipped: list[SkippedImage] = Field(default_factory=list)


class ImageManifest(BaseModel):
    """Ordered set of images belonging to one entry."""

    images: list[ExtractedImage] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.images)

    @property
    def inline_images(self) -> list[ExtractedImage]:
        return [img for img in self.images if not img.is_direct_upload]

    @property
    def direct_uploads(self) -> list[ExtractedImage]:
        return [img for img in self.images if img.is_direct_upload]

    def merged_with(self, new_images: Iterable[ExtractedImage]) -> "ImageManifest":
        """Return the manifest that results from re-saving an entry.

        Direct uploads from this manifest are replaced wholesale by the new set (even when it
        is empty); inline-extracted images are kept and the new images are appended.
        """
        kept = self.inline_images
        return ImageManifest(images=[*kept, *new_images])


class NormalizedEntry(BaseModel):
    """Sanitized field values plus their image manifest, ready for persistence."""

    fields: dict[str, str | None] = Field(default_factory=dict)
    manifest: ImageManifest = Field(default_factory=ImageManifest)
    skipped: list[SkippedImage] = Field(default_factory=list)

    @property
    def images(self) -> list[ExtractedImage]:
        return self.manifest.images

    @computed_field  # type: ignore[prop-decorator]
    @property
    def skipped_count(self) -> int:
        return len(self.skipped)
