# ABOUTME: Content normalizer orchestrating sanitize, inline extraction and direct uploads
# ABOUTME: Produces a NormalizedEntry or fails atomically when the image store fails

import asyncio
from collections.abc import Mapping, Sequence
from datetime import date

from trade_journal.content.base import ImageStore, StorageError, UnsupportedMediaError
from trade_journal.content.images import (
    DEFAULT_INLINE_SUBTYPES,
    Base64ImageExtractor,
    extension_for_subtype,
    generate_upload_filename,
)
from trade_journal.content.models import (
    CHART_UPLOAD_SECTION,
    DirectUpload,
    ExtractedImage,
    ExtractionContext,
    ExtractionResult,
    ImageManifest,
    NormalizedEntry,
    SkippedImage,
)
from trade_journal.content.sanitizer import HtmlSanitizer
from trade_journal.utils.logging import get_logger, with_async_operation_context

DEFAULT_UPLOAD_TYPES = frozenset({"image/png", "image/jpeg", "image/jpg"})


def split_captions(captions_blob: str | None) -> list[str]:
    """Split a newline-delimited captions blob into trimmed captions aligned by index."""
    if not captions_blob:
        return []
    return [line.strip() for line in captions_blob.splitlines()]


class ContentNormalizer:
    """Turns a raw entry submission into sanitized fields and an image manifest.

    Fields are processed concurrently; results are assembled in submission order. Filenames
    carry enough entropy that concurrent fields and requests cannot collide.
    """

    def __init__(
        self,
        store: ImageStore,
        sanitizer: HtmlSanitizer | None = None,
        extractor: Base64ImageExtractor | None = None,
        allowed_upload_types: frozenset[str] = DEFAULT_UPLOAD_TYPES,
        inline_subtypes: frozenset[str] = DEFAULT_INLINE_SUBTYPES,
    ):
        self.store = store
        self.sanitizer = sanitizer or HtmlSanitizer()
        self.extractor = extractor or Base64ImageExtractor(store, allowed_subtypes=inline_subtypes)
        self.allowed_upload_types = frozenset(t.lower() for t in allowed_upload_types)
        self.logger = get_logger(__name__)

    @with_async_operation_context("normalize_entry")
    async def normalize(
        self,
        submission: Mapping[str, str | None],
        direct_uploads: Sequence[DirectUpload],
        entry_date: date,
        captions_blob: str | None = None,
    ) -> NormalizedEntry:
        """Normalize every field of a submission and store all of its images.

        Args:
            submission: Field key to raw value, in form order
            direct_uploads: Files attached to the entry, in upload order
            entry_date: Calendar date of the entry
            captions_blob: Newline-delimited captions aligned with ``direct_uploads``

        Returns:
            Normalized fields, the entry-wide manifest and skipped-image details

        Raises:
            StorageError: If any image write fails. Nothing should be persisted by the caller.
        """
        keys = list(submission.keys())
        outcomes = await asyncio.gather(
            *(self._normalize_field(key, submission[key], entry_date) for key in keys),
            return_exceptions=True,
        )

        fields: dict[str, str | None] = {}
        images: list[ExtractedImage] = []
        skipped: list[SkippedImage] = []
        failures: list[StorageError] = []

        for key, outcome in zip(keys, outcomes, strict=True):
            if isinstance(outcome, StorageError):
                failures.append(outcome)
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            value, result = outcome
            fields[key] = value
            if result is not None:
                images.extend(result.images)
                skipped.extend(result.skipped)

        if failures:
            raise self._storage_failure(failures, written=images) from failures[0]

        try:
            uploaded, upload_skips = await self._store_uploads(direct_uploads, entry_date, captions_blob)
        except StorageError as e:
            raise self._storage_failure([e], written=images) from e

        images.extend(uploaded)
        skipped.extend(upload_skips)

        if skipped:
            self.logger.warning("Images skipped during normalization", skipped=len(skipped), stored=len(images))

        return NormalizedEntry(fields=fields, manifest=ImageManifest(images=images), skipped=skipped)

    async def _normalize_field(
        self, key: str, value: str | None, entry_date: date
    ) -> tuple[str | None, ExtractionResult | None]:
        if value is None:
            return None, None

        if "<" not in value:
            return value.strip(), None

        pre = self.sanitizer.sanitize(value, allow_data_images=True)
        result = await self.extractor.extract(pre, ExtractionContext(entry_date=entry_date, section_key=key))
        final = self.sanitizer.sanitize(result.html, allow_data_images=False)
        return final, result

    async def _store_uploads(
        self, uploads: Sequence[DirectUpload], entry_date: date, captions_blob: str | None
    ) -> tuple[list[ExtractedImage], list[SkippedImage]]:
        captions = split_captions(captions_blob)
        images: list[ExtractedImage] = []
        skipped: list[SkippedImage] = []

        for index, upload in enumerate(uploads):
            if not upload.data:
                self.logger.debug("Skipping empty upload", position=index, name=upload.original_name)
                skipped.append(
                    SkippedImage(source_field=CHART_UPLOAD_SECTION, position=index, reason="empty_upload")
                )
                continue

            try:
                extension = self._validate_upload(upload)
            except UnsupportedMediaError as e:
                self.logger.warning(
                    "Skipping upload with unsupported media type",
                    position=index,
                    name=upload.original_name,
                    content_type=upload.content_type,
                )
                skipped.append(
                    SkippedImage(
                        source_field=CHART_UPLOAD_SECTION,
                        position=index,
                        reason="unsupported_media_type",
                        detail=str(e),
                    )
                )
                continue

            filename = generate_upload_filename(entry_date, upload.original_name, default_extension=extension)
            try:
                stored = await self.store.put(upload.data, filename)
            except StorageError as e:
                raise StorageError(str(e), orphaned_paths=[img.stored_path for img in images]) from e

            caption = upload.caption
            if caption is None:
                caption = captions[index] if index < len(captions) else ""
            images.append(
                ExtractedImage(
                    filename=stored.filename,
                    stored_path=stored.stored_relative_path,
                    source_field=CHART_UPLOAD_SECTION,
                    ordinal_position=index,
                    caption=caption.strip(),
                )
            )
            self.logger.info("Saved uploaded image", filename=stored.filename, position=index)

        return images, skipped

    def _validate_upload(self, upload: DirectUpload) -> str:
        """Return the default extension for an allowed upload."""
        content_type = upload.content_type.lower().split(";")[0].strip()
        if content_type not in self.allowed_upload_types:
            raise UnsupportedMediaError(f"Unsupported media type {content_type or 'unknown'} for {upload.original_name}")
        return "." + extension_for_subtype(content_type.split("/", 1)[-1])

    def _storage_failure(self, failures: list[StorageError], written: list[ExtractedImage]) -> StorageError:
        orphaned = [img.stored_path for img in written]
        for failure in failures:
            orphaned.extend(failure.orphaned_paths)
        self.logger.error(
            "Image storage failed; entry must not be persisted",
            failures=len(failures),
            error=str(failures[0]),
            orphaned_paths=orphaned,
        )
        return StorageError(f"Failed to store images: {failures[0]}", orphaned_paths=orphaned)
