# ABOUTME: Storage protocol and error taxonomy for the rich-text ingestion pipeline
# ABOUTME: Defines the ImageStore interface the extractor and normalizer write through

from typing import Protocol

from pydantic import BaseModel


class StoredImage(BaseModel):
    """Reference to bytes persisted by an ImageStore."""

    filename: str
    stored_relative_path: str
    public_url: str


class ImageStore(Protocol):
    """Protocol for persisting image bytes at a unique, addressable path.

    Implementations know nothing about HTML. A write is all-or-nothing per file.
    """

    async def put(self, data: bytes, suggested_name: str) -> StoredImage:
        """Persist bytes under the suggested name.

        Args:
            data: Raw image bytes
            suggested_name: Desired filename (already unique when generated by the pipeline)

        Returns:
            Reference to the stored file

        Raises:
            StorageError: If the bytes could not be written
        """
        ...

    def public_url(self, relative_path: str) -> str:
        """Map a store-relative path to the URL it is served under."""
        ...


class ContentError(Exception):
    """Base class for content normalization errors."""

    pass


class DecodeError(ContentError):
    """Raised when an inline data URI does not carry valid base64 image data."""

    pass


class UnsupportedMediaError(ContentError):
    """Raised when a direct upload has a content type outside the allow-list."""

    pass


class StorageError(ContentError):
    """Raised when an ImageStore write fails.

    ``orphaned_paths`` lists store-relative paths already written during the same
    normalization call. They are not removed automatically.
    """

    def __init__(self, message: str, orphaned_paths: list[str] | None = None):
        super().__init__(message)
        self.orphaned_paths: list[str] = list(orphaned_paths or [])
