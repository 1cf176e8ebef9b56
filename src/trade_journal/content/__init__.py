# ABOUTME: Rich-text ingestion pipeline for journal entries
# ABOUTME: Sanitization, inline image extraction, normalization and wikilink resolution

"""
Content Layer: Turn untrusted rich text into storage-safe HTML

This layer handles:
- Allow-list HTML sanitization
- Extraction of inline base64 images into an ImageStore
- Per-entry normalization of fields and direct uploads
- Render-time resolution of ![[filename]] image tokens

Data Flow: Submission → Sanitize → Extract images → Sanitize → NormalizedEntry
"""

from .base import ContentError, DecodeError, ImageStore, StorageError, StoredImage, UnsupportedMediaError
from .images import Base64ImageExtractor
from .models import (
    CHART_UPLOAD_SECTION,
    DirectUpload,
    ExtractedImage,
    ExtractionContext,
    ExtractionResult,
    ImageManifest,
    NormalizedEntry,
    SkippedImage,
)
from .normalizer import ContentNormalizer
from .plaintext import to_plain_text
from .sanitizer import HtmlSanitizer
from .wikilinks import WikilinkImageResolver

__all__ = [
    "CHART_UPLOAD_SECTION",
    "Base64ImageExtractor",
    "ContentError",
    "ContentNormalizer",
    "DecodeError",
    "DirectUpload",
    "ExtractedImage",
    "ExtractionContext",
    "ExtractionResult",
    "HtmlSanitizer",
    "ImageManifest",
    "ImageStore",
    "NormalizedEntry",
    "SkippedImage",
    "StorageError",
    "StoredImage",
    "UnsupportedMediaError",
    "WikilinkImageResolver",
    "to_plain_text",
]
