# ABOUTME: Inline base64 image extraction from rich-text HTML and unique filename generation
# ABOUTME: Scans img tags, decodes data URIs, stores bytes and splices in durable URLs

import base64
import binascii
import html
import re
import secrets
import time
from dataclasses import dataclass
from datetime import date
from pathlib import PurePosixPath

from trade_journal.content.base import DecodeError, ImageStore, StorageError
from trade_journal.content.models import ExtractedImage, ExtractionContext, ExtractionResult, SkippedImage
from trade_journal.utils.logging import get_logger, log_extraction_step

DEFAULT_INLINE_SUBTYPES = frozenset({"png", "jpeg", "jpg", "gif", "webp"})

_EXTENSION_OVERRIDES = {"jpeg": "jpg", "pjpeg": "jpg", "svg+xml": "svg", "x-icon": "ico"}

_IMG_TAG_RE = re.compile(r"""<img\b(?:[^>"']|"[^"]*"|'[^']*')*>""", re.IGNORECASE)
_DATA_SRC_RE = re.compile(
    r"""(?<![\w-])src\s*=\s*(?:"(?P<dq>data:[^"]*)"|'(?P<sq>data:[^']*)'|(?P<uq>data:[^\s"'>]+))""",
    re.IGNORECASE,
)
_DATA_URI_RE = re.compile(r"^data:image/(?P<subtype>[a-z0-9.+-]+);base64,(?P<payload>.*)$", re.IGNORECASE | re.DOTALL)
_UNSAFE_NAME_RE = re.compile(r"[^a-zA-Z0-9_-]")
_WHITESPACE_RE = re.compile(r"\s+")

TOKEN_BYTES = 8


def _random_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def safe_name_part(value: str, fallback: str = "file") -> str:
    """Reduce a string to filename-safe characters."""
    cleaned = _UNSAFE_NAME_RE.sub("_", value).strip("_")
    return cleaned or fallback


def extension_for_subtype(subtype: str) -> str:
    """Map an image MIME subtype to a file extension."""
    subtype = subtype.lower()
    return _EXTENSION_OVERRIDES.get(subtype, safe_name_part(subtype, fallback="img"))


def generate_inline_filename(section_key: str, subtype: str) -> str:
    """Filename for an image pulled out of a rich-text field.

    Combines a nanosecond timestamp, 64 random bits and the section key.
    """
    section = safe_name_part(section_key, fallback="section")
    return f"wysiwyg_{section}_{time.time_ns()}_{_random_token()}.{extension_for_subtype(subtype)}"


def generate_upload_filename(entry_date: date, original_name: str, default_extension: str = "") -> str:
    """Filename for a direct upload, embedding the entry date."""
    original = PurePosixPath(original_name.replace("\\", "/")).name
    suffix = PurePosixPath(original).suffix.lower()
    stem = original[: -len(suffix)] if suffix else original
    extension = suffix if re.fullmatch(r"\.[a-z0-9]{1,8}", suffix) else default_extension
    return f"{entry_date:%Y%m%d}_{time.time_ns()}_{_random_token()}_{safe_name_part(stem)}{extension}"


@dataclass(slots=True)
class DataUriMatch:
    """A data URI inside an img tag, located by absolute offsets in the fragment."""

    start: int
    end: int
    uri: str


def find_data_uris(fragment: str) -> list[DataUriMatch]:
    """Locate image data URIs in ``src`` attributes of img tags, in document order."""
    matches: list[DataUriMatch] = []
    for tag in _IMG_TAG_RE.finditer(fragment):
        src = _DATA_SRC_RE.search(tag.group(0))
        if not src:
            continue
        group = next(name for name in ("dq", "sq", "uq") if src.group(name) is not None)
        uri = src.group(group)
        if not uri.lower().startswith("data:image/"):
            continue
        matches.append(
            DataUriMatch(start=tag.start() + src.start(group), end=tag.start() + src.end(group), uri=uri)
        )
    return matches


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Decode ``data:image/<subtype>;base64,<payload>`` into (subtype, bytes).

    Raises:
        DecodeError: If the URI is not base64 image data or the payload is empty or invalid
    """
    parsed = _DATA_URI_RE.match(uri)
    if not parsed:
        raise DecodeError("Not a base64 image data URI")

    payload = _WHITESPACE_RE.sub("", html.unescape(parsed.group("payload")))
    if not payload:
        raise DecodeError("Empty base64 payload")

    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 payload: {e}") from e

    if not data:
        raise DecodeError("Empty base64 payload")

    return parsed.group("subtype").lower(), data


class Base64ImageExtractor:
    """Moves inline base64 images out of HTML into an ImageStore.

    Matches are collected first and the output is spliced together afterwards, so offsets
    never shift while scanning. Bytes outside the matched data URIs are left untouched.
    """

    def __init__(self, store: ImageStore, allowed_subtypes: frozenset[str] = DEFAULT_INLINE_SUBTYPES):
        self.store = store
        self.allowed_subtypes = frozenset(s.lower() for s in allowed_subtypes)
        self.logger = get_logger(__name__)

    @log_extraction_step("inline_image_extraction")
    async def extract(self, fragment: str, context: ExtractionContext) -> ExtractionResult:
        """Extract every well-formed base64 image from one field's HTML.

        Args:
            fragment: HTML of a single rich-text field
            context: Entry date and the field key used as the image's section

        Returns:
            Rewritten HTML, extracted images in document order, and skipped candidates

        Raises:
            StorageError: If the store fails; carries the paths already written for this field
        """
        matches = find_data_uris(fragment)
        if not matches:
            return ExtractionResult(html=fragment)

        images: list[ExtractedImage] = []
        skipped: list[SkippedImage] = []
        replacements: list[tuple[int, int, str]] = []

        for position, match in enumerate(matches):
            try:
                subtype, data = decode_data_uri(match.uri)
            except DecodeError as e:
                self.logger.warning(
                    "Skipping undecodable inline image", section=context.section_key, position=position, error=str(e)
                )
                skipped.append(
                    SkippedImage(
                        source_field=context.section_key, position=position, reason="invalid_base64", detail=str(e)
                    )
                )
                continue

            if subtype not in self.allowed_subtypes:
                self.logger.warning(
                    "Skipping inline image with unsupported subtype",
                    section=context.section_key,
                    position=position,
                    subtype=subtype,
                )
                skipped.append(
                    SkippedImage(
                        source_field=context.section_key,
                        position=position,
                        reason="unsupported_subtype",
                        detail=subtype,
                    )
                )
                continue

            filename = generate_inline_filename(context.section_key, subtype)
            try:
                stored = await self.store.put(data, filename)
            except StorageError as e:
                raise StorageError(str(e), orphaned_paths=[img.stored_path for img in images]) from e

            replacements.append((match.start, match.end, html.escape(stored.public_url, quote=True)))
            images.append(
                ExtractedImage(
                    filename=stored.filename,
                    stored_path=stored.stored_relative_path,
                    source_field=context.section_key,
                    ordinal_position=len(images),
                    caption="",
                )
            )
            self.logger.debug(
                "Extracted inline image", section=context.section_key, filename=stored.filename, size=len(data)
            )

        return ExtractionResult(html=splice(fragment, replacements), images=images, skipped=skipped)


def splice(text: str, replacements: list[tuple[int, int, str]]) -> str:
    """Replace non-overlapping ``(start, end, value)`` spans in one pass."""
    if not replacements:
        return text
    parts: list[str] = []
    cursor = 0
    for start, end, value in sorted(replacements):
        parts.append(text[cursor:start])
        parts.append(value)
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)
