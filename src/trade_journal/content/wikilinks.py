# ABOUTME: Render-time resolution of ![[filename]] tokens into image blocks
# ABOUTME: Read-only transform over stored HTML; unknown tokens stay visible verbatim

import html
import re
from collections.abc import Callable, Iterable

from trade_journal.content.base import ImageStore
from trade_journal.content.models import ExtractedImage

WIKILINK_RE = re.compile(r"!\[\[([^\[\]]+)\]\]")

DEFAULT_ALT_TEXT = "Trading chart"


class WikilinkImageResolver:
    """Replaces ``![[<filename>]]`` with an img block sourced from the entry's manifest.

    Filenames match case-sensitively and literally. All tokens are resolved in a single
    pass, so text inserted for one image is never rescanned for another token.
    """

    def __init__(
        self,
        public_base_url: str = "/uploads",
        fallback_alt: str = DEFAULT_ALT_TEXT,
        url_for: Callable[[str], str] | None = None,
    ):
        self.public_base_url = public_base_url.rstrip("/")
        self.fallback_alt = fallback_alt
        self.url_for = url_for

    @classmethod
    def for_store(cls, store: ImageStore, fallback_alt: str = DEFAULT_ALT_TEXT) -> "WikilinkImageResolver":
        """Build a resolver that addresses images exactly as ``store`` serves them."""
        return cls(fallback_alt=fallback_alt, url_for=store.public_url)

    def image_url(self, image: ExtractedImage) -> str:
        if self.url_for is not None:
            return self.url_for(image.stored_path)
        return f"{self.public_base_url}/{image.stored_path.lstrip('/')}"

    def render_block(self, image: ExtractedImage) -> str:
        caption = image.caption.strip()
        src = html.escape(self.image_url(image), quote=True)
        alt = html.escape(caption or self.fallback_alt, quote=True)
        block = f'<div class="journal-image"><img src="{src}" alt="{alt}" class="journal-image__img">'
        if caption:
            block += f'<p class="journal-image__caption">{html.escape(caption)}</p>'
        return block + "</div>"

    def resolve(self, text: str | None, images: Iterable[ExtractedImage]) -> str:
        """Return ``text`` with every token for a known image replaced.

        Args:
            text: Stored, already-sanitized field value (HTML or plain text)
            images: The entry's image manifest

        Returns:
            Text with resolved image blocks; tokens without a matching image are unchanged
        """
        if not text or "![[" not in text:
            return text or ""

        blocks: dict[str, str] = {}
        for image in images:
            blocks.setdefault(image.filename, self.render_block(image))

        if not blocks:
            return text

        def replace(match: re.Match[str]) -> str:
            return blocks.get(match.group(1), match.group(0))

        return WIKILINK_RE.sub(replace, text)
