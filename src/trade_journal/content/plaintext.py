# ABOUTME: Plain-text rendering of sanitized field values for external summarization input
# ABOUTME: Strips markup and image tokens, unescapes entities and tidies whitespace

import html
import re

import bleach

from trade_journal.content.wikilinks import WIKILINK_RE

_BLOCK_BREAK_RE = re.compile(r"<\s*(?:br|/p|/li|/h[1-3]|/div|/blockquote|hr)\b[^>]*>", re.IGNORECASE)
_INLINE_SPACE_RE = re.compile(r"[ \t\u00a0]+")
_NEWLINE_RUN_RE = re.compile(r"\n{2,}")


def to_plain_text(value: str | None) -> str:
    """Strip tags and ``![[...]]`` tokens from a field value."""
    if not value:
        return ""
    text = _BLOCK_BREAK_RE.sub("\n", value)
    text = bleach.clean(text, tags=set(), attributes={}, strip=True, strip_comments=True)
    text = html.unescape(text)
    text = WIKILINK_RE.sub("", text)
    text = _INLINE_SPACE_RE.sub(" ", text)
    lines = [line.strip() for line in text.splitlines()]
    return _NEWLINE_RUN_RE.sub("\n", "\n".join(lines)).strip()
