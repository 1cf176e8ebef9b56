# ABOUTME: Allow-list HTML sanitizer for rich-text editor output using bleach
# ABOUTME: Keeps base64 image sources only for the pre-extraction pass

import html
import re

import bleach

from trade_journal.utils.logging import get_logger

ALLOWED_TAGS = frozenset(
    {
        "p",
        "br",
        "strong",
        "b",
        "em",
        "i",
        "ul",
        "ol",
        "li",
        "blockquote",
        "hr",
        "img",
        "a",
        "h1",
        "h2",
        "h3",
        "div",
        "span",
    }
)

ALLOWED_ATTRIBUTES = {
    "img": ["src", "alt", "class"],
    "a": ["href", "title"],
}

LINK_PROTOCOLS = frozenset({"http", "https", "mailto"})

# Script and style bodies are dropped with their content; an unterminated block runs to the end.
_DROP_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?(?:</\1\s*>|$)", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?(?:-->|$)", re.DOTALL)


def _strip_hidden_blocks(fragment: str) -> str:
    """Remove comments, then script/style blocks, until neither pass changes the text."""
    previous = None
    text = fragment
    while text != previous:
        previous = text
        text = _COMMENT_RE.sub("", text)
        text = _DROP_BLOCK_RE.sub("", text)
    return text


class HtmlSanitizer:
    """Sanitizes HTML fragments produced by the journal's rich-text editor.

    The sanitizer is total: it never raises. Disallowed tags are stripped (their text is kept),
    event-handler attributes and ``javascript:`` URIs are removed, and malformed markup is
    escaped rather than rejected.
    """

    def __init__(
        self,
        tags: frozenset[str] = ALLOWED_TAGS,
        attributes: dict[str, list[str]] | None = None,
        protocols: frozenset[str] = LINK_PROTOCOLS,
    ):
        self.tags = tags
        self.attributes = attributes or ALLOWED_ATTRIBUTES
        self.protocols = protocols
        self.logger = get_logger(__name__)

    def sanitize(self, fragment: str, allow_data_images: bool = False) -> str:
        """Return the sanitized fragment.

        Args:
            fragment: Untrusted HTML
            allow_data_images: Keep ``data:`` image sources so the extractor can consume them.
                After extraction this must be False so no embedded payload survives.

        Returns:
            HTML restricted to the allow-list
        """
        if not fragment:
            return ""

        protocols = self.protocols | {"data"} if allow_data_images else self.protocols
        pre = _strip_hidden_blocks(fragment)

        try:
            cleaned = bleach.clean(
                pre,
                tags=self.tags,
                attributes=self._attribute_filter(allow_data_images),
                protocols=protocols,
                strip=True,
                strip_comments=True,
            )
        except Exception as e:
            self.logger.warning(
                "Sanitizer fell back to escaping", error=str(e), error_type=type(e).__name__, length=len(fragment)
            )
            return html.escape(fragment)

        return cleaned

    def _attribute_filter(self, allow_data_images: bool):
        allowed = self.attributes

        def check(tag: str, name: str, value: str) -> bool:
            if name not in allowed.get(tag, ()):
                return False
            if tag == "img" and name == "src":
                scheme = value.strip().lower()
                if scheme.startswith("data:"):
                    return allow_data_images and scheme.startswith("data:image/")
            return True

        return check

