# ABOUTME: Tests for the allow-list HTML sanitizer
# ABOUTME: Covers script removal, attribute filtering, data image handling and idempotence

import html
import random
from unittest.mock import patch

import pytest

from trade_journal.content.sanitizer import HtmlSanitizer

HOSTILE_INPUTS = [
    "<p>a</p><script>alert(1)</script>",
    "<p>x<script>alert(1)",
    "<SCRIPT src=//evil.js></SCRIPT><b>bold</b>",
    '<img src="https://x.test/a.png" onerror="alert(1)">',
    '<a href="javascript:alert(1)">click</a>',
    "<div><span>nested <em>text</em></span></div>",
    "<p>unclosed <strong>tags",
    "<style>p{color:red}</style><p>styled</p>",
    "<!-- secret --><p>visible</p>",
    '<font color="red">plain</font>',
    "<scr<!---->ipt>alert(1)</script><p>after</p>",
    "<sty<!-- x -->le>p{}</style>",
]

FRAGMENT_PIECES = [
    "<p>",
    "</p>",
    "<b>",
    "</b>",
    "<ul><li>",
    "</li></ul>",
    "<script>",
    "</script>",
    "<scr",
    "ipt>",
    "<!--",
    "-->",
    "<style>",
    "</style>",
    '<a href="javascript:alert(1)">',
    "</a>",
    '<img alt="a > b" src="data:image/png;base64,iVBORw0KGgo=" onerror="alert(1)">',
    '<div onclick="x()">',
    "</div>",
    "text",
    " & ",
    "<",
    ">",
    "\n",
]


def _generated_fragments(count: int = 300, seed: int = 20240305) -> list[str]:
    rng = random.Random(seed)
    return ["".join(rng.choices(FRAGMENT_PIECES, k=rng.randint(1, 12))) for _ in range(count)]


@pytest.fixture
def sanitizer() -> HtmlSanitizer:
    return HtmlSanitizer()


class TestSanitize:
    """Allow-list behaviour."""

    def test_script_block_removed_with_content(self, sanitizer):
        assert sanitizer.sanitize("<p>a</p><script>alert(1)</script>") == "<p>a</p>"

    def test_unterminated_script_removed(self, sanitizer):
        result = sanitizer.sanitize("<p>x<script>alert(1)")
        assert "<script" not in result.lower()
        assert "alert" not in result
        assert "x" in result

    def test_style_block_removed(self, sanitizer):
        assert sanitizer.sanitize("<style>p{color:red}</style><p>styled</p>") == "<p>styled</p>"

    def test_event_handler_attribute_removed(self, sanitizer):
        result = sanitizer.sanitize('<img src="https://x.test/a.png" onerror="alert(1)">')
        assert result == '<img src="https://x.test/a.png">'

    def test_javascript_href_removed(self, sanitizer):
        result = sanitizer.sanitize('<a href="javascript:alert(1)">click</a>')
        assert "javascript" not in result
        assert "click" in result

    def test_safe_link_kept(self, sanitizer):
        result = sanitizer.sanitize('<a href="https://example.com" title="t">x</a>')
        assert result == '<a href="https://example.com" title="t">x</a>'

    def test_disallowed_tag_stripped_text_kept(self, sanitizer):
        assert sanitizer.sanitize('<font color="red">plain</font>') == "plain"

    def test_comments_removed(self, sanitizer):
        assert sanitizer.sanitize("<!-- secret --><p>visible</p>") == "<p>visible</p>"

    def test_empty_input(self, sanitizer):
        assert sanitizer.sanitize("") == ""

    def test_disallowed_attribute_on_allowed_tag(self, sanitizer):
        assert sanitizer.sanitize('<p style="color:red" class="x">t</p>') == "<p>t</p>"


class TestDataImages:
    """Data URI handling around the extraction pass."""

    DATA_IMG = '<img src="data:image/png;base64,iVBORw0KGgo=">'

    def test_data_image_kept_when_allowed(self, sanitizer):
        result = sanitizer.sanitize(self.DATA_IMG, allow_data_images=True)
        assert 'src="data:image/png;base64,iVBORw0KGgo="' in result

    def test_data_image_dropped_by_default(self, sanitizer):
        result = sanitizer.sanitize(self.DATA_IMG)
        assert "data:" not in result
        assert result == "<img>"

    def test_non_image_data_uri_dropped_even_when_allowed(self, sanitizer):
        result = sanitizer.sanitize('<img src="data:text/html;base64,PHNjcmlwdD4=">', allow_data_images=True)
        assert "data:" not in result

    def test_data_uri_never_allowed_on_links(self, sanitizer):
        result = sanitizer.sanitize('<a href="data:text/html;base64,PHNjcmlwdD4=">x</a>')
        assert "data:" not in result


class TestTotality:
    """The sanitizer never raises and is idempotent."""

    @pytest.mark.parametrize("fragment", HOSTILE_INPUTS)
    def test_idempotent(self, sanitizer, fragment):
        once = sanitizer.sanitize(fragment)
        assert sanitizer.sanitize(once) == once

    @pytest.mark.parametrize("fragment", HOSTILE_INPUTS)
    def test_never_contains_script(self, sanitizer, fragment):
        assert "<script" not in sanitizer.sanitize(fragment).lower()

    def test_comment_cannot_reassemble_script(self, sanitizer):
        result = sanitizer.sanitize("<scr<!---->ipt>alert(1)</script><p>after</p>")
        assert result == "<p>after</p>"

    @pytest.mark.parametrize("allow_data_images", [False, True])
    def test_generated_fragments_are_safe_and_stable(self, sanitizer, allow_data_images):
        for fragment in _generated_fragments():
            once = sanitizer.sanitize(fragment, allow_data_images=allow_data_images)
            lowered = once.lower()
            assert "<script" not in lowered, fragment
            assert "<style" not in lowered, fragment
            assert "onerror" not in lowered, fragment
            assert "javascript:" not in lowered, fragment
            assert sanitizer.sanitize(once, allow_data_images=allow_data_images) == once, fragment

    def test_falls_back_to_escaping_on_parser_failure(self, sanitizer):
        fragment = "<p>broken</p>"
        with patch("trade_journal.content.sanitizer.bleach.clean", side_effect=ValueError("boom")):
            assert sanitizer.sanitize(fragment) == html.escape(fragment)
