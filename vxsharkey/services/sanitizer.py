"""HTML sanitization for untrusted note and profile text."""

from __future__ import annotations

import html
from functools import partial
from typing import Optional

from bleach.linkifier import LinkifyFilter
from bleach.sanitizer import Cleaner
from bs4 import BeautifulSoup

ALLOWED_TAGS = frozenset(
    {
        "p", "br", "b", "i", "em", "strong", "a", "span",
        "ul", "ol", "li", "blockquote", "code", "pre",
        "h1", "h2", "h3", "h4", "h5", "h6",
    }
)
ALLOWED_ATTRIBUTES = {
    "a": ["href", "class", "rel"],
    "span": ["class"],
    "code": ["class"],
}
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})

LINK_REL = "noopener noreferrer nofollow"

# Elements whose text content is dropped along with the tag
_NON_TEXT_TAGS = ["script", "style", "noscript", "iframe", "template", "textarea"]


def _harden_link(attrs: dict, new: bool = False) -> dict:
    """Force every anchor to open detached and pass no ranking signal."""
    attrs[(None, "rel")] = LINK_REL
    attrs[(None, "target")] = "_blank"
    return attrs


_note_cleaner = Cleaner(
    tags=ALLOWED_TAGS,
    attributes=ALLOWED_ATTRIBUTES,
    protocols=ALLOWED_PROTOCOLS,
    strip=True,
    strip_comments=True,
    filters=[partial(LinkifyFilter, callbacks=[_harden_link], skip_tags=["pre", "code"])],
)

_text_cleaner = Cleaner(
    tags=frozenset(),
    attributes={},
    strip=True,
    strip_comments=True,
)


def _drop_non_text(content: str) -> str:
    if "<" not in content:
        return content
    soup = BeautifulSoup(content, "html.parser")
    for tag in soup(_NON_TEXT_TAGS):
        tag.decompose()
    return str(soup)


def sanitize_note_content(content: Optional[str]) -> str:
    """Reduce note HTML to a safe allow-listed subset.

    Disallowed tags and attributes are removed rather than escaped, and all
    anchors get ``rel="noopener noreferrer nofollow"`` and ``target="_blank"``.
    """
    if not content:
        return ""
    return _note_cleaner.clean(_drop_non_text(content))


def strip_html(content: Optional[str]) -> str:
    """Remove all markup, returning plain text."""
    if not content:
        return ""
    return html.unescape(_text_cleaner.clean(_drop_non_text(content)))


def truncate_text(text: Optional[str], max_length: int = 200) -> str:
    """Cap ``text`` at ``max_length`` characters including the ``...`` marker."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    if max_length < 3:
        return text[: max(max_length, 0)]
    return text[: max_length - 3] + "..."
