"""Markdown -> HTML rendering and title extraction."""

from __future__ import annotations

import re
from html import unescape

import markdown

DEFAULT_TITLE = "Document"

# GitHub-flavoured behaviour: pipe tables, fenced code, ~~strike~~,
# task lists and bare-URL autolinks.  md_in_html lets imported callouts
# (<aside markdown="1">) carry Markdown content.
MARKDOWN_EXTENSIONS = [
    "tables",
    "fenced_code",
    "sane_lists",
    "md_in_html",
    "pymdownx.tilde",
    "pymdownx.tasklist",
    "pymdownx.magiclink",
]

MARKDOWN_EXTENSION_CONFIGS = {
    "pymdownx.tilde": {"subscript": False},
    "pymdownx.tasklist": {"custom_checkbox": False},
}

_SCRIPT_BLOCK = re.compile(r"<script[^>]*>[\s\S]*?</script>", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"""\s(on\w+)=["'][^"']*["']""", re.IGNORECASE)
_MARKDOWN_H1 = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_HTML_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)


def markdown_to_html(source: str) -> str:
    return markdown.markdown(
        source,
        extensions=MARKDOWN_EXTENSIONS,
        extension_configs=MARKDOWN_EXTENSION_CONFIGS,
        output_format="html",
    )


def sanitize_markdown(source: str) -> str:
    """Remove ``<script>`` blocks and inline ``on*=`` handlers from raw HTML in Markdown."""
    return _EVENT_HANDLER.sub("", _SCRIPT_BLOCK.sub("", source))


def extract_markdown_title(source: str) -> str:
    """Text of the first level-1 ATX heading, or ``"Document"``."""
    match = _MARKDOWN_H1.search(source)
    if match:
        title = match.group(1).strip().rstrip("#").strip()
        if title:
            return title
    return DEFAULT_TITLE


def extract_html_title(source: str) -> str | None:
    match = _HTML_TITLE.search(source)
    if match:
        title = unescape(match.group(1)).strip()
        return title or None
    return None
