"""Document assembler — wraps body markup, stylesheet and title into one page."""

from __future__ import annotations

import re
from html import escape

_HEAD_CLOSE = re.compile(r"</head\s*>", re.IGNORECASE)
_TITLE_TAG = re.compile(r"<title[^>]*>[\s\S]*?</title\s*>", re.IGNORECASE)
_HEAD_OPEN = re.compile(r"<head\b[^>]*>", re.IGNORECASE)
_HTML_OPEN = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_DOCTYPE = re.compile(r"<!doctype[^>]*>", re.IGNORECASE)


def is_full_document(markup: str) -> bool:
    head = markup.lstrip().lower()
    return head.startswith("<!doctype") or head.startswith("<html")


def wrap_document(body: str, stylesheet: str, title: str = "Document") -> str:
    """Wrap a body fragment in a complete HTML document."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape(title)}</title>
  <style>
{stylesheet}
  </style>
</head>
<body>
  <div class="document-content">
{body}
  </div>
</body>
</html>"""


def inject_into_document(document: str, stylesheet: str, title: str | None = None) -> str:
    """Add *stylesheet* to an existing document; replace its title if *title* is given.

    The stylesheet goes last in ``<head>`` so it wins over the source's own
    rules of equal specificity.
    """
    style = f"<style>{stylesheet}</style>"
    title_tag = f"<title>{escape(title)}</title>" if title else ""

    if title and _TITLE_TAG.search(document):
        document = _TITLE_TAG.sub(lambda _: title_tag, document, count=1)
        title_tag = ""

    if _HEAD_CLOSE.search(document):
        return _HEAD_CLOSE.sub(lambda _: f"{title_tag}{style}</head>", document, count=1)

    head_open = _HEAD_OPEN.search(document)
    if head_open:
        return _insert_at(document, head_open.end(), f"{title_tag}{style}")

    # No head element at all: add one after <html> or the doctype.
    anchor = _HTML_OPEN.search(document) or _DOCTYPE.search(document)
    return _insert_at(document, anchor.end() if anchor else 0, f"<head>{title_tag}{style}</head>")


def _insert_at(text: str, index: int, insertion: str) -> str:
    return text[:index] + insertion + text[index:]


def assemble_document(markup: str, stylesheet: str, title: str, *, title_override: bool = False) -> str:
    """Produce the final self-contained document.

    Fragments are wrapped with :func:`wrap_document`.  Complete documents
    keep their own structure: the stylesheet is injected before
    ``</head>`` and, when *title_override* is set, the existing
    ``<title>`` is replaced rather than duplicated.
    """
    if is_full_document(markup):
        return inject_into_document(markup, stylesheet, title if title_override else None)
    return wrap_document(markup, stylesheet, title)
