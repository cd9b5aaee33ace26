"""Markup normalizer — makes the generated print stylesheet authoritative.

Passes (each idempotent, each usable on its own):

1. :func:`strip_conflicting_styles` removes ``@page`` rules from
   embedded ``<style>`` blocks and sizing declarations from inline
   ``style`` attributes.
2. :func:`highlight_code_blocks` runs Pygments over code blocks that
   have not been highlighted yet, marking them with the ``hljs`` class.
3. :func:`apply_break_hints` tags short code blocks, quotes and callouts
   so the stylesheet keeps them on one page.

:func:`normalize_markup` parses once and runs all three.
"""

from __future__ import annotations

import re

import structlog
from bs4 import BeautifulSoup, Tag
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, guess_lexer
from pygments.util import ClassNotFound

logger = structlog.get_logger()

HIGHLIGHT_MARKER = "hljs"
MIN_AUTODETECT_LENGTH = 10
SHORT_CODE_LINES = 20
SHORT_QUOTE_CHARS = 600

_PAGE_AT_RULE = re.compile(r"@page\b", re.IGNORECASE)

# Newline Pygments appends after the last token, possibly inside its span.
_TRAILING_NEWLINE = re.compile(r"\n((?:</span>)*)\Z")

_STRIPPED_PROPERTIES = frozenset(
    {
        "font-size",
        "line-height",
        "width",
        "min-width",
        "max-width",
        "min-height",
        "margin",
        "margin-top",
        "margin-right",
        "margin-bottom",
        "margin-left",
        "padding",
        "padding-top",
        "padding-right",
        "padding-bottom",
        "padding-left",
    }
)

_LEXER_ALIASES = {"plaintext": "text", "plain": "text", "txt": "text"}

_FORMATTER = HtmlFormatter(nowrap=True)


def parse(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


# ------------------------------------------------------------------
# Style stripping
# ------------------------------------------------------------------


def _declarations(style: str) -> list[str]:
    """Split a style attribute on ``;`` outside parentheses and quotes.

    ``url(data:image/png;base64,...)`` must stay one declaration.
    """
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    for char in style:
        if quote:
            if char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == ";" and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def clean_inline_style(style: str) -> str:
    """Drop sizing declarations from an inline style, keeping the rest."""
    kept: list[str] = []
    for declaration in _declarations(style):
        name, sep, value = declaration.partition(":")
        if not sep or not name.strip():
            continue
        if name.strip().lower() in _STRIPPED_PROPERTIES:
            continue
        kept.append(f"{name.strip()}: {value.strip()}")
    return "; ".join(kept)


def _block_end(css: str, start: int) -> int:
    """Index just past the ``{...}`` block opening at or after *start*.

    Nested blocks (margin boxes such as ``@bottom-center``) are skipped
    as a whole; an unterminated block runs to the end of *css*.
    """
    depth = 0
    quote: str | None = None
    index = css.find("{", start)
    semicolon = css.find(";", start)
    if index < 0 or 0 <= semicolon < index:
        # "@page;" with no block: drop up to the statement end.
        return len(css) if semicolon < 0 else semicolon + 1
    while index < len(css):
        char = css[index]
        if quote:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in "\"'":
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
        index += 1
    return len(css)


def remove_page_rules(css: str) -> str:
    """Remove every ``@page`` rule, including nested margin-box blocks."""
    parts: list[str] = []
    position = 0
    for match in _PAGE_AT_RULE.finditer(css):
        if match.start() < position:
            continue
        parts.append(css[position : match.start()])
        position = _block_end(css, match.end())
    parts.append(css[position:])
    return "".join(parts)


def _strip_styles(soup: BeautifulSoup) -> None:
    for style in soup.find_all("style"):
        css = style.string
        if css and _PAGE_AT_RULE.search(css):
            style.string = remove_page_rules(css)

    for tag in soup.find_all(style=True):
        cleaned = clean_inline_style(tag["style"])
        if cleaned:
            tag["style"] = cleaned
        else:
            del tag["style"]


def strip_conflicting_styles(html: str) -> str:
    soup = parse(html)
    _strip_styles(soup)
    return str(soup)


# ------------------------------------------------------------------
# Syntax highlighting
# ------------------------------------------------------------------


def _language_of(code: Tag) -> str | None:
    for cls in code.get("class") or []:
        if cls.startswith("language-"):
            return cls[len("language-") :]
    return None


def _lexer_for(source: str, language: str | None) -> Lexer | None:
    options = {"stripnl": False, "ensurenl": False}
    if language:
        try:
            return get_lexer_by_name(_LEXER_ALIASES.get(language, language), **options)
        except ClassNotFound:
            pass
    try:
        return guess_lexer(source, **options)
    except ClassNotFound:
        return None


def _highlight(soup: BeautifulSoup) -> int:
    count = 0
    for code in soup.find_all("code"):
        classes = list(code.get("class") or [])
        if HIGHLIGHT_MARKER in classes:
            continue

        language = _language_of(code)
        source = code.get_text()
        if language is None:
            parent = code.parent
            if parent is None or parent.name != "pre":
                continue
            if len(source.strip()) < MIN_AUTODETECT_LENGTH:
                continue

        lexer = _lexer_for(source, language)
        if lexer is None:
            continue

        highlighted = highlight(source, lexer, _FORMATTER)
        if not source.endswith("\n"):
            highlighted = _TRAILING_NEWLINE.sub(r"\1", highlighted)
        # Parsed inside <pre> so indentation-only strings survive.
        fragment = parse(f"<pre>{highlighted}</pre>").pre
        code.clear()
        for node in list(fragment.contents):
            code.append(node.extract())
        code["class"] = [HIGHLIGHT_MARKER, *classes]
        count += 1
    return count


def highlight_code_blocks(html: str) -> str:
    soup = parse(html)
    _highlight(soup)
    return str(soup)


# ------------------------------------------------------------------
# Page-break hints
# ------------------------------------------------------------------


def _add_class(tag: Tag, name: str) -> None:
    classes = list(tag.get("class") or [])
    if name not in classes:
        tag["class"] = [*classes, name]


def _apply_break_hints(soup: BeautifulSoup) -> None:
    for pre in soup.find_all("pre"):
        if pre.get_text().rstrip("\n").count("\n") + 1 < SHORT_CODE_LINES:
            _add_class(pre, "short-code")

    for tag in soup.find_all(["blockquote", "aside"]):
        if len(tag.get_text(strip=True)) <= SHORT_QUOTE_CHARS:
            _add_class(tag, "short")


def apply_break_hints(html: str) -> str:
    soup = parse(html)
    _apply_break_hints(soup)
    return str(soup)


# ------------------------------------------------------------------
# Combined
# ------------------------------------------------------------------


def normalize_markup(html: str) -> str:
    """Run every normalization pass over *html* in one parse."""
    soup = parse(html)
    _strip_styles(soup)
    highlighted = _highlight(soup)
    _apply_break_hints(soup)
    logger.debug("markup_normalized", highlighted_blocks=highlighted)
    return str(soup)


def sanitize_html_for_preview(html: str) -> str:
    """Strip ``<script>``/``<style>`` elements and inline event handlers."""
    soup = parse(html)
    for tag in soup.find_all(["script", "style"]):
        tag.decompose()
    for tag in soup.find_all(True):
        for attribute in [name for name in tag.attrs if name.lower().startswith("on")]:
            del tag[attribute]
    return str(soup)
