"""Forgiving HTML -> Markdown conversion for HTML imports (e.g. Notion exports).

The converter walks BeautifulSoup's parse tree instead of rewriting the
raw string, so nested lists, tables inside callouts and inline markup
spanning several elements come out intact.  Callouts are kept as
``<aside markdown="1">`` blocks, which :mod:`pagecraft.markup` renders
with the ``md_in_html`` extension.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Comment, Doctype, NavigableString, Tag

from .markup import DEFAULT_TITLE
from .tables import html_table_to_markdown

_BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "dd", "details",
        "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
        "h1", "h2", "h3", "h4", "h5", "h6", "header", "hr", "html", "li", "main",
        "nav", "ol", "p", "pre", "section", "summary", "table", "ul",
    }
)
_DROPPED_TAGS = ("script", "style", "head", "template", "noscript")
_WHITESPACE = re.compile(r"\s+")
_MARKDOWN_SPECIAL = re.compile(r"([\\`*_\[\]])")
_EXTRA_BLANK_LINES = re.compile(r"\n{3,}")


class MarkdownConverter:
    """Convert an HTML document or fragment to Markdown."""

    def convert(self, html: str) -> str:
        soup = BeautifulSoup(html, "html.parser")
        for tag in soup.find_all(_DROPPED_TAGS):
            # A <style> inside <head> is already gone with its parent.
            if not tag.decomposed:
                tag.decompose()
        root = soup.body or soup
        markdown = self._blocks(root)
        return _EXTRA_BLANK_LINES.sub("\n\n", markdown).strip()

    # ------------------------------------------------------------------
    # Block level
    # ------------------------------------------------------------------

    def _blocks(self, node: Tag) -> str:
        blocks: list[str] = []
        pending: list[str] = []

        def flush() -> None:
            text = "".join(pending).strip()
            pending.clear()
            if text:
                blocks.append(text)

        for child in node.children:
            if isinstance(child, Tag) and child.name in _BLOCK_TAGS:
                flush()
                rendered = self._block(child)
                if rendered.strip():
                    blocks.append(rendered)
            else:
                pending.append(self._inline_node(child))
        flush()
        return "\n\n".join(blocks)

    def _block(self, tag: Tag) -> str:
        name = tag.name
        if name in ("h1", "h2", "h3", "h4", "h5", "h6"):
            text = self._inline(tag).strip()
            return f"{'#' * int(name[1])} {text}" if text else ""
        if name in ("p", "summary", "figcaption", "dd"):
            return self._inline(tag).strip()
        if name == "dt":
            return _wrap(self._inline(tag).strip(), "**")
        if name == "pre":
            return self._code_block(tag)
        if name in ("ul", "ol"):
            return self._list(tag, 0)
        if name == "li":
            return self._list_item(tag, "- ", 0)
        if name == "blockquote":
            return _quote(self._blocks(tag))
        if name == "table":
            return html_table_to_markdown(tag, render_cell=self._cell)
        if name == "hr":
            return "---"
        if name == "aside" or (name == "div" and _is_callout(tag)):
            inner = self._blocks(tag)
            return f'<aside markdown="1">\n\n{inner}\n\n</aside>' if inner else ""
        return self._blocks(tag)

    def _code_block(self, pre: Tag) -> str:
        code = pre.find("code")
        language = ""
        if isinstance(code, Tag):
            for cls in code.get("class") or []:
                if cls.startswith("language-"):
                    language = cls[len("language-") :]
                    break
        source = pre.get_text().strip("\n")
        fence = "```"
        while fence in source:
            fence += "`"
        return f"{fence}{language}\n{source}\n{fence}"

    def _list(self, tag: Tag, depth: int) -> str:
        ordered = tag.name == "ol"
        try:
            number = int(tag.get("start", 1))
        except (TypeError, ValueError):
            number = 1

        items: list[str] = []
        for li in tag.find_all("li", recursive=False):
            marker = f"{number}. " if ordered else "- "
            items.append(self._list_item(li, marker, depth))
            number += 1
        return "\n".join(item for item in items if item)

    def _list_item(self, li: Tag, marker: str, depth: int) -> str:
        indent = "    " * depth
        checkbox = _checkbox(li)
        if checkbox is not None:
            marker += "[x] " if checkbox.has_attr("checked") else "[ ] "

        parts: list[str] = []
        nested: list[str] = []
        for child in li.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                nested.append(self._list(child, depth + 1))
            elif child is checkbox:
                continue
            elif isinstance(child, Tag) and child.name in _BLOCK_TAGS:
                parts.append(" " + self._inline(child) + " ")
            else:
                parts.append(self._inline_node(child))

        text = _WHITESPACE.sub(" ", "".join(parts)).strip()
        lines = [f"{indent}{marker}{text}".rstrip()]
        lines.extend(block for block in nested if block)
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Inline level
    # ------------------------------------------------------------------

    def _inline(self, tag: Tag) -> str:
        return "".join(self._inline_node(child) for child in tag.children)

    def _cell(self, cell: Tag) -> str:
        return self._inline(cell).replace("  \n", " ").strip()

    def _inline_node(self, node: object) -> str:
        if isinstance(node, (Comment, Doctype)):
            return ""
        if isinstance(node, NavigableString):
            return _MARKDOWN_SPECIAL.sub(r"\\\1", _WHITESPACE.sub(" ", str(node)))
        if not isinstance(node, Tag):
            return ""

        name = node.name
        if name in ("strong", "b"):
            return _wrap(self._inline(node), "**")
        if name in ("em", "i", "u"):
            return _wrap(self._inline(node), "*")
        if name in ("del", "s", "strike"):
            return _wrap(self._inline(node), "~~")
        if name == "code":
            return _code_span(node.get_text())
        if name == "a":
            text = self._inline(node).strip()
            href = node.get("href")
            if not href:
                return text
            return f"[{text or href}]({href})"
        if name == "img":
            src = node.get("src")
            if not src:
                return ""
            return f"![{node.get('alt', '')}]({src})"
        if name == "br":
            return "  \n"
        if name == "input":
            return ""
        if name in _BLOCK_TAGS:
            return " " + self._inline(node) + " "
        return self._inline(node)


def _wrap(text: str, marker: str) -> str:
    """Wrap *text* in an emphasis marker, keeping outer whitespace outside."""
    stripped = text.strip()
    if not stripped:
        return text
    leading = text[: len(text) - len(text.lstrip())]
    trailing = text[len(text.rstrip()) :]
    return f"{leading}{marker}{stripped}{marker}{trailing}"


def _code_span(text: str) -> str:
    text = _WHITESPACE.sub(" ", text)
    if not text.strip():
        return ""
    if "`" in text:
        return f"`` {text} ``"
    return f"`{text}`"


def _quote(markdown: str) -> str:
    if not markdown:
        return ""
    return "\n".join(f"> {line}" if line else ">" for line in markdown.split("\n"))


def _is_callout(tag: Tag) -> bool:
    return any("callout" in cls for cls in tag.get("class") or [])


def _checkbox(li: Tag) -> Tag | None:
    for box in li.find_all("input", attrs={"type": "checkbox"}):
        if box.find_parent("li") is li:
            return box
    return None


def html_to_markdown(html: str) -> str:
    return MarkdownConverter().convert(html)


def extract_title_from_html(html: str) -> str:
    """Text of the first ``<h1>``, or ``"Document"``."""
    heading = BeautifulSoup(html, "html.parser").find("h1")
    if heading is not None:
        title = heading.get_text(" ", strip=True)
        if title:
            return title
    return DEFAULT_TITLE
