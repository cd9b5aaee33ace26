"""Block transpiler — turns a materialized Notion block tree into HTML.

Traversal is depth-first pre-order.  Nesting depth is passed explicitly
to each handler; quote, callout, toggle and column children restart at
depth 0.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Mapping, Sequence
from html import escape
from urllib.parse import urlparse

import structlog

from .models import Block, BlockType, ConversionWarning, plain_text
from .richtext import render_rich_text
from .tables import render_table

logger = structlog.get_logger()

Handler = Callable[[Block, int], str]

DEFAULT_CALLOUT_ICON = "💡"
NEUTRAL_CALLOUT_COLOR = "gray_background"

_LANGUAGE_ALIASES = {
    "plain text": "plaintext",
    "c++": "cpp",
    "c#": "csharp",
    "f#": "fsharp",
    "objective-c": "objectivec",
    "shell": "bash",
    "vb.net": "vbnet",
    "visual basic": "vbnet",
    "java/c/c++/c#": "java",
    "markup": "html",
}

_MEDIA_LABELS = {
    BlockType.VIDEO: "Video",
    BlockType.FILE: "File",
    BlockType.PDF: "PDF",
    BlockType.BOOKMARK: "Bookmark",
    BlockType.EMBED: "Embed",
    BlockType.LINK_PREVIEW: "Link",
}


def normalize_language(language: str | None) -> str:
    """Map a Notion code-block language to a highlighter language tag."""
    if not language:
        return "plaintext"
    lowered = language.strip().lower()
    lowered = _LANGUAGE_ALIASES.get(lowered, lowered)
    return "-".join(lowered.split())


class BlockTranspiler:
    """Render blocks to HTML.

    *images* maps remote image URLs to their embedded references, as
    produced by :meth:`pagecraft.images.ImageResolver.resolve_blocks`.
    URLs missing from the mapping are used as-is.

    A block whose rendering raises is replaced by empty output and a
    :class:`ConversionWarning` is recorded; siblings are unaffected.
    """

    def __init__(self, images: Mapping[str, str] | None = None) -> None:
        self._images = dict(images or {})
        self._warnings: list[ConversionWarning] = []
        self._handlers: dict[BlockType, Handler] = {
            BlockType.PARAGRAPH: self._paragraph,
            BlockType.HEADING_1: self._heading,
            BlockType.HEADING_2: self._heading,
            BlockType.HEADING_3: self._heading,
            BlockType.BULLETED_LIST_ITEM: self._bulleted_list_item,
            BlockType.NUMBERED_LIST_ITEM: self._numbered_list_item,
            BlockType.TO_DO: self._to_do,
            BlockType.TOGGLE: self._toggle,
            BlockType.CODE: self._code,
            BlockType.QUOTE: self._quote,
            BlockType.CALLOUT: self._callout,
            BlockType.DIVIDER: self._divider,
            BlockType.IMAGE: self._image,
            BlockType.VIDEO: self._media_link,
            BlockType.FILE: self._media_link,
            BlockType.PDF: self._media_link,
            BlockType.BOOKMARK: self._media_link,
            BlockType.EMBED: self._media_link,
            BlockType.LINK_PREVIEW: self._media_link,
            BlockType.EQUATION: self._equation,
            BlockType.TABLE: self._table,
            BlockType.TABLE_ROW: self._table_row,
            BlockType.COLUMN_LIST: self._column_list,
            BlockType.COLUMN: self._column,
            BlockType.CHILD_PAGE: self._passthrough,
            BlockType.CHILD_DATABASE: self._passthrough,
            BlockType.SYNCED_BLOCK: self._passthrough,
            BlockType.UNSUPPORTED: self._passthrough,
        }

    @property
    def warnings(self) -> list[ConversionWarning]:
        return list(self._warnings)

    def transpile(self, blocks: Sequence[Block], depth: int = 0) -> str:
        """Render sibling blocks in source order."""
        parts: list[str] = []
        ordinal = 0
        for block in blocks:
            # Consecutive numbered items continue one visual list.
            ordinal = ordinal + 1 if block.kind is BlockType.NUMBERED_LIST_ITEM else 0
            parts.append(self.transpile_block(block, depth, ordinal=max(ordinal, 1)))
        return "".join(parts)

    def transpile_block(self, block: Block, depth: int = 0, *, ordinal: int = 1) -> str:
        kind = block.kind
        try:
            if kind is BlockType.NUMBERED_LIST_ITEM:
                return self._numbered_list_item(block, depth, ordinal)
            return self._handlers[kind](block, depth)
        except Exception as exc:
            logger.warning(
                "block_transpile_failed",
                block_id=block.id,
                block_type=block.type,
                exc_info=True,
            )
            self._warnings.append(
                ConversionWarning(block_id=block.id, block_type=block.type, message=str(exc))
            )
            return ""

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _text(self, block: Block) -> str:
        return render_rich_text(block.rich_text())

    def _nested(self, block: Block, depth: int) -> str:
        """Children of a non-container block, indented one level."""
        if not block.children:
            return ""
        inner = self.transpile(block.children, depth + 1)
        if not inner:
            return ""
        return f'<div class="nested" data-depth="{depth + 1}">{inner}</div>'

    def _image_source(self, url: str) -> str:
        return self._images.get(url, url)

    # ------------------------------------------------------------------
    # Text blocks
    # ------------------------------------------------------------------

    def _paragraph(self, block: Block, depth: int) -> str:
        text = self._text(block)
        # Empty paragraphs keep their vertical space.
        paragraph = f"<p>{text}</p>" if text else "<p><br></p>"
        return paragraph + self._nested(block, depth)

    def _heading(self, block: Block, depth: int) -> str:
        level = block.type[-1]
        return f"<h{level}>{self._text(block)}</h{level}>" + self._nested(block, depth)

    def _bulleted_list_item(self, block: Block, depth: int) -> str:
        children = self.transpile(block.children, depth + 1)
        return f"<ul><li>{self._text(block)}{children}</li></ul>"

    def _numbered_list_item(self, block: Block, depth: int, ordinal: int = 1) -> str:
        children = self.transpile(block.children, depth + 1)
        start = f' start="{ordinal}"' if ordinal > 1 else ""
        return f"<ol{start}><li>{self._text(block)}{children}</li></ol>"

    def _to_do(self, block: Block, depth: int) -> str:
        checked = bool(block.payload.get("checked"))
        box = '<input type="checkbox" disabled checked>' if checked else '<input type="checkbox" disabled>'
        item_class = "task-list-item checked" if checked else "task-list-item"
        children = self.transpile(block.children, depth + 1)
        return (
            f'<ul class="task-list"><li class="{item_class}">{box}'
            f"<span>{self._text(block)}</span>{children}</li></ul>"
        )

    def _toggle(self, block: Block, depth: int) -> str:
        children = self.transpile(block.children, 0)
        return f"<details open><summary>{self._text(block)}</summary>{children}</details>"

    def _quote(self, block: Block, depth: int) -> str:
        text = self._text(block)
        body = f"<p>{text}</p>" if text else ""
        return f"<blockquote>{body}{self.transpile(block.children, 0)}</blockquote>"

    def _callout(self, block: Block, depth: int) -> str:
        color = block.payload.get("color") or "default"
        if color == "default":
            color = NEUTRAL_CALLOUT_COLOR
        text = self._text(block)
        body = f"<p>{text}</p>" if text else ""
        return (
            f'<aside class="callout notion-{escape(color)}">'
            f"{self._callout_icon(block)}"
            f'<div class="callout-content">{body}{self.transpile(block.children, 0)}</div>'
            "</aside>"
        )

    def _callout_icon(self, block: Block) -> str:
        icon = block.payload.get("icon") or {}
        icon_type = icon.get("type")
        if icon_type == "emoji" and icon.get("emoji"):
            return f'<span class="callout-icon">{escape(icon["emoji"])}</span>'
        source = icon.get(icon_type or "") or {}
        url = source.get("url") if isinstance(source, dict) else None
        if url:
            src = escape(self._image_source(url))
            return f'<span class="callout-icon"><img src="{src}" alt=""></span>'
        return f'<span class="callout-icon">{DEFAULT_CALLOUT_ICON}</span>'

    def _code(self, block: Block, depth: int) -> str:
        language = normalize_language(block.payload.get("language"))
        source = escape(plain_text(block.rich_text()))
        html = f'<pre><code class="language-{escape(language)}">{source}</code></pre>'
        caption = render_rich_text(block.rich_text("caption"))
        if caption:
            html += f'<p class="code-caption"><small>{caption}</small></p>'
        return html

    def _equation(self, block: Block, depth: int) -> str:
        expression = block.payload.get("expression") or ""
        if not expression:
            return ""
        return f'<div class="equation"><code>{escape(expression)}</code></div>'

    def _divider(self, block: Block, depth: int) -> str:
        return "<hr>"

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    def _image(self, block: Block, depth: int) -> str:
        url = block.media_url
        if not url:
            return ""
        runs = block.rich_text("caption")
        alt = escape(plain_text(runs) or "image")
        img = f'<img src="{escape(self._image_source(url))}" alt="{alt}">'
        caption = render_rich_text(runs)
        if caption:
            return f"<figure>{img}<figcaption>{caption}</figcaption></figure>"
        return f"<figure>{img}</figure>"

    def _media_link(self, block: Block, depth: int) -> str:
        url = block.media_url
        if not url:
            return ""
        label = render_rich_text(block.rich_text("caption"))
        if not label:
            name = block.payload.get("name") or _file_name(url)
            label = escape(name or _MEDIA_LABELS.get(block.kind, url))
        return (
            f'<p class="media-link media-{block.kind.value}">'
            f'<a href="{escape(url)}">{label}</a></p>'
        )

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def _table(self, block: Block, depth: int) -> str:
        return render_table(block)

    def _table_row(self, block: Block, depth: int) -> str:
        # Rows are rendered by their owning table.
        return ""

    def _column_list(self, block: Block, depth: int) -> str:
        columns = "".join(self.transpile_block(child, 0) for child in block.children)
        return f'<div class="column-list">{columns}</div>'

    def _column(self, block: Block, depth: int) -> str:
        return f'<div class="column">{self.transpile(block.children, 0)}</div>'

    def _passthrough(self, block: Block, depth: int) -> str:
        return self.transpile(block.children, depth)


def _file_name(url: str) -> str:
    return posixpath.basename(urlparse(url).path)
