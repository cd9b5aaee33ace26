"""Render Notion rich-text runs into inline HTML."""

from __future__ import annotations

from collections.abc import Iterable
from html import escape

from .models import RichTextRun

# Innermost first; italic sits inside bold.  The color span and the link
# wrap outside these.
_ANNOTATION_TAGS: tuple[tuple[str, str], ...] = (
    ("code", "code"),
    ("italic", "em"),
    ("bold", "strong"),
    ("strikethrough", "s"),
    ("underline", "u"),
)


def render_run(run: RichTextRun) -> str:
    """Render a single run, applying annotations in fixed nesting order."""
    if not run.plain_text:
        return ""

    # Text content keeps its newlines.
    html = escape(run.plain_text).replace("\n", "<br>\n")
    annotations = run.annotations

    for flag, tag in _ANNOTATION_TAGS:
        if getattr(annotations, flag):
            html = f"<{tag}>{html}</{tag}>"

    if annotations.color and annotations.color != "default":
        html = f'<span class="notion-{escape(annotations.color)}">{html}</span>'

    if run.href:
        html = f'<a href="{escape(run.href)}">{html}</a>'

    return html


def render_rich_text(runs: Iterable[RichTextRun]) -> str:
    """Concatenate rendered runs in source order."""
    return "".join(render_run(run) for run in runs)
