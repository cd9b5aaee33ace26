"""Table reconstruction.

Two directions are supported:

* a Notion ``table`` block (with its ``table_row`` children) is rebuilt
  as an HTML ``<table>`` with header cells chosen per the block's
  ``has_column_header`` / ``has_row_header`` flags;
* an HTML ``<table>`` element is flattened into a Markdown pipe table,
  first row as header, for HTML imports.

Empty cells always keep their position so columns stay aligned.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

from bs4 import Tag

from .models import Block, BlockType, RichTextRun
from .richtext import render_rich_text

Row = Sequence[Sequence[RichTextRun]]


def render_table(block: Block) -> str:
    """Render a Notion ``table`` block from its ``table_row`` children."""
    rows: list[list[list[RichTextRun]]] = []
    for child in block.children:
        if child.kind is not BlockType.TABLE_ROW:
            continue
        cells = child.payload.get("cells") or []
        rows.append([[RichTextRun.model_validate(r) for r in cell or []] for cell in cells])

    return render_table_rows(
        rows,
        table_width=block.payload.get("table_width", 1),
        has_column_header=bool(block.payload.get("has_column_header")),
        has_row_header=bool(block.payload.get("has_row_header")),
    )


def render_table_rows(
    rows: Sequence[Row],
    *,
    table_width: int | None = 1,
    has_column_header: bool = False,
    has_row_header: bool = False,
) -> str:
    """Build an HTML table from rows of cells of rich-text runs.

    ``table_width`` is only a styling hint: every cell present in a row is
    rendered even if the row is wider than the declared width.
    """
    try:
        columns = max(int(table_width or 1), 1)
    except (TypeError, ValueError):
        columns = 1

    head: list[str] = []
    body: list[str] = []
    for index, row in enumerate(rows):
        header_row = has_column_header and index == 0
        cells: list[str] = []
        for position, runs in enumerate(row):
            content = render_rich_text(runs)
            if header_row:
                cells.append(f"<th>{content}</th>")
            elif has_row_header and position == 0:
                cells.append(f'<th scope="row">{content}</th>')
            else:
                cells.append(f"<td>{content}</td>")
        line = f"<tr>{''.join(cells)}</tr>"
        (head if header_row else body).append(line)

    parts = [f'<table class="notion-table" data-columns="{columns}">']
    if head:
        parts.append(f"<thead>{''.join(head)}</thead>")
    parts.append(f"<tbody>{''.join(body)}</tbody>")
    parts.append("</table>")
    return "".join(parts)


# ------------------------------------------------------------------
# HTML -> Markdown
# ------------------------------------------------------------------


def _cell_text(cell: Tag) -> str:
    return cell.get_text(" ", strip=True)


def html_table_to_markdown(
    table: Tag,
    render_cell: Callable[[Tag], str] = _cell_text,
) -> str:
    """Flatten an HTML ``<table>`` into a Markdown pipe table.

    The first row is treated as the header and a separator row is
    synthesized beneath it.  Short rows are padded with empty cells.
    """
    rows: list[list[str]] = []
    for tr in table.find_all("tr"):
        # Skip rows that belong to a table nested inside a cell.
        if tr.find_parent("table") is not table:
            continue
        cells = tr.find_all(["th", "td"], recursive=False)
        rows.append([_escape_cell(render_cell(cell)) for cell in cells])

    rows = [row for row in rows if row]
    if not rows:
        return ""

    width = max(len(row) for row in rows)
    padded = [row + [""] * (width - len(row)) for row in rows]

    lines = [_pipe_row(padded[0]), _pipe_row(["---"] * width)]
    lines.extend(_pipe_row(row) for row in padded[1:])
    return "\n".join(lines)


def _escape_cell(text: str) -> str:
    return " ".join(text.split()).replace("|", "\\|")


def _pipe_row(cells: list[str]) -> str:
    return "| " + " | ".join(cells) + " |"
