"""Data models for the conversion pipeline."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

# ------------------------------------------------------------------
# Rich text
# ------------------------------------------------------------------


class Annotations(BaseModel):
    """Formatting flags attached to one rich-text run."""

    model_config = {"extra": "ignore"}

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: str = "default"


class RichTextRun(BaseModel):
    """A span of text with annotations and an optional link.

    Accepts Notion's rich-text objects directly: ``plain_text`` and
    ``href`` are read when present, otherwise the text is taken from the
    type-keyed payload (``text.content`` / ``equation.expression``).
    """

    model_config = {"extra": "ignore"}

    plain_text: str = ""
    href: str | None = None
    annotations: Annotations = Field(default_factory=Annotations)

    @model_validator(mode="before")
    @classmethod
    def _from_notion_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "plain_text" in data:
            return data
        data = dict(data)
        text = data.get("text") or {}
        if "content" in text:
            data["plain_text"] = text["content"]
            link = text.get("link") or {}
            if link.get("url") and not data.get("href"):
                data["href"] = link["url"]
        elif "expression" in (data.get("equation") or {}):
            data["plain_text"] = data["equation"]["expression"]
        return data


def plain_text(runs: list[RichTextRun]) -> str:
    return "".join(run.plain_text for run in runs)


# ------------------------------------------------------------------
# Blocks
# ------------------------------------------------------------------


class BlockType(str, Enum):
    """Block kinds the transpiler knows how to render."""

    PARAGRAPH = "paragraph"
    HEADING_1 = "heading_1"
    HEADING_2 = "heading_2"
    HEADING_3 = "heading_3"
    BULLETED_LIST_ITEM = "bulleted_list_item"
    NUMBERED_LIST_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    CODE = "code"
    QUOTE = "quote"
    CALLOUT = "callout"
    DIVIDER = "divider"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"
    PDF = "pdf"
    BOOKMARK = "bookmark"
    EMBED = "embed"
    LINK_PREVIEW = "link_preview"
    EQUATION = "equation"
    TABLE = "table"
    TABLE_ROW = "table_row"
    COLUMN_LIST = "column_list"
    COLUMN = "column"
    CHILD_PAGE = "child_page"
    CHILD_DATABASE = "child_database"
    SYNCED_BLOCK = "synced_block"
    UNSUPPORTED = "unsupported"


class Block(BaseModel):
    """One node of a Notion block tree.

    The type-keyed payload object (``block["paragraph"]``,
    ``block["code"]``, ...) is lifted into :attr:`payload`.  Children are
    owned by value and are fully materialized before transpilation.
    """

    model_config = {"extra": "ignore"}

    id: str = ""
    type: str = BlockType.UNSUPPORTED.value
    payload: dict[str, Any] = Field(default_factory=dict)
    has_children: bool = False
    children: list[Block] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _lift_payload(cls, data: Any) -> Any:
        if isinstance(data, dict) and "payload" not in data:
            data = dict(data)
            data["payload"] = data.get(data.get("type") or "") or {}
        return data

    @property
    def kind(self) -> BlockType:
        """The block's type, with unknown types mapped to UNSUPPORTED."""
        try:
            return BlockType(self.type)
        except ValueError:
            return BlockType.UNSUPPORTED

    def rich_text(self, key: str = "rich_text") -> list[RichTextRun]:
        return [RichTextRun.model_validate(run) for run in self.payload.get(key) or []]

    @property
    def media_url(self) -> str | None:
        """URL of an image/video/file/pdf/bookmark/embed payload, if any."""
        source_type = self.payload.get("type")
        if source_type in ("external", "file", "file_upload"):
            source = self.payload.get(source_type) or {}
            if source.get("url"):
                return source["url"]
        return self.payload.get("url") or None

    def walk(self) -> Iterator[Block]:
        """Yield this block and all descendants in depth-first pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()


# ------------------------------------------------------------------
# PDF options
# ------------------------------------------------------------------


class PageSize(str, Enum):
    A4 = "A4"
    LETTER = "Letter"
    LEGAL = "Legal"


class MarginPreset(str, Enum):
    NARROW = "narrow"
    NORMAL = "normal"
    WIDE = "wide"
    CUSTOM = "custom"


class FontSizePreset(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    CUSTOM = "custom"


class FontFamily(str, Enum):
    INTER = "inter"
    SYSTEM = "system"
    GEORGIA = "georgia"
    TIMES = "times"
    GARAMOND = "garamond"
    PALATINO = "palatino"
    HELVETICA = "helvetica"
    ARIAL = "arial"
    ROBOTO = "roboto"
    MONO = "mono"
    JETBRAINS = "jetbrains"


class CodeFontFamily(str, Enum):
    JETBRAINS = "jetbrains"
    FIRACODE = "firacode"
    SOURCECODEPRO = "sourcecodepro"
    CONSOLAS = "consolas"
    MONACO = "monaco"
    MENLO = "menlo"


class LineHeightPreset(str, Enum):
    COMPACT = "compact"
    NORMAL = "normal"
    RELAXED = "relaxed"
    CUSTOM = "custom"


class PageMargins(BaseModel):
    """Custom page margins, in inches."""

    top: float = Field(ge=0)
    right: float = Field(ge=0)
    bottom: float = Field(ge=0)
    left: float = Field(ge=0)


class PDFOptions(BaseModel):
    """Print configuration supplied with every conversion request.

    Field names are accepted in snake_case or in the camelCase used on
    the wire (``pageSize``, ``customMargins``...).  A value that fails
    validation falls back to the field default instead of raising.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    page_size: PageSize = PageSize.A4
    margins: MarginPreset = MarginPreset.NORMAL
    custom_margins: PageMargins | None = None
    font_size: FontSizePreset = FontSizePreset.MEDIUM
    custom_font_size: float | None = Field(default=None, gt=0)
    font_family: FontFamily = FontFamily.INTER
    code_font_family: CodeFontFamily = CodeFontFamily.JETBRAINS
    line_height: LineHeightPreset = LineHeightPreset.NORMAL
    custom_line_height: float | None = Field(default=None, gt=0)
    show_page_numbers: bool = False
    footer_text: str | None = None
    header_text: str | None = None

    @field_validator("*", mode="wrap")
    @classmethod
    def _default_invalid(
        cls,
        value: Any,
        handler: ValidatorFunctionWrapHandler,
        info: ValidationInfo,
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)


# ------------------------------------------------------------------
# Conversion results
# ------------------------------------------------------------------


class ConversionMode(str, Enum):
    """Kind of source content handed to the pipeline."""

    MARKDOWN = "markdown"
    HTML = "html"
    NOTION = "notion"


class ConversionWarning(BaseModel):
    """A recoverable problem recorded while converting one block."""

    block_id: str = Field(description="Source id of the block that degraded")
    block_type: str = Field(description="Source type tag of the block")
    message: str = Field(description="Error summary")
