"""ConversionService — Markdown / HTML / Notion in, print-ready document (and PDF) out."""

from __future__ import annotations

import re
from collections.abc import Sequence
from html import escape

import structlog
from pydantic import BaseModel, Field

from .assembler import assemble_document, wrap_document
from .config import PagecraftConfig
from .errors import ContentTooLargeError, EmptyContentError
from .images import ImageAliasMap, ImageResolver, embed_images_in_html, embed_images_in_markdown
from .markup import (
    DEFAULT_TITLE,
    extract_html_title,
    extract_markdown_title,
    markdown_to_html,
    sanitize_markdown,
)
from .models import Block, ConversionMode, ConversionWarning, PDFOptions
from .html_to_md import extract_title_from_html, html_to_markdown
from .normalizer import normalize_markup, sanitize_html_for_preview
from .notion import NotionClient, check_api_key_format, extract_page_id
from .print_params import PrintParameters, build_print_parameters
from .renderer import PdfRenderer
from .styles import generate_stylesheet
from .transpiler import BlockTranspiler

logger = structlog.get_logger()

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9\s-]")


def safe_filename(title: str, extension: str = ".pdf") -> str:
    """Derive a download filename from a document title."""
    stem = _UNSAFE_FILENAME_CHARS.sub("", title)
    stem = re.sub(r"\s+", "-", stem.strip())[:50].strip("-")
    return f"{stem or 'document'}{extension}"


class ConversionRequest(BaseModel):
    """One conversion: the source, how to read it, and print options."""

    content: str = Field(default="", description="Markdown, HTML, or a Notion page URL / id")
    mode: ConversionMode = Field(default=ConversionMode.MARKDOWN)
    options: PDFOptions = Field(default_factory=PDFOptions)
    title: str | None = Field(default=None, description="Explicit document title override")
    api_key: str | None = Field(default=None, description="Notion integration token")


class PreparedDocument(BaseModel):
    """A self-contained document plus the renderer's page parameters."""

    title: str
    html: str
    print_parameters: PrintParameters
    warnings: list[ConversionWarning] = Field(default_factory=list)

    @property
    def filename(self) -> str:
        return safe_filename(self.title)


class ConversionResult(BaseModel):
    """Rendered PDF and what went into it."""

    pdf: bytes
    title: str
    filename: str
    warnings: list[ConversionWarning] = Field(default_factory=list)


class ConversionService:
    """Run the conversion pipeline for Markdown, HTML and Notion sources."""

    def __init__(self, config: PagecraftConfig | None = None) -> None:
        self._config = config or PagecraftConfig()
        self._documents_prepared: int = 0
        self._documents_rendered: int = 0

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def config(self) -> PagecraftConfig:
        return self._config

    @property
    def documents_prepared(self) -> int:
        return self._documents_prepared

    @property
    def documents_rendered(self) -> int:
        return self._documents_rendered

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_content(self, content: str) -> None:
        if not content or not content.strip():
            raise EmptyContentError("Content is required")
        limit = self._config.max_content_chars
        if len(content) > limit:
            raise ContentTooLargeError(len(content), limit)

    # ------------------------------------------------------------------
    # Preparation
    # ------------------------------------------------------------------

    def prepare_markdown(
        self,
        content: str,
        options: PDFOptions | None = None,
        *,
        title: str | None = None,
        image_map: ImageAliasMap | None = None,
    ) -> PreparedDocument:
        self._check_content(content)
        options = options or PDFOptions()

        source = sanitize_markdown(content)
        if image_map is not None:
            source = embed_images_in_markdown(source, image_map)
        body = normalize_markup(markdown_to_html(source))
        doc_title = title or extract_markdown_title(content)

        return self._finish(wrap_document(body, generate_stylesheet(options), doc_title), doc_title, options)

    def prepare_html(
        self,
        content: str,
        options: PDFOptions | None = None,
        *,
        title: str | None = None,
        image_map: ImageAliasMap | None = None,
    ) -> PreparedDocument:
        self._check_content(content)
        options = options or PDFOptions()

        if image_map is not None:
            content = embed_images_in_html(content, image_map)
        normalized = normalize_markup(content)
        doc_title = title or extract_html_title(normalized) or DEFAULT_TITLE

        document = assemble_document(
            normalized,
            generate_stylesheet(options),
            doc_title,
            title_override=title is not None,
        )
        return self._finish(document, doc_title, options)

    def prepare_blocks(
        self,
        blocks: Sequence[Block],
        options: PDFOptions | None = None,
        *,
        title: str = DEFAULT_TITLE,
        images: dict[str, str] | None = None,
    ) -> PreparedDocument:
        """Transpile an already-materialized block tree.

        *images* maps remote image URLs to embedded references; see
        :meth:`ImageResolver.resolve_blocks`.
        """
        options = options or PDFOptions()
        transpiler = BlockTranspiler(images)
        body = f"<h1>{escape(title)}</h1>" + transpiler.transpile(blocks)
        normalized = normalize_markup(body)

        warnings = transpiler.warnings
        if warnings:
            logger.warning("blocks_degraded", count=len(warnings))
        document = wrap_document(normalized, generate_stylesheet(options), title)
        return self._finish(document, title, options, warnings)

    async def prepare_notion(
        self,
        page_url: str,
        api_key: str | None = None,
        options: PDFOptions | None = None,
        *,
        title: str | None = None,
    ) -> PreparedDocument:
        """Fetch a Notion page, embed its images and transpile it."""
        page_id = extract_page_id(page_url)
        key = check_api_key_format(api_key or self._config.notion.api_key)

        async with NotionClient(self._config.notion, key, self._config.retry) as client:
            page_title = await client.retrieve_page_title(page_id)
            blocks = await client.fetch_block_tree(page_id)

        async with ImageResolver(self._config.images) as resolver:
            images = await resolver.resolve_blocks(blocks)

        logger.info("notion_page_fetched", page_id=page_id, top_level_blocks=len(blocks))
        return self.prepare_blocks(blocks, options, title=title or page_title, images=images)

    async def prepare(self, request: ConversionRequest) -> PreparedDocument:
        if request.mode is ConversionMode.NOTION:
            return await self.prepare_notion(
                request.content,
                request.api_key,
                request.options,
                title=request.title,
            )
        if request.mode is ConversionMode.HTML:
            return self.prepare_html(request.content, request.options, title=request.title)
        return self.prepare_markdown(request.content, request.options, title=request.title)

    def _finish(
        self,
        document: str,
        title: str,
        options: PDFOptions,
        warnings: list[ConversionWarning] | None = None,
    ) -> PreparedDocument:
        self._documents_prepared += 1
        logger.info("document_prepared", title=title, size=len(document))
        return PreparedDocument(
            title=title,
            html=document,
            print_parameters=build_print_parameters(options),
            warnings=warnings or [],
        )

    # ------------------------------------------------------------------
    # HTML import / preview
    # ------------------------------------------------------------------

    def import_html(self, content: str) -> tuple[str, str]:
        """Convert an HTML source to ``(title, markdown)`` for editing."""
        self._check_content(content)
        return extract_title_from_html(content), html_to_markdown(content)

    def preview_html(self, content: str) -> str:
        self._check_content(content)
        return sanitize_html_for_preview(content)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def convert(self, request: ConversionRequest, renderer: PdfRenderer) -> ConversionResult:
        """Prepare *request* and render it to PDF with *renderer*."""
        prepared = await self.prepare(request)
        pdf = await renderer.render_with_timeout(
            prepared.html,
            prepared.print_parameters,
            self._config.render.timeout_seconds,
        )
        self._documents_rendered += 1
        return ConversionResult(
            pdf=pdf,
            title=prepared.title,
            filename=prepared.filename,
            warnings=prepared.warnings,
        )
