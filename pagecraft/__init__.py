"""pagecraft — print-faithful PDFs from Markdown, HTML and Notion pages.

Public API re-exported here for convenience::

    from pagecraft import ConversionService, PDFOptions, PdfRenderer
"""

from .assembler import assemble_document, wrap_document
from .config import ImageConfig, NotionConfig, PagecraftConfig, RenderConfig, RetryConfig
from .errors import (
    ContentTooLargeError,
    EmptyContentError,
    InvalidCredentialsError,
    InvalidSourceError,
    NotionAPIError,
    PagecraftError,
    RenderError,
    RenderTimeoutError,
)
from .images import ImageAliasMap, ImageResolver
from .logging import bind_conversion_context, setup_logging
from .models import Block, BlockType, ConversionMode, ConversionWarning, PDFOptions, RichTextRun
from .normalizer import normalize_markup
from .print_params import PrintParameters, build_print_parameters
from .renderer import PdfRenderer
from .richtext import render_rich_text
from .service import (
    ConversionRequest,
    ConversionResult,
    ConversionService,
    PreparedDocument,
    safe_filename,
)
from .styles import generate_stylesheet
from .tables import render_table
from .transpiler import BlockTranspiler

__all__ = [
    "Block",
    "BlockTranspiler",
    "BlockType",
    "ContentTooLargeError",
    "ConversionMode",
    "ConversionRequest",
    "ConversionResult",
    "ConversionService",
    "ConversionWarning",
    "EmptyContentError",
    "ImageAliasMap",
    "ImageConfig",
    "ImageResolver",
    "InvalidCredentialsError",
    "InvalidSourceError",
    "NotionAPIError",
    "NotionConfig",
    "PDFOptions",
    "PagecraftConfig",
    "PagecraftError",
    "PdfRenderer",
    "PreparedDocument",
    "PrintParameters",
    "RenderConfig",
    "RenderError",
    "RenderTimeoutError",
    "RetryConfig",
    "RichTextRun",
    "assemble_document",
    "build_print_parameters",
    "generate_stylesheet",
    "normalize_markup",
    "render_rich_text",
    "render_table",
    "safe_filename",
    "bind_conversion_context",
    "setup_logging",
    "wrap_document",
]
