"""Command-line entry point: convert a Markdown, HTML or Notion source to PDF."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import structlog
from pydantic import ValidationError

from .config import PagecraftConfig
from .errors import PagecraftError
from .logging import bind_conversion_context, setup_logging
from .models import ConversionMode, PDFOptions
from .renderer import PdfRenderer
from .service import ConversionRequest, ConversionService

logger = structlog.get_logger()

STDIO = "-"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagecraft",
        description="Convert Markdown, HTML or a Notion page into a print-ready PDF.",
    )
    parser.add_argument(
        "source",
        help="Input file, '-' for stdin, or a Notion page URL / id with --mode notion",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output path, '-' for stdout (default: derived from the document title)",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ConversionMode],
        default=None,
        help="Source kind (default: guessed from the file extension)",
    )
    parser.add_argument("--title", default=None, help="Override the document title")
    parser.add_argument("--options", default=None, help="JSON file with PDF options")
    parser.add_argument("--api-key", default=None, help="Notion integration token")
    output = parser.add_mutually_exclusive_group()
    output.add_argument(
        "--html-only",
        action="store_true",
        help="Write the assembled HTML document instead of rendering a PDF",
    )
    output.add_argument(
        "--to-markdown",
        action="store_true",
        help="Convert an HTML source to Markdown",
    )
    output.add_argument(
        "--preview",
        action="store_true",
        help="Write the HTML source with scripts, styles and event handlers removed",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default: from config)")
    parser.add_argument(
        "--console-log",
        action="store_true",
        help="Human-readable logs instead of JSON lines",
    )
    return parser


def guess_mode(source: str) -> ConversionMode:
    if source.startswith(("http://", "https://")):
        return ConversionMode.NOTION
    if Path(source).suffix.lower() in (".html", ".htm"):
        return ConversionMode.HTML
    return ConversionMode.MARKDOWN


def read_source(source: str, mode: ConversionMode) -> str:
    if mode is ConversionMode.NOTION:
        return source
    if source == STDIO:
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def load_options(path: str | None) -> PDFOptions:
    if path is None:
        return PDFOptions()
    return PDFOptions.model_validate_json(Path(path).read_text(encoding="utf-8"))


def write_output(target: str, payload: bytes | str) -> None:
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    if target == STDIO:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    Path(target).write_bytes(data)
    logger.info("output_written", path=target, size=len(data))


async def run(args: argparse.Namespace, config: PagecraftConfig) -> None:
    service = ConversionService(config)
    mode = ConversionMode(args.mode) if args.mode else guess_mode(args.source)
    bind_conversion_context(source=args.source, mode=mode.value)
    content = read_source(args.source, mode)

    if args.to_markdown:
        title, markdown_text = service.import_html(content)
        write_output(args.output or STDIO, markdown_text)
        logger.info("html_imported", title=title)
        return
    if args.preview:
        write_output(args.output or STDIO, service.preview_html(content))
        return

    request = ConversionRequest(
        content=content,
        mode=mode,
        options=load_options(args.options),
        title=args.title,
        api_key=args.api_key,
    )

    if args.html_only:
        prepared = await service.prepare(request)
        for warning in prepared.warnings:
            logger.warning("block_degraded", block_id=warning.block_id, message=warning.message)
        write_output(args.output or STDIO, prepared.html)
        return

    async with PdfRenderer(config.render) as renderer:
        result = await service.convert(request, renderer)
    write_output(args.output or result.filename, result.pdf)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = PagecraftConfig()
    setup_logging(json=config.log_json and not args.console_log, level=args.log_level or config.log_level)

    try:
        asyncio.run(run(args, config))
    except (PagecraftError, ValidationError, OSError) as exc:
        logger.error("conversion_failed", error=str(exc), error_type=type(exc).__name__)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
