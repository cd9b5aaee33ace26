"""Page-level print parameters handed to the rendering engine."""

from __future__ import annotations

from html import escape

from pydantic import BaseModel, Field

from .models import PDFOptions
from .styles import resolve_margins

EMPTY_TEMPLATE = "<span></span>"

_FOOTER_FONT = "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;"
_PAGE_COUNTER = '<span class="pageNumber"></span> / <span class="totalPages"></span>'


class PrintParameters(BaseModel):
    """Arguments for Chromium's ``page.pdf()``.

    Margins are CSS lengths (``"0.75in"``) and always equal the values in
    the stylesheet's ``@page`` rule.
    """

    format: str = Field(description="Paper format (A4, Letter, Legal)")
    margin: dict[str, str] = Field(description="top/right/bottom/left CSS lengths")
    print_background: bool = Field(default=True)
    prefer_css_page_size: bool = Field(default=False)
    display_header_footer: bool = Field(default=False)
    header_template: str = Field(default=EMPTY_TEMPLATE)
    footer_template: str = Field(default=EMPTY_TEMPLATE)

    def as_pdf_kwargs(self) -> dict:
        """Keyword arguments for :meth:`playwright.async_api.Page.pdf`."""
        kwargs = self.model_dump(exclude={"header_template", "footer_template"})
        if self.display_header_footer:
            kwargs["header_template"] = self.header_template
            kwargs["footer_template"] = self.footer_template
        return kwargs


def footer_template(options: PDFOptions) -> str | None:
    """Footer markup, or ``None`` when neither page numbers nor text are requested.

    With both, the footer is three columns: text left, page counter
    centred, an empty spacer right.  With either alone, one centred item.
    """
    text = options.footer_text.strip() if options.footer_text else ""

    if text and options.show_page_numbers:
        return (
            '<div style="width: 100%; display: flex; justify-content: space-between; '
            f'align-items: center; font-size: 10px; color: #666; padding: 10px 30px; {_FOOTER_FONT}">'
            f'<span style="flex: 1; text-align: left;">{escape(text)}</span>'
            f'<span style="flex: 1; text-align: center;">{_PAGE_COUNTER}</span>'
            '<span style="flex: 1;"></span>'
            "</div>"
        )
    if text:
        return (
            '<div style="width: 100%; text-align: center; font-size: 10px; color: #666; '
            f'padding: 10px 30px; {_FOOTER_FONT}">'
            f"<span>{escape(text)}</span>"
            "</div>"
        )
    if options.show_page_numbers:
        return (
            '<div style="width: 100%; text-align: center; font-size: 10px; color: #666; '
            f'padding: 10px 0;">{_PAGE_COUNTER}</div>'
        )
    return None


def header_template(options: PDFOptions) -> str | None:
    text = options.header_text.strip() if options.header_text else ""
    if not text:
        return None
    return (
        '<div style="width: 100%; text-align: center; font-size: 10px; color: #666; '
        f'padding: 10px 30px; {_FOOTER_FONT}">'
        f"<span>{escape(text)}</span>"
        "</div>"
    )


def build_print_parameters(options: PDFOptions) -> PrintParameters:
    footer = footer_template(options)
    header = header_template(options)
    return PrintParameters(
        format=options.page_size.value,
        margin=resolve_margins(options),
        display_header_footer=footer is not None or header is not None,
        header_template=header or EMPTY_TEMPLATE,
        footer_template=footer or EMPTY_TEMPLATE,
    )
