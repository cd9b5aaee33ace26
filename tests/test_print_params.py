"""Tests for pagecraft.print_params."""

from __future__ import annotations

from pagecraft.models import PDFOptions
from pagecraft.print_params import (
    EMPTY_TEMPLATE,
    build_print_parameters,
    footer_template,
    header_template,
)


class TestFooterTemplate:
    def test_none_when_nothing_requested(self):
        assert footer_template(PDFOptions()) is None

    def test_page_numbers_only(self):
        footer = footer_template(PDFOptions(show_page_numbers=True))
        assert '<span class="pageNumber"></span> / <span class="totalPages"></span>' in footer
        assert "text-align: center" in footer

    def test_text_only_is_escaped(self):
        footer = footer_template(PDFOptions(footer_text="  Draft <v2> & notes  "))
        assert "<span>Draft &lt;v2&gt; &amp; notes</span>" in footer
        assert "pageNumber" not in footer

    def test_text_and_page_numbers_use_three_columns(self):
        footer = footer_template(PDFOptions(footer_text="Confidential", show_page_numbers=True))
        assert "justify-content: space-between" in footer
        assert footer.index("Confidential") < footer.index("pageNumber")
        assert footer.count("flex: 1") == 3

    def test_blank_text_is_ignored(self):
        assert footer_template(PDFOptions(footer_text="   ")) is None


class TestHeaderTemplate:
    def test_none_without_text(self):
        assert header_template(PDFOptions()) is None

    def test_escaped_text(self):
        assert "<span>A &amp; B</span>" in header_template(PDFOptions(header_text="A & B"))


class TestBuildPrintParameters:
    def test_defaults(self):
        params = build_print_parameters(PDFOptions())
        assert params.format == "A4"
        assert params.margin == {"top": "0.75in", "right": "0.75in", "bottom": "0.75in", "left": "0.75in"}
        assert params.print_background is True
        assert params.prefer_css_page_size is False
        assert params.display_header_footer is False

    def test_pdf_kwargs_without_header_footer(self):
        kwargs = build_print_parameters(PDFOptions(page_size="Letter")).as_pdf_kwargs()
        assert kwargs == {
            "format": "Letter",
            "margin": {"top": "0.75in", "right": "0.75in", "bottom": "0.75in", "left": "0.75in"},
            "print_background": True,
            "prefer_css_page_size": False,
            "display_header_footer": False,
        }

    def test_footer_only_gets_empty_header(self):
        params = build_print_parameters(PDFOptions(show_page_numbers=True))
        kwargs = params.as_pdf_kwargs()
        assert kwargs["display_header_footer"] is True
        assert kwargs["header_template"] == EMPTY_TEMPLATE
        assert "pageNumber" in kwargs["footer_template"]

    def test_header_only_gets_empty_footer(self):
        params = build_print_parameters(PDFOptions(header_text="Report"))
        assert params.display_header_footer is True
        assert params.footer_template == EMPTY_TEMPLATE
        assert "Report" in params.header_template
