"""Tests for pagecraft.assembler."""

from __future__ import annotations

from pagecraft.assembler import (
    assemble_document,
    inject_into_document,
    is_full_document,
    wrap_document,
)

CSS = "p { color: red; }"


class TestIsFullDocument:
    def test_detects_doctype_and_html(self):
        assert is_full_document("  <!DOCTYPE html><html></html>")
        assert is_full_document("<HTML><body></body></HTML>")

    def test_fragment(self):
        assert not is_full_document("<p>hi</p>")


class TestWrapDocument:
    def test_structure(self):
        document = wrap_document("<p>body</p>", CSS, "My <Title>")
        assert document.startswith("<!DOCTYPE html>")
        assert '<meta charset="UTF-8">' in document
        assert "<title>My &lt;Title&gt;</title>" in document
        assert f"<style>\n{CSS}\n  </style>" in document
        assert '<div class="document-content">\n<p>body</p>\n  </div>' in document


class TestInjectIntoDocument:
    def test_style_goes_before_head_close(self):
        document = "<html><head><style>h1{}</style></head><body></body></html>"
        result = inject_into_document(document, CSS)
        assert result == f"<html><head><style>h1{{}}</style><style>{CSS}</style></head><body></body></html>"

    def test_replaces_existing_title(self):
        document = "<html><head><title>Old</title></head><body></body></html>"
        result = inject_into_document(document, CSS, "New")
        assert result.count("<title>") == 1
        assert "<title>New</title>" in result

    def test_adds_title_when_missing(self):
        result = inject_into_document("<html><head></head><body></body></html>", CSS, "New")
        assert f"<title>New</title><style>{CSS}</style></head>" in result

    def test_unclosed_head(self):
        result = inject_into_document("<html><head><meta charset='utf-8'><body>x</body></html>", CSS)
        assert result.startswith(f"<html><head><style>{CSS}</style><meta")

    def test_no_head_element(self):
        result = inject_into_document("<!DOCTYPE html><html><body>x</body></html>", CSS)
        assert result == f"<!DOCTYPE html><html><head><style>{CSS}</style></head><body>x</body></html>"

    def test_keeps_title_without_override(self):
        document = "<html><head><title>Keep</title></head></html>"
        assert "<title>Keep</title>" in inject_into_document(document, CSS)


class TestAssembleDocument:
    def test_fragment_is_wrapped(self):
        result = assemble_document("<p>x</p>", CSS, "T")
        assert '<div class="document-content">' in result
        assert "<title>T</title>" in result

    def test_full_document_keeps_structure(self):
        document = "<!DOCTYPE html><html><head><title>Source</title></head><body><p>x</p></body></html>"
        result = assemble_document(document, CSS, "Other")
        assert "document-content" not in result
        assert "<title>Source</title>" in result
        assert CSS in result

    def test_title_override(self):
        document = "<html><head><title>Source</title></head><body></body></html>"
        result = assemble_document(document, CSS, "Override", title_override=True)
        assert "<title>Override</title>" in result
        assert "Source" not in result
