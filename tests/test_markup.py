"""Tests for pagecraft.markup."""

from __future__ import annotations

from bs4 import BeautifulSoup

from pagecraft.markup import (
    extract_html_title,
    extract_markdown_title,
    markdown_to_html,
    sanitize_markdown,
)


def soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


class TestMarkdownToHtml:
    def test_pipe_table(self):
        html = markdown_to_html("| A | B |\n| --- | --- |\n| 1 | 2 |\n")
        table = soup(html).table
        assert [th.get_text() for th in table.find_all("th")] == ["A", "B"]
        assert [td.get_text() for td in table.find_all("td")] == ["1", "2"]

    def test_fenced_code_language(self):
        html = markdown_to_html("```python\nprint(1)\n```\n")
        code = soup(html).find("code")
        assert code["class"] == ["language-python"]
        assert code.get_text() == "print(1)\n"

    def test_strikethrough(self):
        assert "<del>gone</del>" in markdown_to_html("~~gone~~")

    def test_task_list(self):
        html = markdown_to_html("- [x] done\n- [ ] todo\n")
        boxes = soup(html).find_all("input", type="checkbox")
        assert len(boxes) == 2
        assert boxes[0].has_attr("checked")
        assert not boxes[1].has_attr("checked")

    def test_bare_url_autolink(self):
        link = soup(markdown_to_html("See https://example.com today")).a
        assert link["href"] == "https://example.com"

    def test_markdown_inside_aside(self):
        html = markdown_to_html('<aside markdown="1">\n\n**bold** note\n\n</aside>\n')
        aside = soup(html).aside
        assert aside.strong.get_text() == "bold"


class TestSanitizeMarkdown:
    def test_removes_scripts_and_handlers(self):
        source = '# Hi\n<script>alert(1)</script>\n<img src="a.png" onerror="steal()">'
        cleaned = sanitize_markdown(source)
        assert "<script>" not in cleaned
        assert "onerror" not in cleaned
        assert '<img src="a.png">' in cleaned


class TestTitles:
    def test_first_h1(self):
        assert extract_markdown_title("intro\n\n## Sub\n# Main Title #\n# Second") == "Main Title"

    def test_markdown_default(self):
        assert extract_markdown_title("## Only h2") == "Document"

    def test_html_title(self):
        assert extract_html_title("<html><head><title> A &amp; B </title></head></html>") == "A & B"

    def test_html_without_title(self):
        assert extract_html_title("<p>none</p>") is None
        assert extract_html_title("<title>  </title>") is None
