"""Tests for the HTML and Markdown helpers."""
import pytest

from format_converter.application.markup import (
    first_heading,
    html_to_markdown,
    html_to_text,
    markdown_to_html,
    render_inline,
)


class TestHtmlToMarkdown:
    """Test html_to_markdown."""

    def test_structure(self):
        html = (
            "<h1>Head</h1><p>Hello <b>world</b> and <a href='https://x.org'>link</a></p>"
            "<ul><li>one</li><li>two<ul><li>deep</li></ul></li></ul>"
            "<pre>code  here</pre>"
        )
        assert html_to_markdown(html) == (
            "# Head\n\nHello **world** and [link](https://x.org)\n\n"
            "- one\n- two\n  - deep\n\n```\ncode  here\n```\n"
        )

    def test_title_becomes_heading(self):
        html = "<!DOCTYPE html><html><head><title>Page</title></head><body><p>Body</p></body></html>"
        assert html_to_markdown(html) == "# Page\n\nBody\n"

    def test_script_and_nav_are_dropped(self):
        html = "<nav><a href='/'>Home</a></nav><p>a<script>var x = 1;</script>b</p><style>p {}</style>"
        assert html_to_markdown(html) == "ab\n"

    def test_table(self):
        html = "<table><tr><th>A</th><th>B</th></tr><tr><td>1</td><td>x|y</td></tr></table>"
        assert html_to_markdown(html) == "| A | B |\n| --- | --- |\n| 1 | x\\|y |\n"

    def test_blockquote(self):
        assert html_to_markdown("<blockquote><p>Quoted text</p></blockquote>") == "> Quoted text\n"

    def test_image_and_inline_code(self):
        html = '<p>See <img src="a.png" alt="chart"> and <code>x = 1</code></p>'
        assert html_to_markdown(html) == "See ![chart](a.png) and `x = 1`\n"

    def test_ordered_list(self):
        assert html_to_markdown("<ol><li>first</li><li>second</li></ol>") == "1. first\n1. second\n"


class TestMarkdownToHtml:
    """Test markdown_to_html."""

    @pytest.mark.parametrize(
        "markdown, expected",
        [
            ("# Title", "<h1>Title</h1>"),
            ("### Deep ###", "<h3>Deep</h3>"),
            ("---", "<hr />"),
            ("a\nb", "<p>a\nb</p>"),
            ("> quoted", "<blockquote>\n<p>quoted</p>\n</blockquote>"),
            ("1. a\n2. b", "<ol>\n<li>a</li>\n<li>b</li>\n</ol>"),
        ],
    )
    def test_blocks(self, markdown, expected):
        assert markdown_to_html(markdown) == expected

    def test_nested_list(self):
        assert markdown_to_html("- one\n- two\n  - deep") == (
            "<ul>\n<li>one</li>\n<li>two\n<ul>\n<li>deep</li>\n</ul>\n</li>\n</ul>"
        )

    def test_fenced_code_is_escaped(self):
        output = markdown_to_html("```python\nx = 1 < 2\n```")
        assert output == '<pre><code class="language-python">x = 1 &lt; 2</code></pre>'

    def test_table_alignment(self):
        output = markdown_to_html("| a | b |\n| :--- | ---: |\n| 1 | 2 |")
        assert '<th style="text-align: left">a</th>' in output
        assert '<td style="text-align: right">2</td>' in output
        assert output.startswith("<table>\n<thead>")

    def test_paragraphs_are_separated(self):
        assert markdown_to_html("one\n\ntwo") == "<p>one</p>\n<p>two</p>"


def test_render_inline():
    output = render_inline("Use `a<b` and **bold** [x](http://e.com) *now*")
    assert output == 'Use <code>a&lt;b</code> and <strong>bold</strong> <a href="http://e.com">x</a> <em>now</em>'


def test_render_inline_escapes_html():
    assert render_inline("<b>&") == "&lt;b&gt;&amp;"


def test_first_heading():
    assert first_heading("text\n## Sub\n# Main") == "Sub"
    assert first_heading("no headings") is None


class TestHtmlToText:
    """Test html_to_text."""

    def test_blocks_become_lines(self):
        assert html_to_text("<div>one</div><div>two</div>") == "one\n\ntwo\n"

    def test_table_cells(self):
        assert html_to_text("<table><tr><td>a</td><td>b</td></tr></table>") == "a b\n"

    def test_entities_are_decoded(self):
        assert html_to_text("<p>fish &amp; chips</p>") == "fish & chips\n"
