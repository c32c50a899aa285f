"""Markdown, HTML and plain-text serializers."""
from __future__ import annotations

import html as html_lib
import re
from typing import Any, List

from ...domain.codecs import Serializer
from ...domain.documents import RecordDocument, Table, TextDocument
from ...domain.errors import SerializeError
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from ..markup import (
    first_heading,
    html_document,
    html_to_markdown,
    html_to_text,
    markdown_to_html,
)
from ..notebooks import Cell, read_jupyter, read_percent
from ..views import render_scalar

F = FormatId

CODE_LANGUAGES = {F.SCRIPT_SQL: "sql", F.SCRIPT_PYTHON: "python", F.SCRIPT_R: "r"}
CODE_TITLES = {F.SCRIPT_SQL: "SQL Script", F.SCRIPT_PYTHON: "Python Script", F.SCRIPT_R: "R Script"}


def fence(code: str, language: str = "") -> str:
    """Fenced code block whose fence outruns any backtick run in ``code``."""
    longest = max((len(run) for run in re.findall(r"`+", code)), default=0)
    marker = "`" * max(3, longest + 1)
    return f"{marker}{language}\n{code.rstrip(chr(10))}\n{marker}"


def notebook_cells(document: TextDocument) -> List[Cell]:
    if document.source is F.NOTEBOOK_JUPYTER:
        cells, _ = read_jupyter(document.text)
        return cells
    return read_percent(document.text)


def _cell_text(value: str) -> str:
    return value.replace("|", "\\|").replace("\r\n", "\n").replace("\n", "<br>")


def table_to_markdown(table: Table) -> str:
    if not table.columns:
        return ""
    lines = ["| " + " | ".join(_cell_text(column) for column in table.columns) + " |"]
    lines.append("| " + " | ".join("---" for _ in table.columns) + " |")
    for row in table.padded_rows():
        lines.append("| " + " | ".join(_cell_text(cell) for cell in row) + " |")
    return "\n".join(lines) + "\n"


def _inline(value: Any) -> str:
    if isinstance(value, (dict, list)) and not value:
        return "_(empty)_"
    return render_scalar(value).replace("\n", " ")


def _tree_lines(value: Any, depth: int, lines: List[str]) -> None:
    pad = "  " * depth
    if isinstance(value, dict):
        for key, item in value.items():
            if isinstance(item, (dict, list)) and item:
                lines.append(f"{pad}- **{key}**:")
                _tree_lines(item, depth + 1, lines)
            else:
                lines.append(f"{pad}- **{key}**: {_inline(item)}")
    elif isinstance(value, list):
        for index, item in enumerate(value, 1):
            if isinstance(item, (dict, list)) and item:
                lines.append(f"{pad}- Item {index}")
                _tree_lines(item, depth + 1, lines)
            else:
                lines.append(f"{pad}- {_inline(item)}")
    else:
        lines.append(f"{pad}{_inline(value)}")


def records_to_markdown(value: Any) -> str:
    """Nested bullet list, two spaces of indent per level."""
    lines: List[str] = []
    _tree_lines(value, 0, lines)
    return "\n".join(lines) + "\n"


def cells_to_markdown(cells: List[Cell], language: str = "python") -> str:
    blocks = []
    for cell in cells:
        if cell.kind == "markdown":
            blocks.append(cell.source.strip("\n"))
        elif cell.kind == "code":
            blocks.append(fence(cell.source, language))
        elif cell.source.strip():
            blocks.append(fence(cell.source))
    return "\n\n".join(block for block in blocks if block) + "\n"


class MarkdownSerializer(Serializer):
    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = F.MARKUP_MARKDOWN) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        if isinstance(value, Table):
            return table_to_markdown(value)
        if isinstance(value, RecordDocument):
            return records_to_markdown(value.value)

        source = value.source
        if source in CODE_LANGUAGES:
            return f"# {CODE_TITLES[source]}\n\n{fence(value.text, CODE_LANGUAGES[source])}\n"
        if source is F.MARKUP_HTML:
            return html_to_markdown(value.text)
        if source is F.NOTEBOOK_JUPYTER:
            cells, language = read_jupyter(value.text)
            return cells_to_markdown(cells, language)
        if source is F.NOTEBOOK_GENERIC:
            return cells_to_markdown(read_percent(value.text))
        if source in (F.DOCUMENT_TEXT, F.DOCUMENT_PDF, F.MARKUP_MARKDOWN):
            return value.text.rstrip() + "\n"
        raise SerializeError(f"Cannot render {source.value} content as Markdown")


class HtmlSerializer(Serializer):
    """Standalone HTML page from Markdown or notebook content."""

    accepts = (TextDocument,)

    def __init__(self, target: FormatId = F.MARKUP_HTML) -> None:
        super().__init__(target)

    def serialize(self, value: TextDocument, options: ConversionOptions) -> str:
        if value.source is F.MARKUP_MARKDOWN:
            body = markdown_to_html(value.text)
            title = first_heading(value.text) or options.name or "Document"
            return html_document(body, title)
        if value.source in (F.NOTEBOOK_JUPYTER, F.NOTEBOOK_GENERIC):
            return html_document(self._cells_html(notebook_cells(value)), options.name or "Notebook")
        if value.source in (F.DOCUMENT_TEXT, F.DOCUMENT_PDF):
            paragraphs = [block for block in re.split(r"\n\s*\n", value.text) if block.strip()]
            body = "\n".join(f"<p>{html_lib.escape(block.strip())}</p>" for block in paragraphs)
            return html_document(body, options.name or "Document")
        raise SerializeError(f"Cannot render {value.source.value} content as HTML")

    def _cells_html(self, cells: List[Cell]) -> str:
        parts = []
        for cell in cells:
            if cell.kind == "markdown":
                parts.append(f'<div class="cell markdown">\n{markdown_to_html(cell.source)}\n</div>')
                continue
            code = html_lib.escape(cell.source, quote=False)
            block = [f'<div class="cell code">\n<pre><code>{code}</code></pre>']
            for output in cell.outputs:
                block.append(f'<pre class="output">{html_lib.escape(output, quote=False)}</pre>')
            block.append("</div>")
            parts.append("\n".join(block))
        return "\n".join(parts)


def document_text(value: TextDocument) -> str:
    """Readable text for text-carrying values (HTML and Markdown are rendered)."""
    if value.source is F.MARKUP_HTML:
        return html_to_text(value.text)
    if value.source is F.MARKUP_MARKDOWN:
        return html_to_text(markdown_to_html(value.text))
    return value.text


class PlainTextSerializer(Serializer):
    accepts = (TextDocument,)

    def __init__(self, target: FormatId = F.DOCUMENT_TEXT) -> None:
        super().__init__(target)

    def serialize(self, value: TextDocument, options: ConversionOptions) -> str:
        return document_text(value)
