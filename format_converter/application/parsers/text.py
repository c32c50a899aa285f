"""Parsers that carry their source as text."""
from __future__ import annotations

import json

from ...domain.codecs import Parser
from ...domain.documents import TextDocument
from ...domain.errors import ParseError, ParseFailure
from ...domain.formats import FormatId
from ..notebooks import load_notebook

PDF_MAGIC = "%PDF-"


class TextParser(Parser):
    """Source kept verbatim, tagged with its format."""

    produces = TextDocument

    def parse(self, text: str) -> TextDocument:
        return TextDocument(text, self.source)


class JupyterParser(TextParser):
    """Checks the notebook JSON shape; the text itself is carried as-is."""

    def __init__(self, source: FormatId = FormatId.NOTEBOOK_JUPYTER) -> None:
        super().__init__(source)

    def parse(self, text: str) -> TextDocument:
        if not text.strip():
            raise ParseError("Notebook input is empty", ParseFailure.EMPTY_INPUT)
        try:
            load_notebook(text)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Malformed notebook JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}",
                ParseFailure.MALFORMED_RECORD,
                position=(exc.lineno, exc.colno),
                cause=exc,
            ) from exc
        except ValueError as exc:
            raise ParseError(f"Malformed notebook: {exc}", ParseFailure.MALFORMED_RECORD, cause=exc) from exc
        return TextDocument(text, self.source)


def extract_pdf_text(data: bytes) -> str:
    """Text of every page, pages separated by a blank line."""
    import pymupdf as fitz  # PyMuPDF

    with fitz.open(stream=data, filetype="pdf") as document:
        if document.page_count == 0:
            raise ValueError("document has no pages")
        pages = [page.get_text().strip("\n") for page in document]
    return "\n\n".join(pages)


class PdfParser(TextParser):
    """PDF byte stream (latin-1 transported) or already-extracted text."""

    def __init__(self, source: FormatId = FormatId.DOCUMENT_PDF) -> None:
        super().__init__(source)

    def parse(self, text: str) -> TextDocument:
        if not text.lstrip().startswith(PDF_MAGIC):
            return TextDocument(text, self.source)
        try:
            data = text.lstrip().encode("latin-1")
        except UnicodeEncodeError as exc:
            raise ParseError(
                "PDF stream contains characters outside latin-1; read the file in binary mode",
                ParseFailure.MALFORMED_RECORD,
                cause=exc,
            ) from exc
        try:
            extracted = extract_pdf_text(data)
        except Exception as exc:
            raise ParseError(f"Unreadable PDF: {exc}", ParseFailure.MALFORMED_RECORD, cause=exc) from exc
        return TextDocument(extracted, self.source)
