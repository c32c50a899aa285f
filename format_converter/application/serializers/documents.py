"""PDF serializer built on PyMuPDF."""
from __future__ import annotations

from typing import Any, List

from ...domain.codecs import Serializer
from ...domain.documents import TextDocument
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from .markup import document_text

PAGE_MARGIN = 56  # points, about 2 cm
LINE_SPACING = 1.4
FONT_NAME = "helv"


def _wrap(line: str, width: float, fitz: Any, font_size: float) -> List[str]:
    words = line.split(" ")
    lines: List[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}" if current else word
        if fitz.get_text_length(candidate, fontname=FONT_NAME, fontsize=font_size) <= width or not current:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def render_pdf(text: str, title: str, font_size: float = 11.0) -> bytes:
    """Lay ``text`` out on A4 pages in Helvetica and return the PDF bytes."""
    import pymupdf as fitz  # PyMuPDF

    width, height = fitz.paper_size("a4")
    usable = width - 2 * PAGE_MARGIN
    line_height = font_size * LINE_SPACING

    lines: List[str] = []
    for raw in text.replace("\r\n", "\n").split("\n"):
        lines.extend(_wrap(raw.rstrip(), usable, fitz, font_size) if raw.strip() else [""])

    document = fitz.open()
    document.set_metadata({"title": title, "creator": "format_converter"})
    page = None
    y = 0.0
    for line in lines:
        if page is None or y > height - PAGE_MARGIN:
            page = document.new_page(width=width, height=height)
            y = PAGE_MARGIN + font_size
        if line:
            page.insert_text((PAGE_MARGIN, y), line, fontname=FONT_NAME, fontsize=font_size)
        y += line_height
    if page is None:
        document.new_page(width=width, height=height)

    data = document.tobytes(garbage=3, deflate=True)
    document.close()
    return data


class PdfSerializer(Serializer):
    """PDF bytes, latin-1 decoded so they can travel as text."""

    accepts = (TextDocument,)

    def __init__(self, target: FormatId = FormatId.DOCUMENT_PDF) -> None:
        super().__init__(target)

    def serialize(self, value: TextDocument, options: ConversionOptions) -> str:
        text = document_text(value)
        data = render_pdf(text, options.name or "document", options.font_size or 11.0)
        return data.decode("latin-1")
