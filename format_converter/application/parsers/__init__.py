"""Source parsers, one per registered format."""
from typing import Dict

from ...domain.codecs import Parser
from ...domain.formats import FormatId
from .records import JsonParser, XmlParser, YamlParser
from .tabular import ColumnarParser, SpreadsheetParser, TabularParser
from .text import JupyterParser, PdfParser, TextParser
from .workbooks import PowerBiModelParser, TableauWorkbookParser

F = FormatId

PARSERS: Dict[FormatId, Parser] = {
    F.TABULAR_CSV: TabularParser(F.TABULAR_CSV, ","),
    F.TABULAR_TSV: TabularParser(F.TABULAR_TSV, "\t"),
    F.COLUMNAR_STORAGE: ColumnarParser(),
    F.SPREADSHEET: SpreadsheetParser(),
    F.RECORD_JSON: JsonParser(),
    F.RECORD_YAML: YamlParser(),
    F.MARKUP_XML: XmlParser(),
    F.SCRIPT_SQL: TextParser(F.SCRIPT_SQL),
    F.SCRIPT_PYTHON: TextParser(F.SCRIPT_PYTHON),
    F.SCRIPT_R: TextParser(F.SCRIPT_R),
    F.MARKUP_MARKDOWN: TextParser(F.MARKUP_MARKDOWN),
    F.DOCUMENT_TEXT: TextParser(F.DOCUMENT_TEXT),
    F.MARKUP_HTML: TextParser(F.MARKUP_HTML),
    F.NOTEBOOK_JUPYTER: JupyterParser(),
    F.NOTEBOOK_GENERIC: TextParser(F.NOTEBOOK_GENERIC),
    F.DOCUMENT_PDF: PdfParser(),
    F.BI_WORKBOOK: PowerBiModelParser(),
    F.VIZ_WORKBOOK: TableauWorkbookParser(),
}


__all__ = [
    "ColumnarParser",
    "JsonParser",
    "JupyterParser",
    "PARSERS",
    "PdfParser",
    "PowerBiModelParser",
    "SpreadsheetParser",
    "TableauWorkbookParser",
    "TabularParser",
    "TextParser",
    "XmlParser",
    "YamlParser",
]
