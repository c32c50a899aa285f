"""Target serializers, one per registered format."""
from typing import Dict

from ...domain.codecs import Serializer
from ...domain.formats import FormatId
from .documents import PdfSerializer
from .markup import HtmlSerializer, MarkdownSerializer, PlainTextSerializer
from .notebooks import JupyterSerializer, PercentNotebookSerializer
from .records import JsonSerializer, XmlSerializer, YamlSerializer
from .scaffolds import PythonScaffoldSerializer, SqlSerializer
from .tabular import DelimitedSerializer
from .workbooks import PowerQuerySerializer, SpreadsheetSerializer, TableauWorkbookSerializer

F = FormatId

SERIALIZERS: Dict[FormatId, Serializer] = {
    F.TABULAR_CSV: DelimitedSerializer(F.TABULAR_CSV, ","),
    F.TABULAR_TSV: DelimitedSerializer(F.TABULAR_TSV, "\t"),
    F.RECORD_JSON: JsonSerializer(),
    F.RECORD_YAML: YamlSerializer(),
    F.MARKUP_XML: XmlSerializer(),
    F.MARKUP_MARKDOWN: MarkdownSerializer(),
    F.MARKUP_HTML: HtmlSerializer(),
    F.DOCUMENT_TEXT: PlainTextSerializer(),
    F.DOCUMENT_PDF: PdfSerializer(),
    F.SCRIPT_PYTHON: PythonScaffoldSerializer(),
    F.SCRIPT_SQL: SqlSerializer(),
    F.NOTEBOOK_JUPYTER: JupyterSerializer(),
    F.NOTEBOOK_GENERIC: PercentNotebookSerializer(),
    F.SPREADSHEET: SpreadsheetSerializer(),
    F.BI_WORKBOOK: PowerQuerySerializer(),
    F.VIZ_WORKBOOK: TableauWorkbookSerializer(),
}


__all__ = [
    "DelimitedSerializer",
    "HtmlSerializer",
    "JsonSerializer",
    "JupyterSerializer",
    "MarkdownSerializer",
    "PdfSerializer",
    "PercentNotebookSerializer",
    "PlainTextSerializer",
    "PowerQuerySerializer",
    "PythonScaffoldSerializer",
    "SERIALIZERS",
    "SpreadsheetSerializer",
    "SqlSerializer",
    "TableauWorkbookSerializer",
    "XmlSerializer",
    "YamlSerializer",
]
