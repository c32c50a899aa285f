"""Format registry: static catalog of formats and declared conversion edges."""
from __future__ import annotations

from functools import lru_cache
from pathlib import PurePath
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..domain.errors import UnknownFormat
from ..domain.formats import FormatCategory, FormatDescriptor, FormatId


F = FormatId

CATALOG: Tuple[FormatDescriptor, ...] = (
    FormatDescriptor(F.TABULAR_CSV, "CSV", (".csv",), "Comma-separated values file", FormatCategory.TABULAR),
    FormatDescriptor(F.RECORD_JSON, "JSON", (".json",), "JavaScript Object Notation", FormatCategory.TABULAR),
    FormatDescriptor(F.SCRIPT_SQL, "SQL", (".sql",), "Structured Query Language", FormatCategory.CODE),
    FormatDescriptor(F.SCRIPT_PYTHON, "Python", (".py",), "Python script file", FormatCategory.CODE),
    FormatDescriptor(F.SPREADSHEET, "Excel", (".xlsx", ".xls"), "Microsoft Excel spreadsheet", FormatCategory.TABULAR),
    FormatDescriptor(
        F.COLUMNAR_STORAGE, "Parquet", (".parquet",), "Apache Parquet columnar storage", FormatCategory.TABULAR
    ),
    FormatDescriptor(F.RECORD_YAML, "YAML", (".yaml", ".yml"), "YAML Ain't Markup Language", FormatCategory.MARKUP),
    FormatDescriptor(F.MARKUP_XML, "XML", (".xml",), "eXtensible Markup Language", FormatCategory.MARKUP),
    FormatDescriptor(F.TABULAR_TSV, "TSV", (".tsv",), "Tab-separated values file", FormatCategory.TABULAR),
    FormatDescriptor(F.NOTEBOOK_JUPYTER, "Jupyter Notebook", (".ipynb",), "Jupyter notebook file", FormatCategory.CODE),
    FormatDescriptor(F.SCRIPT_R, "R Script", (".r",), "R programming language script", FormatCategory.CODE),
    FormatDescriptor(
        F.MARKUP_MARKDOWN, "Markdown", (".md", ".markdown"), "Markdown markup language", FormatCategory.MARKUP
    ),
    FormatDescriptor(F.DOCUMENT_TEXT, "Text", (".txt",), "Plain text file", FormatCategory.DOCUMENT),
    FormatDescriptor(F.MARKUP_HTML, "HTML", (".html", ".htm"), "HyperText Markup Language", FormatCategory.MARKUP),
    FormatDescriptor(F.DOCUMENT_PDF, "PDF", (".pdf",), "Portable Document Format", FormatCategory.DOCUMENT),
    FormatDescriptor(F.BI_WORKBOOK, "Power BI", (".pbix",), "Microsoft Power BI file", FormatCategory.VISUALIZATION),
    FormatDescriptor(
        F.VIZ_WORKBOOK, "Tableau Workbook", (".twbx", ".twb"), "Tableau workbook file", FormatCategory.VISUALIZATION
    ),
    FormatDescriptor(
        F.NOTEBOOK_GENERIC, "Generic Notebook", (".nb", ".notebook"), "Generic notebook format", FormatCategory.CODE
    ),
)

EDGES: Mapping[FormatId, Tuple[FormatId, ...]] = {
    F.TABULAR_CSV: (
        F.RECORD_JSON, F.SPREADSHEET, F.SCRIPT_SQL, F.SCRIPT_PYTHON, F.TABULAR_TSV,
        F.RECORD_YAML, F.MARKUP_XML, F.MARKUP_MARKDOWN, F.BI_WORKBOOK,
    ),
    F.RECORD_JSON: (
        F.TABULAR_CSV, F.SPREADSHEET, F.SCRIPT_PYTHON, F.RECORD_YAML, F.MARKUP_XML,
        F.SCRIPT_SQL, F.MARKUP_MARKDOWN, F.BI_WORKBOOK,
    ),
    F.SCRIPT_SQL: (F.SCRIPT_PYTHON, F.TABULAR_CSV, F.RECORD_JSON, F.MARKUP_MARKDOWN, F.DOCUMENT_TEXT),
    F.SCRIPT_PYTHON: (F.NOTEBOOK_JUPYTER, F.SCRIPT_SQL, F.MARKUP_MARKDOWN, F.DOCUMENT_TEXT, F.NOTEBOOK_GENERIC),
    F.SPREADSHEET: (F.TABULAR_CSV, F.RECORD_JSON, F.SCRIPT_PYTHON, F.TABULAR_TSV, F.RECORD_YAML, F.BI_WORKBOOK),
    F.COLUMNAR_STORAGE: (F.TABULAR_CSV, F.RECORD_JSON, F.SCRIPT_PYTHON, F.SPREADSHEET, F.BI_WORKBOOK),
    F.RECORD_YAML: (F.RECORD_JSON, F.MARKUP_XML, F.SCRIPT_PYTHON, F.MARKUP_MARKDOWN),
    F.MARKUP_XML: (F.RECORD_JSON, F.RECORD_YAML, F.TABULAR_CSV, F.SCRIPT_PYTHON, F.MARKUP_MARKDOWN),
    F.TABULAR_TSV: (F.TABULAR_CSV, F.RECORD_JSON, F.SPREADSHEET, F.SCRIPT_PYTHON, F.RECORD_YAML),
    F.NOTEBOOK_JUPYTER: (F.SCRIPT_PYTHON, F.MARKUP_MARKDOWN, F.MARKUP_HTML, F.NOTEBOOK_GENERIC),
    F.SCRIPT_R: (F.SCRIPT_PYTHON, F.TABULAR_CSV, F.MARKUP_MARKDOWN, F.DOCUMENT_TEXT),
    F.MARKUP_MARKDOWN: (F.MARKUP_HTML, F.DOCUMENT_TEXT, F.DOCUMENT_PDF),
    F.DOCUMENT_TEXT: (F.MARKUP_MARKDOWN, F.SCRIPT_PYTHON, F.SCRIPT_SQL, F.RECORD_YAML),
    F.MARKUP_HTML: (F.MARKUP_MARKDOWN, F.DOCUMENT_TEXT, F.DOCUMENT_PDF),
    F.DOCUMENT_PDF: (F.DOCUMENT_TEXT, F.MARKUP_MARKDOWN),
    F.BI_WORKBOOK: (F.SCRIPT_PYTHON, F.TABULAR_CSV, F.RECORD_JSON, F.SPREADSHEET, F.VIZ_WORKBOOK),
    F.VIZ_WORKBOOK: (F.SCRIPT_PYTHON, F.TABULAR_CSV, F.RECORD_JSON, F.SPREADSHEET, F.BI_WORKBOOK),
    F.NOTEBOOK_GENERIC: (F.SCRIPT_PYTHON, F.NOTEBOOK_JUPYTER, F.MARKUP_MARKDOWN),
}


class FormatRegistry:
    """Immutable catalog of format descriptors and conversion edges."""

    def __init__(
        self,
        descriptors: Iterable[FormatDescriptor] = CATALOG,
        edges: Mapping[FormatId, Sequence[FormatId]] = EDGES,
    ) -> None:
        self._descriptors: Dict[FormatId, FormatDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.format in self._descriptors:
                raise ValueError(f"Duplicate descriptor for {descriptor.format.value}")
            if not descriptor.extensions:
                raise ValueError(f"Format {descriptor.format.value} declares no extensions")
            self._descriptors[descriptor.format] = descriptor
        self._check_extensions()

        self._edges: Dict[FormatId, Tuple[FormatId, ...]] = {}
        for source, targets in edges.items():
            if source not in self._descriptors:
                raise ValueError(f"Edges declared for unregistered format {source.value}")
            unique: List[FormatId] = []
            for target in targets:
                if target not in self._descriptors:
                    raise ValueError(f"Edge {source.value} -> {target.value} targets an unregistered format")
                if target not in unique:
                    unique.append(target)
            self._edges[source] = tuple(unique)

    def _check_extensions(self) -> None:
        owners: Dict[str, FormatId] = {}
        for descriptor in self._descriptors.values():
            for ext in descriptor.extensions:
                key = ext.lower()
                if key in owners:
                    raise ValueError(
                        f"Extension {ext} claimed by both {owners[key].value} and {descriptor.format.value}"
                    )
                owners[key] = descriptor.format

    def describe(self, format_id: FormatId) -> FormatDescriptor:
        """Return the descriptor for a format id."""
        try:
            return self._descriptors[format_id]
        except (KeyError, TypeError):
            raise UnknownFormat(f"Format '{format_id}' is not registered") from None

    def detect(self, filename: str) -> Optional[FormatId]:
        """Match a filename's extension (case-insensitive) against the catalog."""
        suffix = PurePath(str(filename)).suffix.lower()
        if not suffix:
            return None
        for descriptor in self._descriptors.values():
            if suffix in (ext.lower() for ext in descriptor.extensions):
                return descriptor.format
        return None

    def reachable_targets(self, format_id: FormatId) -> Tuple[FormatId, ...]:
        """Declared targets for a source, in declaration order."""
        return self._edges.get(format_id, ())

    def is_reachable(self, source: FormatId, target: FormatId) -> bool:
        return target in self.reachable_targets(source)

    def formats(self) -> List[FormatDescriptor]:
        return list(self._descriptors.values())

    def __contains__(self, format_id: object) -> bool:
        return format_id in self._descriptors


@lru_cache(maxsize=1)
def default_registry() -> FormatRegistry:
    """Process-wide registry built from the static catalog."""
    return FormatRegistry()


def describe(format_id: FormatId) -> FormatDescriptor:
    return default_registry().describe(format_id)


def detect(filename: str) -> Optional[FormatId]:
    return default_registry().detect(filename)


def reachable_targets(format_id: FormatId) -> Tuple[FormatId, ...]:
    return default_registry().reachable_targets(format_id)
