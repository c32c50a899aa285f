"""Domain models for supported file formats."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from .errors import UnknownFormat


class FormatCategory(Enum):
    """Structural category of a format."""
    TABULAR = "tabular"
    CODE = "code"
    MARKUP = "markup"
    DOCUMENT = "document"
    VISUALIZATION = "visualization"


class FormatId(Enum):
    """Closed set of format identifiers known to the engine."""
    TABULAR_CSV = "csv"
    RECORD_JSON = "json"
    SCRIPT_SQL = "sql"
    SCRIPT_PYTHON = "python"
    SPREADSHEET = "excel"
    COLUMNAR_STORAGE = "parquet"
    RECORD_YAML = "yaml"
    MARKUP_XML = "xml"
    TABULAR_TSV = "tsv"
    NOTEBOOK_JUPYTER = "jupyter"
    SCRIPT_R = "r"
    MARKUP_MARKDOWN = "markdown"
    DOCUMENT_TEXT = "txt"
    MARKUP_HTML = "html"
    DOCUMENT_PDF = "pdf"
    BI_WORKBOOK = "pbix"
    VIZ_WORKBOOK = "tbwx"
    NOTEBOOK_GENERIC = "notebook"

    @property
    def label(self) -> str:
        """Dashed name, e.g. ``tabular-csv``."""
        return self.name.lower().replace("_", "-")

    @classmethod
    def from_string(cls, value: str) -> "FormatId":
        """Resolve a value (``csv``), enum name or dashed label."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        for format_id in cls:
            if key in (format_id.value, format_id.name.lower(), format_id.label):
                return format_id
        raise UnknownFormat(f"Unknown format: {value}")

    @classmethod
    def all_formats(cls) -> List["FormatId"]:
        return list(cls)


@dataclass(frozen=True)
class FormatDescriptor:
    """Static description of a format."""
    format: FormatId
    name: str
    extensions: Tuple[str, ...]
    description: str
    category: FormatCategory

    @property
    def default_extension(self) -> str:
        return self.extensions[0]

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.format.value,
            "name": self.name,
            "extensions": list(self.extensions),
            "description": self.description,
            "category": self.category.value,
        }
