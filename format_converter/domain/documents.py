"""Intermediate values passed from parsers to serializers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

from .formats import FormatId


@dataclass
class Table:
    """Ordered columns plus positional rows of strings.

    Rows keep the width they were parsed with; short rows are padded only
    when read through ``cell`` or ``records``.
    """
    columns: List[str]
    rows: List[List[str]] = field(default_factory=list)
    source: Optional[FormatId] = None

    def cell(self, row: List[str], index: int) -> str:
        return row[index] if index < len(row) else ""

    def padded_rows(self) -> Iterator[List[str]]:
        width = len(self.columns)
        for row in self.rows:
            yield [self.cell(row, i) for i in range(width)]

    def records(self) -> Iterator[Dict[str, str]]:
        for row in self.padded_rows():
            record: Dict[str, str] = {}
            for name, value in zip(self.columns, row):
                record[name] = value
            yield record

    def __len__(self) -> int:
        return len(self.rows)


@dataclass
class RecordDocument:
    """Untyped tree: None, bool, int, float, str, list, dict."""
    value: Any
    source: Optional[FormatId] = None


@dataclass
class TextDocument:
    """Raw text tagged with the format it came from."""
    text: str
    source: FormatId


IntermediateValue = Any  # Table | RecordDocument | TextDocument

# Column layout of the field inventory read from BI and visualization workbooks.
FIELD_INVENTORY_COLUMNS = ("table", "column", "data_type")


def is_field_inventory(table: Table) -> bool:
    return tuple(table.columns) == FIELD_INVENTORY_COLUMNS


__all__ = [
    "FIELD_INVENTORY_COLUMNS",
    "IntermediateValue",
    "RecordDocument",
    "Table",
    "TextDocument",
    "is_field_inventory",
]
