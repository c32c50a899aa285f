"""Shape adapters shared by serializers.

Serializers never inspect foreign intermediate values directly. They ask
for the view they need and get either a value of that shape or a
``SerializeError(SHAPE_MISMATCH)``.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Optional

from ..domain.documents import RecordDocument, Table, TextDocument
from ..domain.errors import SerializeError
from ..domain.formats import FormatId
from .script_tables import table_from_r, table_from_sql

_INTEGER_RE = re.compile(r"^[+-]?\d+$")
_REAL_RE = re.compile(r"^[+-]?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?$")
# Characters outside the XML 1.0 Char production.
_XML_ILLEGAL_RE = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def render_scalar(value: Any) -> str:
    """Text form of a record leaf as it appears in a table cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def xml_text(value: str) -> str:
    """Drop characters an XML 1.0 document cannot carry."""
    return _XML_ILLEGAL_RE.sub("", value)


def infer_column_type(values: Iterable[str]) -> str:
    """Classify a column as ``integer``, ``real`` or ``text``.

    Empty cells are ignored; a column with no values at all is ``text``.
    """
    seen = [value.strip() for value in values if value.strip()]
    if not seen:
        return "text"
    if all(_INTEGER_RE.match(value) for value in seen):
        return "integer"
    if all(_REAL_RE.match(value) for value in seen):
        return "real"
    return "text"


def column_values(table: Table, index: int) -> List[str]:
    return [table.cell(row, index) for row in table.rows]


def _xml_records(tree: Any) -> Any:
    if not isinstance(tree, dict) or len(tree) != 1:
        return tree
    content = next(iter(tree.values()))
    if isinstance(content, dict):
        children = [
            value for key, value in content.items()
            if not key.startswith(("@", "#"))
        ]
        if len(children) == 1 and isinstance(children[0], (list, dict)):
            content = children[0]
    if isinstance(content, dict):
        return [content]
    return content


def _records_to_table(records: Any, source: Optional[FormatId]) -> Table:
    if not isinstance(records, list) or not records:
        raise SerializeError("Data must be a non-empty array of objects")
    if not all(isinstance(record, dict) for record in records):
        raise SerializeError("Every array element must be an object")
    if not records[0]:
        raise SerializeError("The first object has no keys to use as columns")

    columns = [str(key) for key in records[0]]
    rows: List[List[str]] = []
    for record in records:
        keyed: Dict[str, Any] = {str(key): value for key, value in record.items()}
        rows.append([render_scalar(keyed.get(column)) for column in columns])
    return Table(columns=columns, rows=rows, source=source)


def tabular_view(value: Any) -> Table:
    """Return ``value`` as a ``Table`` or raise ``SerializeError``."""
    if isinstance(value, Table):
        return value
    if isinstance(value, RecordDocument):
        records = value.value
        if value.source is FormatId.MARKUP_XML:
            records = _xml_records(records)
        return _records_to_table(records, value.source)
    if isinstance(value, TextDocument):
        table = None
        if value.source is FormatId.SCRIPT_SQL:
            table = table_from_sql(value.text)
            if table is None:
                raise SerializeError("SQL script contains no INSERT ... VALUES statements")
        elif value.source is FormatId.SCRIPT_R:
            table = table_from_r(value.text)
            if table is None:
                raise SerializeError("R script contains no data.frame(...) literal")
        if table is not None:
            return table
    raise SerializeError(f"Cannot read {type(value).__name__} as a table")


def record_view(value: Any) -> Any:
    """Return ``value`` as a plain record tree (lists, dicts, scalars)."""
    if isinstance(value, RecordDocument):
        return value.value
    if isinstance(value, Table):
        return list(value.records())
    if isinstance(value, TextDocument) and value.source in (FormatId.SCRIPT_SQL, FormatId.SCRIPT_R):
        return list(tabular_view(value).records())
    raise SerializeError(f"Cannot read {type(value).__name__} as records")
