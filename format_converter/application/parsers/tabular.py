"""Delimited-text and spreadsheet parsers producing ``Table`` values."""
from __future__ import annotations

import datetime
import io
import re
from typing import Any, List, Optional

from ...domain.codecs import Parser
from ...domain.documents import Table
from ...domain.errors import ParseError, ParseFailure
from ...domain.formats import FormatId

XLSX_MAGIC = "PK\x03\x04"
PARQUET_MAGIC = "PAR1"
_ROW_SPLIT = re.compile(r"\r?\n")


def clean_field(field: str) -> str:
    """Trim whitespace and one enclosing pair of matching quotes."""
    field = field.strip()
    if len(field) >= 2 and field[0] == field[-1] and field[0] in "\"'":
        field = field[1:-1]
    return field


class TabularParser(Parser):
    """Naive delimited reader.

    Rows are newline separated and fields are split on the delimiter with
    no quote awareness; a delimiter inside quotes splits the field. The
    first row is the header and row widths are not validated.
    """

    produces = Table

    def __init__(self, source: FormatId, delimiter: str = ",") -> None:
        super().__init__(source)
        self.delimiter = delimiter

    def parse(self, text: str) -> Table:
        if not text.strip():
            raise ParseError("Input is empty", ParseFailure.EMPTY_INPUT)
        lines = _ROW_SPLIT.split(text.strip("\r\n"))
        header = [clean_field(field) for field in lines[0].split(self.delimiter)]
        rows = [
            [clean_field(field) for field in line.split(self.delimiter)]
            for line in lines[1:]
            if line.strip()
        ]
        return Table(columns=header, rows=rows, source=self.source)


def cell_text(value: Any) -> str:
    """Text form of a typed spreadsheet or Parquet cell."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def binary_stream(text: str, magic: str, label: str) -> Optional[bytes]:
    """Bytes of a latin-1 transported stream that starts with ``magic``."""
    if not text.startswith(magic):
        return None
    try:
        return text.encode("latin-1")
    except UnicodeEncodeError as exc:
        raise ParseError(
            f"{label} stream contains characters outside latin-1; read the file in binary mode",
            ParseFailure.MALFORMED_RECORD,
            cause=exc,
        ) from exc


def _table_from_rows(rows: List[List[str]], source: FormatId) -> Table:
    rows = [row for row in rows if any(row)]
    if not rows:
        raise ParseError("Worksheet has no rows", ParseFailure.EMPTY_INPUT)
    header = rows[0]
    while header and not header[-1]:
        header = header[:-1]
    width = len(header)
    return Table(columns=header, rows=[row[:width] for row in rows[1:]], source=source)


def read_workbook(data: bytes) -> List[List[str]]:
    """Cell text of the active worksheet, row by row."""
    import openpyxl

    workbook = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        sheet = workbook.active
        return [[cell_text(value) for value in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


class SpreadsheetParser(TabularParser):
    """``.xlsx`` bytes (latin-1 transported) or tab-delimited clipboard text."""

    def __init__(self, source: FormatId = FormatId.SPREADSHEET) -> None:
        super().__init__(source, delimiter="\t")

    def parse(self, text: str) -> Table:
        data = binary_stream(text, XLSX_MAGIC, "Workbook")
        if data is None:
            return super().parse(text)
        try:
            rows = read_workbook(data)
        except Exception as exc:
            raise ParseError(f"Unreadable workbook: {exc}", ParseFailure.MALFORMED_RECORD, cause=exc) from exc
        return _table_from_rows(rows, self.source)


def read_parquet(data: bytes) -> Table:
    import pyarrow as pa
    import pyarrow.parquet as pq

    table = pq.read_table(pa.BufferReader(data))
    columns = [str(name) for name in table.column_names]
    rows = [[cell_text(record[name]) for name in table.column_names] for record in table.to_pylist()]
    return Table(columns=columns, rows=rows)


class ColumnarParser(TabularParser):
    """Parquet bytes (latin-1 transported) or a comma-separated dump."""

    def __init__(self, source: FormatId = FormatId.COLUMNAR_STORAGE) -> None:
        super().__init__(source, delimiter=",")

    def parse(self, text: str) -> Table:
        data = binary_stream(text, PARQUET_MAGIC, "Parquet")
        if data is None:
            return super().parse(text)
        try:
            table = read_parquet(data)
        except Exception as exc:
            raise ParseError(f"Unreadable Parquet file: {exc}", ParseFailure.MALFORMED_RECORD, cause=exc) from exc
        if not table.columns:
            raise ParseError("Parquet file has no columns", ParseFailure.EMPTY_INPUT)
        return Table(columns=table.columns, rows=table.rows, source=self.source)
