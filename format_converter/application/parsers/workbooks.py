"""Field-inventory readers for BI and visualization workbooks.

Neither parser reads data rows. They list the fields a workbook declares,
one row per ``(table, column, data_type)``, which is enough to scaffold
the same model in another tool.
"""
from __future__ import annotations

import json
from typing import Any, List, Set, Tuple

from ...domain.codecs import Parser
from ...domain.documents import FIELD_INVENTORY_COLUMNS, Table
from ...domain.errors import ParseError, ParseFailure
from ...domain.formats import FormatId
from .records import local_name, parse_untrusted_xml


def _inventory(rows: List[List[str]], source: FormatId) -> Table:
    return Table(columns=list(FIELD_INVENTORY_COLUMNS), rows=rows, source=source)


def _unbracket(name: str) -> str:
    if name.startswith("[") and name.endswith("]"):
        return name[1:-1]
    return name


class TableauWorkbookParser(Parser):
    """Columns declared by the ``datasource`` elements of a ``.twb`` file."""

    produces = Table

    def __init__(self, source: FormatId = FormatId.VIZ_WORKBOOK) -> None:
        super().__init__(source)

    def parse(self, text: str) -> Table:
        if not text.strip():
            raise ParseError("Workbook input is empty", ParseFailure.EMPTY_INPUT)
        root = parse_untrusted_xml(text, "workbook XML")

        rows: List[List[str]] = []
        seen: Set[Tuple[str, str]] = set()
        for datasource in root.iter():
            if local_name(datasource.tag) != "datasource":
                continue
            table = datasource.get("caption") or _unbracket(datasource.get("name", ""))
            for column in datasource:
                if local_name(column.tag) != "column":
                    continue
                name = column.get("caption") or _unbracket(column.get("name", ""))
                if not name or (table, name) in seen:
                    continue
                seen.add((table, name))
                rows.append([table, name, column.get("datatype", "")])
        return _inventory(rows, self.source)


class PowerBiModelParser(Parser):
    """Tables and columns of a tabular-model JSON (``model.bim``, ``DataModelSchema``)."""

    produces = Table

    def __init__(self, source: FormatId = FormatId.BI_WORKBOOK) -> None:
        super().__init__(source)

    def parse(self, text: str) -> Table:
        if not text.strip():
            raise ParseError("Model input is empty", ParseFailure.EMPTY_INPUT)
        try:
            data: Any = json.loads(text.lstrip("\ufeff"))
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"Malformed model JSON at line {exc.lineno}, column {exc.colno}: {exc.msg}",
                ParseFailure.MALFORMED_RECORD,
                position=(exc.lineno, exc.colno),
                cause=exc,
            ) from exc
        if not isinstance(data, dict):
            raise ParseError("Model JSON must be an object", ParseFailure.MALFORMED_RECORD)

        model = data.get("model") if isinstance(data.get("model"), dict) else data
        rows: List[List[str]] = []
        for table in model.get("tables") or []:
            if not isinstance(table, dict):
                continue
            table_name = str(table.get("name", ""))
            for column in table.get("columns") or []:
                if not isinstance(column, dict) or column.get("type") == "rowNumber":
                    continue
                rows.append([table_name, str(column.get("name", "")), str(column.get("dataType", ""))])
        return _inventory(rows, self.source)
