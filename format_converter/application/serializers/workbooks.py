"""Spreadsheet and BI workbook scaffolds.

* Excel: an ``.xlsx`` workbook written with openpyxl, carried as latin-1 text.
* Power BI: a Power Query (M) script for the Advanced Editor.
* Tableau: a ``.twb`` workbook declaring one datasource per table.
"""
from __future__ import annotations

import io
import re
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Tuple, Union

from ...domain.codecs import Serializer
from ...domain.documents import RecordDocument, Table, TextDocument, is_field_inventory
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from ..views import column_values, infer_column_type, tabular_view, xml_text

_SHEET_NAME_INVALID = re.compile(r"[\[\]:*?/\\]")
_INTEGER_RE = re.compile(r"^-?[1-9]\d{0,14}$|^0$")


def sheet_name(name: str) -> str:
    cleaned = _SHEET_NAME_INVALID.sub("_", name).strip("'") or "Sheet1"
    return cleaned[:31]


def cell_value(text: str) -> Union[int, float, str]:
    """Numbers whose text form survives a round trip are stored as numbers."""
    from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE

    if _INTEGER_RE.match(text):
        return int(text)
    try:
        number = float(text)
    except ValueError:
        return ILLEGAL_CHARACTERS_RE.sub("", text)
    if repr(number) == text:
        return number
    return ILLEGAL_CHARACTERS_RE.sub("", text)


def render_workbook(table: Table, title: str) -> bytes:
    """One worksheet with a bold header row, saved as ``.xlsx`` bytes."""
    import openpyxl
    from openpyxl.styles import Font

    workbook = openpyxl.Workbook()
    sheet = workbook.active
    sheet.title = sheet_name(title)
    sheet.append([cell_value(column) for column in table.columns])
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in table.padded_rows():
        sheet.append([cell_value(value) for value in row])
    # Cell text starting with "=" stays text.
    for cells in sheet.iter_rows():
        for cell in cells:
            if cell.data_type == "f":
                cell.data_type = "s"

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class SpreadsheetSerializer(Serializer):
    """``.xlsx`` bytes, latin-1 decoded so they can travel as text."""

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = FormatId.SPREADSHEET) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        table = tabular_view(value)
        return render_workbook(table, options.name or "Sheet1").decode("latin-1")


# ---------------------------------------------------------------------------
# Power BI
# ---------------------------------------------------------------------------
M_TYPES = {"integer": "Int64.Type", "real": "type number", "text": "type text"}


def m_string(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


class PowerQuerySerializer(Serializer):
    """Power Query M ``#table`` literal plus a column type step."""

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = FormatId.BI_WORKBOOK) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        table = tabular_view(value)
        query = options.name or "data_table"
        columns = "{" + ", ".join(m_string(column) for column in table.columns) + "}"
        rows = [
            "            {" + ", ".join(m_string(cell) for cell in row) + "}"
            for row in table.padded_rows()
        ]
        types = [infer_column_type(column_values(table, index)) for index in range(len(table.columns))]
        type_pairs = ", ".join(
            "{" + f"{m_string(column)}, {M_TYPES[kind]}" + "}"
            for column, kind in zip(table.columns, types)
        )

        lines = ["// Power Query (M) scaffold"]
        lines.append(f"// Query: {query}")
        lines.append("// Power BI Desktop: Transform data > New Source > Blank Query > Advanced Editor")
        lines.append("let")
        lines.append("    Source = #table(")
        lines.append(f"        {columns},")
        lines.append("        {")
        lines.append(",\n".join(rows))
        lines.append("        }")
        lines.append("    ),")
        lines.append(f'    #"Changed Type" = Table.TransformColumnTypes(Source, {{{type_pairs}}})')
        lines.append("in")
        lines.append('    #"Changed Type"')
        return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Tableau
# ---------------------------------------------------------------------------
TABLEAU_TYPES = {
    "int64": "integer",
    "integer": "integer",
    "double": "real",
    "decimal": "real",
    "real": "real",
    "datetime": "datetime",
    "date": "date",
    "boolean": "boolean",
    "string": "string",
    "text": "string",
}
TABLEAU_VERSION = "18.1"


def _column_element(parent: ET.Element, name: str, datatype: str) -> None:
    numeric = datatype in ("integer", "real")
    ET.SubElement(
        parent,
        "column",
        {
            "caption": xml_text(name),
            "datatype": datatype,
            "name": f"[{xml_text(name)}]",
            "role": "measure" if numeric else "dimension",
            "type": "quantitative" if numeric else "nominal",
        },
    )


class TableauWorkbookSerializer(Serializer):
    """Minimal ``.twb`` XML: datasources, their columns and one blank sheet."""

    accepts = (Table,)

    def __init__(self, target: FormatId = FormatId.VIZ_WORKBOOK) -> None:
        super().__init__(target)

    def _datasources(self, table: Table, default: str) -> Dict[str, List[Tuple[str, str]]]:
        sources: Dict[str, List[Tuple[str, str]]] = {}
        if is_field_inventory(table):
            for row in table.padded_rows():
                owner, column, datatype = row
                mapped = TABLEAU_TYPES.get(datatype.lower(), "string")
                sources.setdefault(owner or default, []).append((column, mapped))
            return sources
        kinds = {"integer": "integer", "real": "real", "text": "string"}
        sources[default] = [
            (column, kinds[infer_column_type(column_values(table, index))])
            for index, column in enumerate(table.columns)
        ]
        return sources

    def serialize(self, value: Table, options: ConversionOptions) -> str:
        default = options.name or "data_table"
        root = ET.Element("workbook", {"source-build": "2023.1.0", "version": TABLEAU_VERSION})
        datasources = ET.SubElement(root, "datasources")
        names = []
        for caption, columns in self._datasources(value, default).items():
            name = "federated." + re.sub(r"\W+", "_", caption).strip("_").lower()
            names.append((caption, name))
            source = ET.SubElement(
                datasources,
                "datasource",
                {"caption": xml_text(caption), "inline": "true", "name": name, "version": TABLEAU_VERSION},
            )
            ET.SubElement(
                source,
                "connection",
                {"class": "textscan", "directory": ".", "filename": f"{xml_text(caption)}.csv"},
            )
            for column, datatype in columns:
                _column_element(source, column, datatype)

        worksheets = ET.SubElement(root, "worksheets")
        worksheet = ET.SubElement(worksheets, "worksheet", {"name": "Sheet 1"})
        view = ET.SubElement(ET.SubElement(worksheet, "table"), "view")
        view_sources = ET.SubElement(view, "datasources")
        for caption, name in names:
            ET.SubElement(view_sources, "datasource", {"caption": xml_text(caption), "name": name})

        ET.indent(root, space="  ")
        body = ET.tostring(root, encoding="unicode")
        return f"<?xml version='1.0' encoding='utf-8' ?>\n{body}\n"
