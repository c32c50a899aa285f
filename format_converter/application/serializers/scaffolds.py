"""Script scaffolds: Python starter code and SQL DDL/DML.

These serializers emit runnable templates that embed the source content.
They do not translate program logic between languages.
"""
from __future__ import annotations

import ast
import csv
import io
import re
from pprint import pformat
from typing import Any, Dict, List, Optional, Tuple

from ...domain.codecs import Serializer
from ...domain.documents import RecordDocument, Table, TextDocument, is_field_inventory
from ...domain.errors import SerializeError
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from ..notebooks import Cell, read_jupyter, read_percent, write_percent
from ..script_tables import table_from_r
from ..views import column_values, infer_column_type, tabular_view

F = FormatId

LOADER_HINTS = {
    F.TABULAR_CSV: ['# df = pd.read_csv("{name}.csv")'],
    F.TABULAR_TSV: ['# df = pd.read_csv("{name}.tsv", sep="\\t")'],
    F.SPREADSHEET: ['# df = pd.read_excel("{name}.xlsx")  # requires openpyxl'],
    F.COLUMNAR_STORAGE: ['# df = pd.read_parquet("{name}.parquet")  # requires pyarrow'],
    F.RECORD_JSON: ['# with open("{name}.json", encoding="utf-8") as fh:', "#     data = json.load(fh)"],
    F.RECORD_YAML: [
        "# import yaml",
        '# with open("{name}.yaml", encoding="utf-8") as fh:',
        "#     data = yaml.safe_load(fh)",
    ],
    F.MARKUP_XML: ['# df = pd.read_xml("{name}.xml")  # requires lxml'],
}
SOURCE_LABELS = {
    F.TABULAR_CSV: "CSV",
    F.TABULAR_TSV: "TSV",
    F.SPREADSHEET: "Excel",
    F.COLUMNAR_STORAGE: "Parquet",
    F.RECORD_JSON: "JSON",
    F.RECORD_YAML: "YAML",
    F.MARKUP_XML: "XML",
    F.BI_WORKBOOK: "Power BI",
    F.VIZ_WORKBOOK: "Tableau",
}


def triple_quoted(text: str) -> str:
    """``text`` as a Python triple-quoted string literal."""
    body = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if body.endswith('"'):
        body = body[:-1] + '\\"'
    return f'"""{body}"""'


def _csv_text(table: Table) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(table.columns)
    writer.writerows(table.padded_rows())
    return buffer.getvalue()


def _label(value: Any) -> str:
    source = getattr(value, "source", None)
    return SOURCE_LABELS.get(source, "tabular")


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------
class PythonScaffoldSerializer(Serializer):
    """pandas-flavoured starter scripts for each kind of source."""

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = F.SCRIPT_PYTHON) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        name = options.name or "data_table"
        if isinstance(value, Table):
            return self._table_script(value, name)
        if isinstance(value, RecordDocument):
            return self._records_script(value, name)

        source = value.source
        if source is F.SCRIPT_SQL:
            return self._sql_script(value.text)
        if source is F.SCRIPT_R:
            return self._r_script(value.text)
        if source is F.NOTEBOOK_JUPYTER:
            cells, _ = read_jupyter(value.text)
            return self._notebook_script(cells, "Jupyter notebook")
        if source is F.NOTEBOOK_GENERIC:
            return self._notebook_script(read_percent(value.text), "notebook")
        if source in (F.DOCUMENT_TEXT, F.MARKUP_MARKDOWN, F.DOCUMENT_PDF):
            return self._text_script(value.text)
        raise SerializeError(f"No Python scaffold for {source.value} content")

    def _table_script(self, table: Table, name: str) -> str:
        label = _label(table)
        lines = ['"""']
        lines.append(f"Data loading scaffold generated from {label} content.")
        if is_field_inventory(table):
            lines.append("")
            lines.append("The rows list the fields declared by the workbook (one row per column);")
            lines.append("no data rows were read.")
        lines.append('"""')
        lines.append("import io")
        lines.append("")
        lines.append("import pandas as pd")
        lines.append("")
        lines.append(f"# {label} data")
        lines.append(f"csv_data = {triple_quoted(_csv_text(table))}")
        lines.append("")
        lines.append("df = pd.read_csv(io.StringIO(csv_data), dtype=str, keep_default_na=False)")
        hint = LOADER_HINTS.get(table.source)
        if hint:
            lines.append("")
            lines.append("# Reading the original file instead:")
            lines.extend(line.format(name=name) for line in hint)
        lines.append("")
        lines.append("# Display basic information")
        lines.append('print("Data shape:", df.shape)')
        lines.append('print("Column names:", df.columns.tolist())')
        lines.append('print("First 5 rows:")')
        lines.append("print(df.head())")
        lines.append("")
        lines.append("# Basic statistics")
        lines.append("print(df.describe())")
        lines.append("")
        lines.append("# Example data manipulation")
        lines.append("# df_filtered = df[df['column_name'] > threshold]")
        lines.append("# df_grouped = df.groupby('column_name').agg({'another_column': 'mean'})")
        return "\n".join(lines) + "\n"

    def _records_script(self, document: RecordDocument, name: str) -> str:
        label = _label(document)
        lines = [f'"""Data loading scaffold generated from {label} content."""']
        lines.append("import json")
        lines.append("")
        lines.append("import pandas as pd")
        lines.append("")
        lines.append(f"# {label} data")
        lines.append(f"data = {pformat(document.value, width=88, sort_dicts=False)}")
        hint = LOADER_HINTS.get(document.source)
        if hint:
            lines.append("")
            lines.append("# Reading the original file instead:")
            lines.extend(line.format(name=name) for line in hint)
        lines.append("")
        lines.append("if isinstance(data, list):")
        lines.append("    df = pd.json_normalize(data)")
        lines.append('    print("Data shape:", df.shape)')
        lines.append("    print(df.head())")
        lines.append("else:")
        lines.append("    print(json.dumps(data, indent=2, default=str))")
        return "\n".join(lines) + "\n"

    def _sql_script(self, sql: str) -> str:
        lines = ['"""SQL execution scaffold (sqlite3 + pandas)."""']
        lines.append("import sqlite3")
        lines.append("")
        lines.append("import pandas as pd")
        lines.append("")
        lines.append(f"sql_script = {triple_quoted(sql)}")
        lines.append("")
        lines.append('connection = sqlite3.connect(":memory:")')
        lines.append("try:")
        lines.append("    connection.executescript(sql_script)")
        lines.append("    tables = pd.read_sql_query(")
        lines.append("        \"SELECT name FROM sqlite_master WHERE type = 'table'\", connection")
        lines.append("    )")
        lines.append('    for table_name in tables["name"]:')
        lines.append('        df = pd.read_sql_query(f"SELECT * FROM \\"{table_name}\\"", connection)')
        lines.append('        print(f"Table {table_name}: {len(df)} row(s)")')
        lines.append("        print(df.head())")
        lines.append("finally:")
        lines.append("    connection.close()")
        return "\n".join(lines) + "\n"

    def _r_script(self, code: str) -> str:
        lines = ['"""']
        lines.append("Python scaffold for an R script.")
        lines.append("")
        lines.append("The R code is embedded below; port it by hand or run it through")
        lines.append("Rscript or rpy2.")
        lines.append('"""')
        lines.append("import subprocess")
        lines.append("")
        lines.append("import pandas as pd")
        lines.append("")
        lines.append(f"r_code = {triple_quoted(code)}")
        lines.append("")
        frame = table_from_r(code)
        if frame is not None:
            lines.append("# Literal data.frame found in the script")
            columns = {column: column_values(frame, index) for index, column in enumerate(frame.columns)}
            lines.append(f"df = pd.DataFrame({pformat(columns, width=88, sort_dicts=False)})")
            lines.append("print(df.head())")
            lines.append("")
        lines.append("# Option 1: run the original script with Rscript")
        lines.append('# result = subprocess.run(["Rscript", "-e", r_code], capture_output=True, text=True)')
        lines.append("# print(result.stdout)")
        lines.append("")
        lines.append("# Option 2: evaluate it in-process with rpy2")
        lines.append("# import rpy2.robjects as robjects")
        lines.append("# robjects.r(r_code)")
        lines.append("")
        lines.append("# Common R -> pandas equivalents:")
        lines.append("#   read.csv(path)   -> pd.read_csv(path)")
        lines.append("#   head(df)         -> df.head()")
        lines.append("#   summary(df)      -> df.describe()")
        lines.append('#   df[df$x > 1, ]   -> df[df["x"] > 1]')
        return "\n".join(lines) + "\n"

    def _notebook_script(self, cells: List[Cell], label: str) -> str:
        header = f'"""Script exported from a {label}."""\n\n'
        return header + write_percent([cell for cell in cells if cell.kind in ("code", "markdown")])

    def _text_script(self, text: str) -> str:
        lines = ['"""Text processing scaffold."""']
        lines.append("")
        lines.append(f"text = {triple_quoted(text)}")
        lines.append("")
        lines.append("lines = text.splitlines()")
        lines.append("words = text.split()")
        lines.append('print("Lines:", len(lines))')
        lines.append('print("Words:", len(words))')
        lines.append('print("Characters:", len(text))')
        lines.append("")
        lines.append("# Example processing")
        lines.append("# for number, line in enumerate(lines, 1):")
        lines.append("#     print(number, line)")
        return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------
_PLAIN_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_RESERVED = {
    "ALL", "AND", "AS", "BY", "CASE", "CHECK", "COLUMN", "CREATE", "DEFAULT", "DELETE",
    "DESC", "DISTINCT", "DROP", "ELSE", "FROM", "GROUP", "HAVING", "IN", "INDEX", "INSERT",
    "INTO", "IS", "JOIN", "KEY", "LIMIT", "NOT", "NULL", "OR", "ORDER", "PRIMARY", "SELECT",
    "SET", "TABLE", "THEN", "TO", "UNION", "UNIQUE", "UPDATE", "USER", "VALUES", "WHEN", "WHERE",
}
_SQL_STATEMENT = re.compile(
    r"^\s*(SELECT|INSERT|UPDATE|DELETE|CREATE|ALTER|DROP|WITH|MERGE|REPLACE|TRUNCATE)\b",
    re.IGNORECASE,
)


def sql_identifier(name: str) -> str:
    """Bare identifier when plain, otherwise double-quoted."""
    if _PLAIN_IDENTIFIER.match(name) and name.upper() not in _RESERVED:
        return name
    return '"' + name.replace('"', '""') + '"'


def sql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def _unique_columns(columns: List[str]) -> List[str]:
    seen: Dict[str, int] = {}
    result = []
    for index, column in enumerate(columns):
        column = column or f"column_{index + 1}"
        count = seen.get(column.lower(), 0)
        seen[column.lower()] = count + 1
        result.append(column if count == 0 else f"{column}_{count + 1}")
    return result


def _comment_block(text: str) -> List[str]:
    return [f"-- {line}".rstrip() for line in text.splitlines()]


def python_sql_literals(source: str) -> Tuple[List[str], Optional[str]]:
    """SQL-looking string constants in a Python module.

    Returns:
        The statements in source order, plus the syntax error message when
        the module could not be parsed.
    """
    try:
        tree = ast.parse(source)
    except SyntaxError as exc:
        return [], f"{exc.msg} (line {exc.lineno})"
    statements = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Constant) and isinstance(node.value, str) and _SQL_STATEMENT.match(node.value):
            statements.append((node.lineno, node.col_offset, node.value.strip()))
    statements.sort()
    return [statement for _, _, statement in statements], None


class SqlSerializer(Serializer):
    """``CREATE TABLE`` plus ``INSERT`` statements, or extracted SQL."""

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId = F.SCRIPT_SQL) -> None:
        super().__init__(target)

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        if isinstance(value, TextDocument):
            if value.source is F.SCRIPT_PYTHON:
                return self._from_python(value.text)
            if value.source in (F.DOCUMENT_TEXT, F.MARKUP_MARKDOWN, F.DOCUMENT_PDF):
                return self._from_text(value.text)
        return self._from_table(tabular_view(value), options)

    def column_types(self, table: Table, options: ConversionOptions) -> List[str]:
        varchar = f"VARCHAR({options.varchar_length or 255})"
        if not options.infer_types:
            return [varchar for _ in table.columns]
        mapping = {"integer": "INTEGER", "real": "REAL", "text": varchar}
        return [
            mapping[infer_column_type(column_values(table, index))]
            for index in range(len(table.columns))
        ]

    def _from_table(self, table: Table, options: ConversionOptions) -> str:
        name = sql_identifier(options.name or "data_table")
        columns = [sql_identifier(column) for column in _unique_columns(table.columns)]
        types = self.column_types(table, options)

        lines = ["-- Generated SQL INSERT statements", f"-- Table: {name}", ""]
        lines.append(f"CREATE TABLE {name} (")
        lines.append(",\n".join(f"  {column} {kind}" for column, kind in zip(columns, types)))
        lines.append(");")
        lines.append("")
        column_list = ", ".join(columns)
        for row in table.padded_rows():
            values = []
            for cell, kind in zip(row, types):
                if kind in ("INTEGER", "REAL"):
                    values.append(cell.strip() if cell.strip() else "NULL")
                else:
                    values.append(sql_string(cell))
            lines.append(f"INSERT INTO {name} ({column_list}) VALUES ({', '.join(values)});")
        return "\n".join(lines) + "\n"

    def _from_python(self, source: str) -> str:
        statements, error = python_sql_literals(source)
        lines = ["-- SQL statements extracted from a Python script"]
        if error:
            lines.append(f"-- The script could not be parsed: {error}")
        lines.append(f"-- Found {len(statements)} statement(s)")
        lines.append("")
        for statement in statements:
            lines.append(statement if statement.endswith(";") else f"{statement};")
            lines.append("")
        lines.append("-- Original script:")
        lines.extend(_comment_block(source))
        return "\n".join(lines) + "\n"

    def _from_text(self, text: str) -> str:
        lines = ["-- Text content imported as rows of a notes table", ""]
        lines.extend(_comment_block(text))
        lines.append("")
        lines.append("CREATE TABLE notes (")
        lines.append("  line_no INTEGER,")
        lines.append("  content TEXT")
        lines.append(");")
        lines.append("")
        for number, line in enumerate(text.splitlines(), 1):
            lines.append(f"INSERT INTO notes (line_no, content) VALUES ({number}, {sql_string(line)});")
        return "\n".join(lines) + "\n"
