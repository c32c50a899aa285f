"""Recover tabular data embedded in SQL and R scripts.

Only literal data is understood: ``INSERT INTO ... VALUES`` tuples in SQL
and ``data.frame(col = c(...))`` calls in R. Anything computed is out of
reach; callers get ``None`` when nothing usable is found.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from ..domain.documents import Table
from ..domain.formats import FormatId


_INSERT_RE = re.compile(r"\bINSERT\s+INTO\s+", re.IGNORECASE)
_VALUES_RE = re.compile(r"\s*VALUES\s*", re.IGNORECASE)
_CREATE_RE = re.compile(r"\bCREATE\s+(?:TEMP(?:ORARY)?\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?", re.IGNORECASE)
_CONSTRAINT_WORDS = {"PRIMARY", "FOREIGN", "UNIQUE", "CONSTRAINT", "CHECK", "KEY", "INDEX"}
_QUOTES = {"'": "'", '"': '"', "`": "`", "[": "]"}


# ---------------------------------------------------------------------------
# Scanning helpers
# ---------------------------------------------------------------------------
def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _read_quoted(text: str, pos: int, backslash: bool = False) -> Tuple[str, int]:
    """Read a quoted token starting at ``pos``.

    A doubled closing quote always escapes. With ``backslash`` set (R
    strings), ``\\`` also escapes the quote or itself; SQL literals keep
    backslashes as ordinary characters.
    """
    close = _QUOTES[text[pos]]
    buf: List[str] = []
    pos += 1
    while pos < len(text):
        ch = text[pos]
        if ch == close:
            if close != "]" and pos + 1 < len(text) and text[pos + 1] == close:
                buf.append(close)
                pos += 2
                continue
            return "".join(buf), pos + 1
        if backslash and ch == "\\" and close in "'\"" and pos + 1 < len(text) and text[pos + 1] in (close, "\\"):
            buf.append(text[pos + 1])
            pos += 2
            continue
        buf.append(ch)
        pos += 1
    raise ValueError("unterminated quoted literal")


def _read_identifier(text: str, pos: int) -> Tuple[str, int]:
    """Read a possibly quoted, possibly dotted identifier."""
    parts: List[str] = []
    while pos < len(text):
        if text[pos] in '"`[':
            name, pos = _read_quoted(text, pos)
        else:
            match = re.match(r"[\w$]+", text[pos:])
            if not match:
                break
            name = match.group(0)
            pos += len(name)
        parts.append(name)
        if pos < len(text) and text[pos] == ".":
            pos += 1
            continue
        break
    return ".".join(parts), pos


def _find_closing(text: str, pos: int, backslash: bool = False) -> int:
    """Index of the parenthesis closing the one just before ``pos``."""
    depth = 1
    while pos < len(text):
        ch = text[pos]
        if ch in "'\"`":
            _, pos = _read_quoted(text, pos, backslash)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return pos
        pos += 1
    raise ValueError("unbalanced parentheses")


def split_top_level(text: str, separator: str = ",", backslash: bool = False) -> List[str]:
    """Split on ``separator`` outside quotes and parentheses."""
    parts: List[str] = []
    depth = 0
    start = 0
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch in "'\"`":
            _, pos = _read_quoted(text, pos, backslash)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == separator and depth == 0:
            parts.append(text[start:pos])
            start = pos + 1
        pos += 1
    parts.append(text[start:])
    return parts


def _literal(token: str, null_words: Tuple[str, ...], backslash: bool = False) -> str:
    token = token.strip()
    if not token:
        return ""
    if token[0] in "'\"" and token[-1] == token[0] and len(token) >= 2:
        value, _ = _read_quoted(token, 0, backslash)
        return value
    if token.upper() in null_words:
        return ""
    return token


# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------
def _create_table_columns(sql: str) -> Dict[str, List[str]]:
    tables: Dict[str, List[str]] = {}
    for match in _CREATE_RE.finditer(sql):
        name, pos = _read_identifier(sql, match.end())
        pos = _skip_ws(sql, pos)
        if not name or pos >= len(sql) or sql[pos] != "(":
            continue
        try:
            end = _find_closing(sql, pos + 1)
        except ValueError:
            continue
        columns: List[str] = []
        for definition in split_top_level(sql[pos + 1:end]):
            definition = definition.strip()
            if not definition:
                continue
            column, _ = _read_identifier(definition, 0)
            if column and column.upper() not in _CONSTRAINT_WORDS:
                columns.append(column)
        tables.setdefault(name.lower(), columns)
    return tables


def _read_tuples(sql: str, pos: int) -> Tuple[List[List[str]], int]:
    rows: List[List[str]] = []
    while True:
        pos = _skip_ws(sql, pos)
        if pos >= len(sql) or sql[pos] != "(":
            break
        end = _find_closing(sql, pos + 1)
        rows.append([_literal(token, ("NULL",)) for token in split_top_level(sql[pos + 1:end])])
        pos = _skip_ws(sql, end + 1)
        if pos < len(sql) and sql[pos] == ",":
            pos += 1
            continue
        break
    return rows, pos


def table_from_sql(sql: str) -> Optional[Table]:
    """Rows of the first table populated by ``INSERT ... VALUES`` statements."""
    declared = _create_table_columns(sql)
    table_name: Optional[str] = None
    columns: List[str] = []
    rows: List[List[str]] = []

    for match in _INSERT_RE.finditer(sql):
        try:
            name, pos = _read_identifier(sql, match.end())
            pos = _skip_ws(sql, pos)
            column_list: List[str] = []
            if pos < len(sql) and sql[pos] == "(":
                end = _find_closing(sql, pos + 1)
                for chunk in split_top_level(sql[pos + 1:end]):
                    column, _ = _read_identifier(chunk.strip(), 0)
                    column_list.append(column)
                pos = end + 1
            values = _VALUES_RE.match(sql, pos)
            if not values:
                continue
            tuples, _ = _read_tuples(sql, values.end())
        except ValueError:
            continue

        if table_name is None:
            table_name = name.lower()
            columns = column_list or declared.get(table_name, [])
        elif name.lower() != table_name:
            continue
        rows.extend(tuples)

    if table_name is None:
        return None
    if not columns:
        width = max((len(row) for row in rows), default=0)
        columns = [f"column_{index + 1}" for index in range(width)]
    return Table(columns=columns, rows=rows, source=FormatId.SCRIPT_SQL)


# ---------------------------------------------------------------------------
# R
# ---------------------------------------------------------------------------
_DATA_FRAME_RE = re.compile(r"\b(?:data\.frame|tibble|data\.table)\s*\(")
_R_OPTIONS = {"stringsAsFactors", "check.names", "row.names", "check.rows", "fix.empty.names"}
_R_VECTOR_RE = re.compile(r"^c\s*\((.*)\)$", re.DOTALL)


def _strip_r_comments(code: str) -> str:
    lines = []
    for line in code.splitlines():
        out: List[str] = []
        pos = 0
        while pos < len(line):
            ch = line[pos]
            if ch in "'\"`":
                try:
                    _, end = _read_quoted(line, pos, backslash=True)
                except ValueError:
                    out.append(line[pos:])
                    break
                out.append(line[pos:end])
                pos = end
                continue
            if ch == "#":
                break
            out.append(ch)
            pos += 1
        lines.append("".join(out))
    return "\n".join(lines)


def _r_vector(expression: str) -> List[str]:
    expression = expression.strip()
    vector = _R_VECTOR_RE.match(expression)
    if vector:
        return [
            _literal(token, ("NA", "NULL"), backslash=True)
            for token in split_top_level(vector.group(1), backslash=True)
            if token.strip()
        ]
    return [_literal(expression, ("NA", "NULL"), backslash=True)]


def table_from_r(code: str) -> Optional[Table]:
    """Columns of the first ``data.frame(name = c(...), ...)`` call."""
    code = _strip_r_comments(code)
    for match in _DATA_FRAME_RE.finditer(code):
        try:
            end = _find_closing(code, match.end(), backslash=True)
        except ValueError:
            continue
        columns: List[str] = []
        vectors: List[List[str]] = []
        for argument in split_top_level(code[match.end():end], backslash=True):
            if "=" not in argument:
                continue
            key, expression = argument.split("=", 1)
            key = key.strip().strip("`\"'")
            if not key or key in _R_OPTIONS or expression.startswith("="):
                continue
            columns.append(key)
            vectors.append(_r_vector(expression))
        if not columns:
            continue
        length = max(len(vector) for vector in vectors)
        rows: List[List[str]] = []
        for index in range(length):
            row = []
            for vector in vectors:
                if len(vector) == 1:
                    row.append(vector[0])  # R recycles length-one vectors
                else:
                    row.append(vector[index] if index < len(vector) else "")
            rows.append(row)
        return Table(columns=columns, rows=rows, source=FormatId.SCRIPT_R)
    return None
