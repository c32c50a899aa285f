"""Notebook cell model shared by the Jupyter and percent-format codecs."""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

NBFORMAT = 4
NBFORMAT_MINOR = 4

NOTEBOOK_METADATA: Dict[str, Any] = {
    "kernelspec": {
        "display_name": "Python 3",
        "language": "python",
        "name": "python3",
    },
    "language_info": {
        "name": "python",
        "version": "3.8.0",
    },
}

_PERCENT_MARKER = re.compile(r"^#\s*%%(.*)$")
_SEGMENT_BREAK = re.compile(r"\n{2,}")


@dataclass
class Cell:
    kind: str  # "code", "markdown" or "raw"
    source: str
    outputs: List[str] = field(default_factory=list)


def split_script(text: str) -> List[str]:
    """Split a script on runs of two or more newlines, dropping blank segments."""
    text = text.replace("\r\n", "\n")
    return [segment for segment in _SEGMENT_BREAK.split(text) if segment.strip()]


def _joined(source: Any) -> str:
    if isinstance(source, list):
        return "".join(str(part) for part in source)
    return "" if source is None else str(source)


def _outputs(cell: Dict[str, Any]) -> List[str]:
    texts: List[str] = []
    for output in cell.get("outputs") or []:
        if not isinstance(output, dict):
            continue
        if output.get("output_type") == "stream":
            texts.append(_joined(output.get("text")))
        elif output.get("output_type") in ("execute_result", "display_data"):
            data = output.get("data") or {}
            if "text/plain" in data:
                texts.append(_joined(data["text/plain"]))
        elif output.get("output_type") == "error":
            texts.append(f"{output.get('ename', 'Error')}: {output.get('evalue', '')}")
    return [text for text in texts if text]


def load_notebook(text: str) -> Dict[str, Any]:
    """Decode notebook JSON, raising ``ValueError`` when it is not one."""
    data = json.loads(text)
    if not isinstance(data, dict) or not isinstance(data.get("cells"), list):
        raise ValueError("notebook JSON must be an object with a 'cells' list")
    return data


def read_jupyter(text: str) -> Tuple[List[Cell], str]:
    """Cells and kernel language of an ``.ipynb`` document."""
    data = load_notebook(text)
    metadata = data.get("metadata") or {}
    language = (
        (metadata.get("kernelspec") or {}).get("language")
        or (metadata.get("language_info") or {}).get("name")
        or "python"
    )
    cells = []
    for raw in data["cells"]:
        if not isinstance(raw, dict):
            continue
        cells.append(
            Cell(
                kind=str(raw.get("cell_type", "code")),
                source=_joined(raw.get("source")),
                outputs=_outputs(raw),
            )
        )
    return cells, language


def _uncomment(line: str) -> str:
    if line.startswith("# "):
        return line[2:]
    if line.startswith("#"):
        return line[1:]
    return line


def _finish(kind: str, lines: List[str]) -> Cell:
    if kind == "markdown":
        lines = [_uncomment(line) for line in lines]
    return Cell(kind=kind, source="\n".join(lines).strip("\n"))


def read_percent(text: str) -> List[Cell]:
    """Cells of a percent-format script (``# %%`` markers)."""
    cells: List[Cell] = []
    kind = "code"
    lines: List[str] = []
    started = False
    for line in text.replace("\r\n", "\n").split("\n"):
        marker = _PERCENT_MARKER.match(line)
        if marker:
            if started or any(existing.strip() for existing in lines):
                cells.append(_finish(kind, lines))
            header = marker.group(1).lower()
            kind = "markdown" if ("[markdown]" in header or "[md]" in header) else "code"
            lines = []
            started = True
            continue
        lines.append(line)
    if started or any(existing.strip() for existing in lines):
        cells.append(_finish(kind, lines))
    return [cell for cell in cells if cell.source or cell.kind == "code"]


def write_percent(cells: List[Cell]) -> str:
    blocks = []
    for cell in cells:
        if cell.kind == "markdown":
            body = "\n".join(f"# {line}" if line else "#" for line in cell.source.split("\n"))
            blocks.append(f"# %% [markdown]\n{body}")
        else:
            blocks.append(f"# %%\n{cell.source}")
    return "\n\n".join(blocks) + "\n"


def _source_lines(source: str) -> List[str]:
    lines = source.split("\n")
    return [line + "\n" for line in lines[:-1]] + [lines[-1]] if source else []


def build_jupyter(cells: List[Cell], indent: int = 1) -> str:
    """Render cells as nbformat 4.4 JSON with fixed Python kernel metadata."""
    raw_cells = []
    for cell in cells:
        if cell.kind == "code":
            raw_cells.append({
                "cell_type": "code",
                "execution_count": None,
                "metadata": {},
                "outputs": [],
                "source": _source_lines(cell.source),
            })
        else:
            raw_cells.append({
                "cell_type": cell.kind,
                "metadata": {},
                "source": _source_lines(cell.source),
            })
    notebook = {
        "cells": raw_cells,
        "metadata": NOTEBOOK_METADATA,
        "nbformat": NBFORMAT,
        "nbformat_minor": NBFORMAT_MINOR,
    }
    return json.dumps(notebook, indent=indent, ensure_ascii=False)
