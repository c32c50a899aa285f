"""Jupyter and percent-format notebook serializers."""
from __future__ import annotations

from typing import List

from ...domain.codecs import Serializer
from ...domain.documents import TextDocument
from ...domain.errors import SerializeError
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from ..notebooks import Cell, build_jupyter, read_jupyter, read_percent, split_script, write_percent


def cells_from(value: TextDocument) -> List[Cell]:
    if value.source is FormatId.SCRIPT_PYTHON:
        return [Cell("code", segment) for segment in split_script(value.text)]
    if value.source is FormatId.NOTEBOOK_JUPYTER:
        cells, _ = read_jupyter(value.text)
        return cells
    if value.source is FormatId.NOTEBOOK_GENERIC:
        return read_percent(value.text)
    raise SerializeError(f"Cannot build notebook cells from {value.source.value} content")


class JupyterSerializer(Serializer):
    accepts = (TextDocument,)

    def __init__(self, target: FormatId = FormatId.NOTEBOOK_JUPYTER) -> None:
        super().__init__(target)

    def serialize(self, value: TextDocument, options: ConversionOptions) -> str:
        indent = options.indent if options.indent is not None else 1
        return build_jupyter(cells_from(value), indent=indent)


class PercentNotebookSerializer(Serializer):
    """``# %%`` cell markers; markdown cells are ``# ``-commented."""

    accepts = (TextDocument,)

    def __init__(self, target: FormatId = FormatId.NOTEBOOK_GENERIC) -> None:
        super().__init__(target)

    def serialize(self, value: TextDocument, options: ConversionOptions) -> str:
        return write_percent(cells_from(value))
