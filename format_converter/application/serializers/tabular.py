"""Delimited text serializers."""
from __future__ import annotations

import csv
import io
from typing import Any

from ...domain.codecs import Serializer
from ...domain.documents import RecordDocument, Table, TextDocument
from ...domain.formats import FormatId
from ...domain.requests import ConversionOptions
from ..views import tabular_view


class DelimitedSerializer(Serializer):
    """Header plus padded rows through the ``csv`` writer.

    Fields are quoted only when they contain the delimiter, a quote or a
    line break. No trailing newline is written.
    """

    accepts = (Table, RecordDocument, TextDocument)

    def __init__(self, target: FormatId, delimiter: str = ",") -> None:
        super().__init__(target)
        self.delimiter = delimiter

    def serialize(self, value: Any, options: ConversionOptions) -> str:
        table = tabular_view(value)
        buffer = io.StringIO()
        writer = csv.writer(
            buffer,
            delimiter=self.delimiter,
            lineterminator="\n",
            quoting=csv.QUOTE_MINIMAL,
        )
        writer.writerow(table.columns)
        writer.writerows(table.padded_rows())
        return buffer.getvalue()[:-1]
