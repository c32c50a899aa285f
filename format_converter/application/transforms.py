"""Direct text transforms that bypass the intermediate value."""
from __future__ import annotations

from typing import Callable, Dict, Tuple

from ..domain.formats import FormatId

Transform = Callable[[str], str]


def swap_delimiter(old: str, new: str) -> Transform:
    """Replace every ``old`` with ``new``; quoted fields are not special-cased."""

    def transform(text: str) -> str:
        return text.replace(old, new)

    transform.__name__ = f"swap_{old!r}_to_{new!r}"
    return transform


def passthrough(text: str) -> str:
    return text


F = FormatId

TRANSFORMS: Dict[Tuple[FormatId, FormatId], Transform] = {
    (F.TABULAR_CSV, F.TABULAR_TSV): swap_delimiter(",", "\t"),
    (F.TABULAR_TSV, F.TABULAR_CSV): swap_delimiter("\t", ","),
    (F.SCRIPT_SQL, F.DOCUMENT_TEXT): passthrough,
    (F.SCRIPT_PYTHON, F.DOCUMENT_TEXT): passthrough,
    (F.SCRIPT_R, F.DOCUMENT_TEXT): passthrough,
}
