"""Failure taxonomy for the conversion engine.

Every failure the engine can produce is one of the classes below. Callers
branch on the class (or ``kind``) and may inspect ``reason``, ``position``
and ``cause`` for diagnostics.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional, Tuple


class UnsupportedReason(Enum):
    NO_PATH = "no_path"
    SHAPE_MISMATCH = "shape_mismatch"


class ParseFailure(Enum):
    EMPTY_INPUT = "empty_input"
    MALFORMED_RECORD = "malformed_record"


class SerializeFailure(Enum):
    SHAPE_MISMATCH = "shape_mismatch"


class ConversionError(Exception):
    """Base class for all engine failures."""

    kind = "ConversionError"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def reason(self) -> Optional[Enum]:
        return None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.cause is not None:
            if isinstance(self.cause, ConversionError):
                data["cause"] = self.cause.to_dict()
            else:
                data["cause"] = {"kind": type(self.cause).__name__, "message": str(self.cause)}
        return data


class UnknownFormat(ConversionError):
    """Identifier is not registered."""

    kind = "UnknownFormat"


class ConversionUnsupported(ConversionError):
    """The pair is not declared, or its pipeline cannot be assembled."""

    kind = "ConversionUnsupported"

    def __init__(self, message: str, reason: UnsupportedReason) -> None:
        super().__init__(message)
        self._reason = reason

    @property
    def reason(self) -> UnsupportedReason:
        return self._reason


class ParseError(ConversionError):
    """Source text could not be turned into an intermediate value."""

    kind = "ParseError"

    def __init__(
        self,
        message: str,
        reason: ParseFailure,
        position: Optional[Tuple[int, int]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, cause)
        self._reason = reason
        # (line, column), both 1-based
        self.position = position

    @property
    def reason(self) -> ParseFailure:
        return self._reason

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        if self.position is not None:
            data["position"] = {"line": self.position[0], "column": self.position[1]}
        return data


class SerializeError(ConversionError):
    """Intermediate value could not be rendered in the target format."""

    kind = "SerializeError"

    def __init__(self, message: str, reason: SerializeFailure = SerializeFailure.SHAPE_MISMATCH) -> None:
        super().__init__(message)
        self._reason = reason

    @property
    def reason(self) -> SerializeFailure:
        return self._reason


class ConversionFailed(ConversionError):
    """Outer wrapper for any failure raised while parsing or serializing."""

    kind = "ConversionFailed"

    def __init__(self, cause: BaseException) -> None:
        inner = cause.message if isinstance(cause, ConversionError) else str(cause)
        super().__init__(f"Conversion failed: {inner}", cause)


__all__ = [
    "ConversionError",
    "ConversionFailed",
    "ConversionUnsupported",
    "ParseError",
    "ParseFailure",
    "SerializeError",
    "SerializeFailure",
    "UnknownFormat",
    "UnsupportedReason",
]
