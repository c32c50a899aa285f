"""Conversion request/result models."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

from .errors import ConversionError
from .formats import FormatId


@dataclass(frozen=True)
class ConversionOptions:
    """Format-specific knobs; ``None`` means "use the configured default"."""
    name: Optional[str] = None
    indent: Optional[int] = None
    varchar_length: Optional[int] = None
    infer_types: Optional[bool] = None
    font_size: Optional[float] = None

    def with_defaults(self, defaults: "ConversionOptions") -> "ConversionOptions":
        """Fill unset fields from ``defaults``."""
        missing = {
            f.name: getattr(defaults, f.name)
            for f in fields(self)
            if getattr(self, f.name) is None
        }
        return replace(self, **missing)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class ConversionRequest:
    """A single conversion attempt."""
    content: str
    source: FormatId
    target: FormatId
    options: ConversionOptions = field(default_factory=ConversionOptions)


@dataclass(frozen=True)
class ConversionResult:
    """Either output text or a typed failure, never both."""
    output: Optional[str] = None
    error: Optional[ConversionError] = None
    request: Optional[ConversionRequest] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.output or ""
