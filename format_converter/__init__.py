"""Format converter package."""
from __future__ import annotations

__version__ = "1.0.0"

from .application.capabilities import CapabilityIndex, list_reachable  # noqa: E402
from .application.dispatcher import ConversionEngine, convert, convert_text  # noqa: E402
from .application.registry import FormatRegistry, default_registry, describe, detect  # noqa: E402
from .domain.errors import (  # noqa: E402
    ConversionError,
    ConversionFailed,
    ConversionUnsupported,
    ParseError,
    SerializeError,
    UnknownFormat,
)
from .domain.formats import FormatCategory, FormatDescriptor, FormatId  # noqa: E402
from .domain.requests import ConversionOptions, ConversionRequest, ConversionResult  # noqa: E402

__all__ = [
    "CapabilityIndex",
    "ConversionEngine",
    "ConversionError",
    "ConversionFailed",
    "ConversionOptions",
    "ConversionRequest",
    "ConversionResult",
    "ConversionUnsupported",
    "FormatCategory",
    "FormatDescriptor",
    "FormatId",
    "FormatRegistry",
    "ParseError",
    "SerializeError",
    "UnknownFormat",
    "convert",
    "convert_text",
    "default_registry",
    "describe",
    "detect",
    "list_reachable",
]
