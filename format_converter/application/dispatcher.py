"""Conversion engine: routes a request through transform or parse/serialize."""
from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from ..domain.codecs import Parser, Serializer
from ..domain.configuration import ConverterSettings
from ..domain.errors import (
    ConversionError,
    ConversionFailed,
    ConversionUnsupported,
    UnsupportedReason,
)
from ..domain.formats import FormatId
from ..domain.requests import ConversionOptions, ConversionRequest, ConversionResult
from ..shared.logging import get_logger
from .parsers import PARSERS
from .registry import FormatRegistry, default_registry
from .serializers import SERIALIZERS
from .transforms import TRANSFORMS, Transform


class ConversionEngine:
    """Engine for converting content between registered formats.

    Every declared edge resolves either to a direct text transform or to a
    parser whose intermediate value the target serializer accepts.
    """

    def __init__(
        self,
        registry: Optional[FormatRegistry] = None,
        settings: Optional[ConverterSettings] = None,
        logger: Optional[logging.Logger] = None,
        parsers: Optional[Mapping[FormatId, Parser]] = None,
        serializers: Optional[Mapping[FormatId, Serializer]] = None,
        transforms: Optional[Mapping[Tuple[FormatId, FormatId], Transform]] = None,
    ) -> None:
        self.registry = registry or default_registry()
        self.settings = settings or ConverterSettings()
        self.logger = logger or get_logger("engine")
        self._parsers: Dict[FormatId, Parser] = dict(PARSERS if parsers is None else parsers)
        self._serializers: Dict[FormatId, Serializer] = dict(
            SERIALIZERS if serializers is None else serializers
        )
        self._transforms: Dict[Tuple[FormatId, FormatId], Transform] = dict(
            TRANSFORMS if transforms is None else transforms
        )

    def run(self, request: ConversionRequest) -> str:
        """
        Convert ``request.content`` from its source format to its target.

        Args:
            request: Content plus source/target ids and options

        Returns:
            Converted text

        Raises:
            UnknownFormat: an id is not registered
            ConversionUnsupported: no declared edge, or no usable pipeline
            ConversionFailed: parsing or serializing failed (``cause`` holds the inner error)
        """
        source = self.registry.describe(request.source)
        target = self.registry.describe(request.target)

        if not self.registry.is_reachable(source.format, target.format):
            raise ConversionUnsupported(
                f"Conversion from {source.name} to {target.name} is not supported",
                UnsupportedReason.NO_PATH,
            )

        transform = self._transforms.get((source.format, target.format))
        if transform is not None:
            self.logger.debug("Direct transform %s -> %s", source.format.value, target.format.value)
            return self._stage(transform, request.content)

        parser = self._parsers.get(source.format)
        serializer = self._serializers.get(target.format)
        if parser is None or serializer is None or not serializer.can_accept(parser.produces):
            raise ConversionUnsupported(
                f"No pipeline turns {source.name} into {target.name}",
                UnsupportedReason.SHAPE_MISMATCH,
            )

        options = request.options.with_defaults(self.settings.options)
        self.logger.debug(
            "Converting %s -> %s via %r and %r", source.format.value, target.format.value, parser, serializer
        )
        value = self._stage(parser.parse, request.content)
        return self._stage(serializer.serialize, value, options)

    def convert(self, request: ConversionRequest) -> ConversionResult:
        """Like ``run`` but returns failures inside the result."""
        try:
            output = self.run(request)
        except ConversionError as exc:
            return ConversionResult(error=exc, request=request)
        return ConversionResult(output=output, request=request)

    def _stage(self, func: Callable[..., str], *args: Any) -> Any:
        try:
            return func(*args)
        except Exception as exc:
            raise ConversionFailed(exc) from exc


@lru_cache(maxsize=1)
def default_engine() -> ConversionEngine:
    return ConversionEngine()


def convert(request: ConversionRequest) -> ConversionResult:
    return default_engine().convert(request)


def convert_text(
    content: str,
    source: Union[FormatId, str],
    target: Union[FormatId, str],
    **options: Any,
) -> ConversionResult:
    """
    Convert ``content`` between two formats given as ids or names.

    Keyword options (``name``, ``indent``, ``varchar_length``,
    ``infer_types``, ``font_size``) override the configured defaults.
    Conversion failures, unknown format names included, come back inside
    the result.

    Raises:
        TypeError: an option keyword is misspelled; this is a calling error,
            not a conversion failure
    """
    try:
        request = ConversionRequest(
            content=content,
            source=FormatId.from_string(source),
            target=FormatId.from_string(target),
            options=ConversionOptions(**options),
        )
    except ConversionError as exc:
        return ConversionResult(error=exc)
    return default_engine().convert(request)
