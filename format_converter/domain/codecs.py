"""Parser and serializer contracts used by the conversion engine."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar, Tuple, Type

from .formats import FormatId
from .requests import ConversionOptions


class Parser(ABC):
    """Turns source text into one kind of intermediate value."""

    #: Intermediate type produced by ``parse``.
    produces: ClassVar[Type[Any]]

    def __init__(self, source: FormatId) -> None:
        self.source = source

    @abstractmethod
    def parse(self, text: str) -> Any:
        """
        Parse ``text``.

        Raises:
            ParseError: when the text is empty or malformed.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source.value})"


class Serializer(ABC):
    """Renders intermediate values as target text."""

    #: Intermediate types this serializer consumes.
    accepts: ClassVar[Tuple[Type[Any], ...]]

    def __init__(self, target: FormatId) -> None:
        self.target = target

    def can_accept(self, kind: Type[Any]) -> bool:
        return issubclass(kind, self.accepts)

    @abstractmethod
    def serialize(self, value: Any, options: ConversionOptions) -> str:
        """
        Render ``value``.

        Raises:
            SerializeError: when the value's shape does not fit the target.
        """

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target.value})"


__all__ = ["Parser", "Serializer"]
