"""Read-only view of which targets each source format can reach."""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Optional, Tuple

from ..domain.formats import FormatDescriptor, FormatId
from .registry import FormatRegistry, default_registry


class CapabilityIndex:
    """Derived query surface for presentation layers.

    The adjacency graph never changes at runtime, so the index is computed
    once at construction.
    """

    def __init__(self, registry: Optional[FormatRegistry] = None) -> None:
        self._registry = registry or default_registry()
        self._index: Dict[FormatId, Tuple[FormatId, ...]] = {
            descriptor.format: self._registry.reachable_targets(descriptor.format)
            for descriptor in self._registry.formats()
        }

    def list_reachable(self, source: FormatId) -> Tuple[FormatId, ...]:
        return self._index.get(source, ())

    def reachable_descriptors(self, source: FormatId) -> List[FormatDescriptor]:
        return [self._registry.describe(target) for target in self.list_reachable(source)]

    def as_table(self) -> Dict[str, List[str]]:
        return {
            source.value: [target.value for target in targets]
            for source, targets in self._index.items()
        }


@lru_cache(maxsize=1)
def default_index() -> CapabilityIndex:
    return CapabilityIndex()


def list_reachable(source: FormatId) -> Tuple[FormatId, ...]:
    """Reachable targets for ``source`` using the default registry."""
    return default_index().list_reachable(source)
