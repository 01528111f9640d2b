"""
Map field: single-valued association from input categories to targets.

A target is an output-module category index or any hashable label. The
forward map never changes an existing entry; the inverse multimap exists
for introspection.
"""

from collections import defaultdict
from typing import Dict, FrozenSet, Hashable, Iterator, Set, Tuple, Any
import logging

from ..core.errors import IllegalStateError

logger = logging.getLogger(__name__)

_MISSING = object()


class MapField:
    """Forward map source -> target plus inverse target -> {sources}."""

    def __init__(self):
        self._forward: Dict[int, Hashable] = {}
        self._inverse: Dict[Hashable, Set[int]] = defaultdict(set)

    def __len__(self) -> int:
        return len(self._forward)

    def __contains__(self, source: int) -> bool:
        return source in self._forward

    def __getitem__(self, source: int) -> Hashable:
        return self._forward[source]

    def __iter__(self) -> Iterator[int]:
        return iter(self._forward)

    def get(self, source: int, default: Any = None) -> Any:
        return self._forward.get(source, default)

    def items(self) -> Iterator[Tuple[int, Hashable]]:
        return iter(self._forward.items())

    def is_consistent(self, source: int, target: Hashable) -> bool:
        """True if ``source`` is unmapped or already mapped to ``target``."""
        existing = self._forward.get(source, _MISSING)
        return existing is _MISSING or existing == target

    def associate(self, source: int, target: Hashable) -> bool:
        """
        Map ``source`` to ``target``.

        Returns:
            True for a new association, False when reinforcing an existing one

        Raises:
            IllegalStateError: If ``source`` is already mapped elsewhere
        """
        existing = self._forward.get(source, _MISSING)
        if existing is _MISSING:
            self._forward[source] = target
            self._inverse[target].add(source)
            return True
        if existing == target:
            return False
        raise IllegalStateError(
            f"Category {source} is already mapped to {existing!r}, not {target!r}",
            state='map_conflict',
            details={'source': source, 'existing': existing, 'target': target}
        )

    def sources(self, target: Hashable) -> FrozenSet[int]:
        """Every source mapped to ``target``."""
        return frozenset(self._inverse.get(target, ()))

    def targets(self) -> FrozenSet[Hashable]:
        return frozenset(t for t, s in self._inverse.items() if s)

    def remap(self, mapping: Dict[int, int]):
        """
        Re-index sources after the input store was pruned.

        Sources absent from ``mapping`` are dropped along with their entries.
        """
        forward = {mapping[s]: t for s, t in self._forward.items() if s in mapping}
        dropped = len(self._forward) - len(forward)
        self._forward = {}
        self._inverse = defaultdict(set)
        for source, target in forward.items():
            self.associate(source, target)
        if dropped:
            logger.debug(f"Map field dropped {dropped} pruned sources")

    def clear(self):
        self._forward.clear()
        self._inverse.clear()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'forward': dict(self._forward),
            'inverse': {t: sorted(s) for t, s in self._inverse.items() if s},
        }

    def __repr__(self) -> str:
        return f"MapField({len(self._forward)} entries)"
