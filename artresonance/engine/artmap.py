"""
Supervised category-to-target mapping with match tracking (ARTMAP).

Two forms share one search loop:

- ``ARTMAP`` pairs an input engine with an output engine; the target of an
  input category is the output category the paired pattern resonates with.
- ``SimpleARTMAP`` maps input categories straight to hashable labels.

When an input category resonates but is already mapped to a different
target, input vigilance is raised just above that category's match and the
search continues without it. Only the finally accepted category learns, so
a conflicting category's weights and mapping are left untouched.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple
import logging

from ..core.errors import InvalidArgumentError, InvalidParameterError
from ..core.pattern import ArrayLike
from .mapfield import MapField
from .resonance import ResonanceEngine, SearchResult

logger = logging.getLogger(__name__)


class _Unmapped:
    """Prediction outcome for a winning category with no map-field entry."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNMAPPED"

    def __reduce__(self):
        return (_Unmapped, ())


UNMAPPED = _Unmapped()


class ResonanceState(Enum):
    """
    States of the supervised search loop.

    SEARCH and RESONANT_CONFLICT are transient: a conflict raises vigilance
    and returns to SEARCH inside the engine pass, and each rejected
    candidate is counted in ``match_tracking_events``. Results only carry
    the terminal RESONANT_CONSISTENT or COMMIT_NEW.
    """
    SEARCH = "search"
    RESONANT_CONSISTENT = "resonant_consistent"
    RESONANT_CONFLICT = "resonant_conflict"
    COMMIT_NEW = "commit_new"


@dataclass(frozen=True)
class ARTMAPParams:
    """
    Attributes:
        vigilance_a: Baseline vigilance of the input module
        vigilance_b: Vigilance of the output module (two-module form only)
        epsilon: Amount added to the conflicting match on match tracking
        max_vigilance: Ceiling for raised input vigilance
    """

    vigilance_a: float = 0.5
    vigilance_b: float = 0.9
    epsilon: float = 0.001
    max_vigilance: float = 1.0

    def __post_init__(self):
        for name in ('vigilance_a', 'vigilance_b', 'max_vigilance'):
            value = getattr(self, name)
            if not (0.0 <= value <= 1.0):
                raise InvalidParameterError(
                    f"{name} must be in [0, 1], got {value}",
                    argument=name, value=value
                )
        if self.epsilon < 0.0:
            raise InvalidParameterError(
                f"epsilon must be non-negative, got {self.epsilon}",
                argument='epsilon', value=self.epsilon
            )
        if self.max_vigilance < self.vigilance_a:
            raise InvalidParameterError(
                "max_vigilance must be >= vigilance_a",
                argument='max_vigilance', value=self.max_vigilance
            )


@dataclass
class ARTMAPResult:
    """Outcome of one supervised learn() call."""

    input_category: int
    target: Hashable
    state: ResonanceState
    match_tracking_events: int
    new_association: bool
    search: SearchResult
    output_category: Optional[int] = None

    @property
    def committed(self) -> bool:
        return self.state is ResonanceState.COMMIT_NEW


class _MapFieldLearner:
    """Match-tracking loop shared by both supervised forms."""

    def __init__(self, input_module: ResonanceEngine, params: Optional[ARTMAPParams] = None):
        self.input_module = input_module
        self.params = params or ARTMAPParams()
        self.map_field = MapField()

    def _learn_input(self, pattern: ArrayLike, target: Hashable) -> Tuple[SearchResult, bool]:
        result = self.input_module.learn(
            pattern,
            vigilance=self.params.vigilance_a,
            accept=lambda index, match: self.map_field.is_consistent(index, target),
            epsilon=self.params.epsilon,
            max_vigilance=self.params.max_vigilance,
        )
        created = self.map_field.associate(result.index, target)
        if result.match_tracking_events:
            logger.debug(
                f"Target {target!r} settled on category {result.index} after "
                f"{result.match_tracking_events} match-tracking events"
            )
        return result, created

    def predict_ab(self, pattern: ArrayLike) -> Tuple[int, Any]:
        """
        Winning input category and its target.

        Returns:
            ``(category, target)``; target is UNMAPPED when the winner has
            no map-field entry
        """
        index = self.input_module.predict(pattern)
        target = self.map_field.get(index, UNMAPPED)
        if target is UNMAPPED:
            self.input_module.counters.increment('unmapped_predictions')
        return index, target

    def predict(self, pattern: ArrayLike) -> Any:
        """Target of the arg-max input category, or UNMAPPED."""
        return self.predict_ab(pattern)[1]

    def prune(self, min_usage: int) -> Dict[int, int]:
        """Drop rarely used input categories and re-index the map field."""
        remap = self.input_module.store.prune(min_usage)
        self.map_field.remap(remap)
        return remap

    def clear(self):
        """Forget every category and association."""
        self.input_module.reset()
        self.map_field.clear()

    def close(self):
        """Close the engines. Every later learn or predict raises IllegalStateError."""
        self.input_module.close()
        self.map_field.clear()

    @property
    def closed(self) -> bool:
        return self.input_module.closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def get_stats(self) -> Dict[str, Any]:
        stats = {
            'input': self.input_module.get_stats(),
            'mappings': len(self.map_field),
            'targets': len(self.map_field.targets()),
        }
        return stats


class ARTMAP(_MapFieldLearner):
    """
    Two-module ARTMAP.

    The output search runs first so the target category is known while the
    input search is gated by the map field; the two searches are
    independent, so the order does not change the outcome.
    """

    def __init__(self, input_module: ResonanceEngine, output_module: ResonanceEngine,
                 params: Optional[ARTMAPParams] = None):
        super().__init__(input_module, params)
        self.output_module = output_module

    def learn(self, input_pattern: ArrayLike, output_pattern: ArrayLike) -> ARTMAPResult:
        """
        Learn one (input, output) pair.

        Raises:
            CapacityExceededError: If either module needs a new category but is full
        """
        b = self.output_module.learn(output_pattern, vigilance=self.params.vigilance_b)
        a, created = self._learn_input(input_pattern, b.index)
        state = ResonanceState.COMMIT_NEW if a.committed else ResonanceState.RESONANT_CONSISTENT
        return ARTMAPResult(
            input_category=a.index,
            target=b.index,
            state=state,
            match_tracking_events=a.match_tracking_events,
            new_association=created,
            search=a,
            output_category=b.index,
        )

    def fit(self, inputs: Sequence[ArrayLike], outputs: Sequence[ArrayLike],
            epochs: int = 1) -> List[ARTMAPResult]:
        """Learn paired sequences in order; returns the last epoch's results."""
        if len(inputs) != len(outputs):
            raise InvalidArgumentError(
                f"Got {len(inputs)} inputs but {len(outputs)} outputs",
                argument='outputs', value=len(outputs)
            )
        results: List[ARTMAPResult] = []
        for _ in range(epochs):
            results = [self.learn(x, y) for x, y in zip(inputs, outputs)]
        return results

    def partial_fit(self, inputs: Iterable[ArrayLike], outputs: Iterable[ArrayLike]) -> List[ARTMAPResult]:
        """Learn pairs on top of what is already known."""
        return [self.learn(x, y) for x, y in zip(inputs, outputs)]

    def predict_output(self, pattern: ArrayLike) -> Any:
        """Prototype of the predicted output category, or UNMAPPED."""
        target = self.predict(pattern)
        if target is UNMAPPED:
            return UNMAPPED
        return self.output_module.weights(target)

    def clear(self):
        super().clear()
        self.output_module.reset()

    def close(self):
        super().close()
        self.output_module.close()

    def get_stats(self) -> Dict[str, Any]:
        stats = super().get_stats()
        stats['output'] = self.output_module.get_stats()
        return stats


class SimpleARTMAP(_MapFieldLearner):
    """ARTMAP in label form: input categories map directly to labels."""

    def learn(self, pattern: ArrayLike, label: Hashable) -> ARTMAPResult:
        """Learn one labelled pattern."""
        a, created = self._learn_input(pattern, label)
        state = ResonanceState.COMMIT_NEW if a.committed else ResonanceState.RESONANT_CONSISTENT
        return ARTMAPResult(
            input_category=a.index,
            target=label,
            state=state,
            match_tracking_events=a.match_tracking_events,
            new_association=created,
            search=a,
        )

    def fit(self, patterns: Sequence[ArrayLike], labels: Sequence[Hashable],
            epochs: int = 1) -> List[ARTMAPResult]:
        """Learn labelled patterns in order; returns the last epoch's results."""
        if len(patterns) != len(labels):
            raise InvalidArgumentError(
                f"Got {len(patterns)} patterns but {len(labels)} labels",
                argument='labels', value=len(labels)
            )
        results: List[ARTMAPResult] = []
        for _ in range(epochs):
            results = [self.learn(p, y) for p, y in zip(patterns, labels)]
        logger.info(
            f"Fitted {len(patterns)} labelled patterns: "
            f"{self.input_module.category_count} categories, {len(self.map_field.targets())} labels"
        )
        return results

    def partial_fit(self, patterns: Iterable[ArrayLike], labels: Iterable[Hashable]) -> List[ARTMAPResult]:
        return [self.learn(p, y) for p, y in zip(patterns, labels)]

    def predict_many(self, patterns: Iterable[ArrayLike]) -> List[Any]:
        return [self.predict(p) for p in patterns]

    def score(self, patterns: Sequence[ArrayLike], labels: Sequence[Hashable]) -> float:
        """Fraction of patterns whose predicted label matches. UNMAPPED counts as wrong."""
        if len(patterns) != len(labels):
            raise InvalidArgumentError(
                f"Got {len(patterns)} patterns but {len(labels)} labels",
                argument='labels', value=len(labels)
            )
        if not len(patterns):
            return 0.0
        hits = sum(1 for p, y in zip(patterns, labels) if self.predict(p) == y)
        return hits / len(patterns)
