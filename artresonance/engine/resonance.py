"""
Resonance search engine (Fuzzy ART).

Given an input pattern and a growable category store, decide whether the
input resonates with an existing category, which one, and update that
category's weights with the configured learning rule. Otherwise commit a
new category.

Choice:  T_j = |p ^ w_j| / (alpha + |w_j|)
Match:   M_j = |p ^ w_j| / |p|

Candidates are visited by descending T_j with ties broken by ascending
index, so the oldest category wins ties and results are deterministic.
"""

from dataclasses import dataclass, asdict
from typing import Callable, Iterable, List, Optional, Set, Dict, Any
import logging
import threading

import numpy as np

from ..core.categories import CategoryStore
from ..core.counters import PerformanceCounters
from ..core.errors import (
    CapacityExceededError,
    IllegalStateError,
    InvalidArgumentError,
    InvalidParameterError,
)
from ..core.pattern import ArrayLike, as_array, complement_code
from ..learning.rules import FuzzyARTRule, LearningRule

logger = logging.getLogger(__name__)

AcceptFn = Callable[[int, float], bool]


def _check_vigilance(value: float, argument: str = 'vigilance'):
    if not (0.0 <= value <= 1.0):
        raise InvalidParameterError(
            f"{argument} must be in [0, 1], got {value}",
            argument=argument, value=value
        )


@dataclass(frozen=True)
class EngineParams:
    """
    Parameters of one resonance engine.

    Attributes:
        vigilance: Default vigilance used when learn() gets none
        learning_rate: Rate handed to the learning rule on resonance
        choice_alpha: Choice-function denominator offset, must be > 0
        max_categories: Hard cap on the category store
        complement_code: Complement code every input before searching
    """

    vigilance: float = 0.75
    learning_rate: float = 1.0
    choice_alpha: float = 0.001
    max_categories: int = 1000
    complement_code: bool = False

    def __post_init__(self):
        _check_vigilance(self.vigilance)
        if not (0.0 <= self.learning_rate <= 1.0):
            raise InvalidParameterError(
                f"learning_rate must be in [0, 1], got {self.learning_rate}",
                argument='learning_rate', value=self.learning_rate
            )
        if self.choice_alpha <= 0.0:
            raise InvalidParameterError(
                f"choice_alpha must be positive, got {self.choice_alpha}",
                argument='choice_alpha', value=self.choice_alpha
            )
        if self.max_categories <= 0:
            raise InvalidParameterError(
                f"max_categories must be positive, got {self.max_categories}",
                argument='max_categories', value=self.max_categories
            )


@dataclass
class SearchResult:
    """Outcome of one learn() call."""

    index: int
    committed: bool
    match: float
    activation: float
    evaluated: int
    vigilance: float
    resets: int = 0
    match_tracking_events: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ResonanceEngine:
    """
    Fuzzy ART category search over a single category store.

    The engine is single-writer: ``learn`` holds an ``RLock`` so accidental
    concurrent calls on one instance serialize. Distinct engines share
    nothing and may run in parallel.
    """

    def __init__(
        self,
        dimension: int,
        params: Optional[EngineParams] = None,
        rule: Optional[LearningRule] = None,
        counters: Optional[PerformanceCounters] = None,
        initial_capacity: int = 16
    ):
        """
        Initialize an empty engine.

        Args:
            dimension: Input dimension (before complement coding)
            params: Engine parameters
            rule: Learning rule applied on resonance (Fuzzy ART by default)
            counters: Counters to accumulate into; a private set if omitted
            initial_capacity: Rows pre-allocated in the category store
        """
        if dimension <= 0:
            raise InvalidArgumentError(
                f"dimension must be positive, got {dimension}",
                argument='dimension', value=dimension
            )
        self.params = params or EngineParams()
        self.rule = rule or FuzzyARTRule()
        self.counters = counters or PerformanceCounters()
        self.input_dimension = int(dimension)
        self.dimension = self.input_dimension * 2 if self.params.complement_code else self.input_dimension
        self.store = CategoryStore(self.dimension, self.params.max_categories, initial_capacity)

        self._lock = threading.RLock()
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self):
        """Release the category store. Every later call raises IllegalStateError."""
        with self._lock:
            if not self._closed:
                self.store.clear()
                self._closed = True
                logger.debug("Resonance engine closed")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _check_open(self):
        if self._closed:
            raise IllegalStateError("Engine has been closed", state='closed')

    def reset(self):
        """Forget every category. Counters are kept; reset them explicitly."""
        with self._lock:
            self._check_open()
            self.store.clear()
            logger.debug("Resonance engine reset")

    @property
    def category_count(self) -> int:
        return len(self.store)

    def __len__(self) -> int:
        return len(self.store)

    # ------------------------------------------------------------------
    # Choice and match
    # ------------------------------------------------------------------

    def prepare(self, pattern: ArrayLike) -> np.ndarray:
        """Validate a pattern and complement code it when configured."""
        if self.params.complement_code:
            data = as_array(pattern, self.input_dimension)
            return complement_code(data).data
        return as_array(pattern, self.dimension)

    def _intersections(self, x: np.ndarray) -> np.ndarray:
        return np.abs(np.minimum(self.store.matrix, x)).sum(axis=1)

    def _choice_from(self, inter: np.ndarray) -> np.ndarray:
        norms = np.abs(self.store.matrix).sum(axis=1)
        return inter / (self.params.choice_alpha + norms)

    @staticmethod
    def _match_from(inter: np.ndarray, x: np.ndarray) -> np.ndarray:
        norm = float(np.abs(x).sum())
        if norm == 0.0:
            # An all-zero input is a subset of every prototype
            return np.ones_like(inter)
        return inter / norm

    def choice(self, pattern: ArrayLike) -> np.ndarray:
        """Choice value T_j for every category."""
        self._check_open()
        x = self.prepare(pattern)
        return self._choice_from(self._intersections(x))

    def match(self, pattern: ArrayLike) -> np.ndarray:
        """Match value M_j for every category."""
        self._check_open()
        x = self.prepare(pattern)
        return self._match_from(self._intersections(x), x)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def learn(
        self,
        pattern: ArrayLike,
        vigilance: Optional[float] = None,
        excluded: Optional[Iterable[int]] = None,
        accept: Optional[AcceptFn] = None,
        epsilon: float = 0.0,
        max_vigilance: float = 1.0
    ) -> SearchResult:
        """
        Present one pattern: resonate with a category or commit a new one.

        Args:
            pattern: Input pattern
            vigilance: Vigilance for this call; the engine default if None
            excluded: Categories disqualified before the search starts
            accept: Gate called as ``accept(index, match)`` on each resonant
                candidate. A rejection is a match-tracking event: vigilance
                is raised to ``min(match + epsilon, max_vigilance)``, the
                candidate is disqualified and the search continues.
            epsilon: Match-tracking vigilance increment
            max_vigilance: Ceiling for raised vigilance

        Returns:
            SearchResult for the resonant or newly committed category

        Raises:
            InvalidArgumentError: Bad pattern or vigilance
            CapacityExceededError: Nothing resonated and the store is full
            IllegalStateError: Engine closed
        """
        rho = self.params.vigilance if vigilance is None else float(vigilance)
        _check_vigilance(rho)
        _check_vigilance(max_vigilance, 'max_vigilance')
        if max_vigilance < rho:
            raise InvalidParameterError(
                f"max_vigilance ({max_vigilance}) must be >= vigilance ({rho})",
                argument='max_vigilance', value=max_vigilance
            )

        with self._lock:
            self._check_open()
            x = self.prepare(pattern)
            with self.counters.timed():
                self.counters.increment('learn_calls')
                return self._search(x, rho, set(excluded or ()), accept, epsilon, max_vigilance)

    def _search(self, x: np.ndarray, rho: float, excluded: Set[int],
                accept: Optional[AcceptFn], epsilon: float,
                max_vigilance: float) -> SearchResult:
        evaluated = 0
        resets = 0
        tracking = 0

        if len(self.store):
            inter = self._intersections(x)
            choices = self._choice_from(inter)
            matches = self._match_from(inter, x)
            order = np.argsort(-choices, kind='stable')

            for j in order:
                j = int(j)
                if j in excluded:
                    continue
                evaluated += 1
                m = float(matches[j])
                if m < rho:
                    resets += 1
                    continue
                if accept is not None and not accept(j, m):
                    tracking += 1
                    excluded.add(j)
                    rho = min(m + epsilon, max_vigilance)
                    logger.debug(f"Match tracking on category {j}: vigilance raised to {rho:.4f}")
                    continue

                self._resonate(j, x, m)
                self.counters.increment('resonances')
                self._count_tail(resets, tracking)
                return SearchResult(
                    index=j, committed=False, match=m,
                    activation=float(choices[j]), evaluated=evaluated,
                    vigilance=rho, resets=resets, match_tracking_events=tracking,
                )

        if self.store.is_full():
            self._count_tail(resets, tracking)
            raise CapacityExceededError(
                self.store.max_categories,
                details={'evaluated': evaluated, 'vigilance': rho}
            )

        evaluated += 1
        index = self.store.append(self.rule.initial_weights(x), self.rule.initial_state())
        self.counters.increment('commits')
        self._count_tail(resets, tracking)
        logger.debug(f"Committed category {index} after {evaluated - 1} candidates")

        w = self.store.matrix[index]
        inter = float(np.abs(np.minimum(w, x)).sum())
        norm = float(np.abs(x).sum())
        return SearchResult(
            index=index, committed=True,
            match=inter / norm if norm else 1.0,
            activation=inter / (self.params.choice_alpha + float(np.abs(w).sum())),
            evaluated=evaluated, vigilance=rho, resets=resets,
            match_tracking_events=tracking,
        )

    def _count_tail(self, resets: int, tracking: int):
        if resets:
            self.counters.increment('resets', resets)
        if tracking:
            self.counters.increment('match_tracking_events', tracking)

    def _resonate(self, index: int, x: np.ndarray, match: float):
        update = self.rule.update(
            x,
            self.store.weights(index),
            self.params.learning_rate,
            activation=match,
            state=self.store.get_state(index),
        )
        self.store.set_weights(index, update.weights)
        self.store.set_state(index, update.state)
        self.store.touch(index)

    def predict(self, pattern: ArrayLike) -> int:
        """
        Arg-max choice with no vigilance gate, no learning and no creation.

        Raises:
            IllegalStateError: If no category has been learned yet
        """
        with self._lock:
            self._check_open()
            if not len(self.store):
                raise IllegalStateError("No categories learned yet", state='empty')
            x = self.prepare(pattern)
            self.counters.increment('predictions')
            return int(np.argmax(self._choice_from(self._intersections(x))))

    def fit(self, patterns: Iterable[ArrayLike], vigilance: Optional[float] = None,
            epochs: int = 1) -> List[int]:
        """
        Learn each pattern in order.

        Returns:
            Category index per pattern from the last epoch
        """
        if epochs < 1:
            raise InvalidArgumentError(f"epochs must be >= 1, got {epochs}",
                                       argument='epochs', value=epochs)
        patterns = list(patterns)
        labels: List[int] = []
        for _ in range(epochs):
            labels = [self.learn(p, vigilance).index for p in patterns]
        logger.info(f"Fitted {len(patterns)} patterns into {len(self.store)} categories")
        return labels

    def weights(self, index: int) -> np.ndarray:
        """Copy of category ``index``'s prototype."""
        self._check_open()
        return self.store.weights(index)

    def get_stats(self) -> Dict[str, Any]:
        """Engine statistics: store usage plus counters."""
        stats = self.store.get_stats()
        stats.update(self.counters.snapshot())
        stats['rule'] = self.rule.name
        stats['closed'] = self._closed
        return stats


__all__ = ['EngineParams', 'SearchResult', 'ResonanceEngine']
