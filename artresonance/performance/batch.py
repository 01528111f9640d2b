"""
Vectorized batch processing.

Per-pattern layer dynamics (driving strength, shunting integration,
saturation, decay) are re-expressed over a batch laid out dimension-major:
one contiguous row per feature dimension across all N patterns. Every
operation applies the same elementwise arithmetic in the same order as the
per-pattern path, so batch results equal sequential results to within
1e-10 per element. Batching is a layout change, never an approximation.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence
import logging

import numpy as np

from ..core.errors import InvalidArgumentError, InvalidParameterError, ResonanceError
from ..core.pattern import ArrayLike, as_array
from ..engine.resonance import ResonanceEngine
from .parallel import WorkerPool
from .pool import WeightVectorPool

logger = logging.getLogger(__name__)

MIN_VECTOR_DIMENSION = 4


@dataclass(frozen=True)
class DynamicsParams:
    """
    Shunting layer parameters.

    dx = -A*x + (B - x)*E - (x - floor)*I with E = self_excitation * x and
    I = inhibition * x, where A is ``decay`` and B is ``ceiling``.
    """

    decay: float = 0.3
    ceiling: float = 1.0
    floor: float = 0.0
    self_excitation: float = 1.0
    inhibition: float = 0.0
    driving_strength: float = 1.0

    def __post_init__(self):
        if self.floor >= self.ceiling:
            raise InvalidParameterError(
                f"floor must be below ceiling, got floor={self.floor} ceiling={self.ceiling}",
                argument='floor', value=self.floor
            )
        if self.decay < 0.0:
            raise InvalidParameterError(f"decay must be non-negative, got {self.decay}",
                                        argument='decay', value=self.decay)


# Elementwise kernels shared by both layouts. Each works on any shape.

def _drive(x: np.ndarray, strength: float) -> np.ndarray:
    return x * strength


def _shunt(x: np.ndarray, dt: float, p: DynamicsParams) -> np.ndarray:
    excitation = p.self_excitation * x
    inhibition = p.inhibition * x
    dx = -p.decay * x + (p.ceiling - x) * excitation - (x - p.floor) * inhibition
    return x + dt * dx


def _saturate(x: np.ndarray, ceiling: float, floor: float) -> np.ndarray:
    out = x.copy()
    pos = x > 0
    out[pos] = ceiling * x[pos] / (1.0 + x[pos])
    return np.clip(out, floor, ceiling)


def _decay(x: np.ndarray, rate: float) -> np.ndarray:
    return x * (1.0 - rate)


class BatchLayout:
    """Transposes between pattern-major and dimension-major layouts."""

    @staticmethod
    def to_dimension_major(patterns: Sequence[ArrayLike]) -> np.ndarray:
        """
        Stack patterns into a ``(dimension, batch)`` C-contiguous array.

        Raises:
            InvalidArgumentError: If the batch is empty
            DimensionMismatchError: If patterns differ in dimension
        """
        if not len(patterns):
            raise InvalidArgumentError("Batch is empty", argument='patterns')
        first = as_array(patterns[0])
        dimension = first.shape[0]
        rows = [first] + [as_array(p, dimension, argument=f'patterns[{i}]')
                          for i, p in enumerate(patterns[1:], start=1)]
        return np.ascontiguousarray(np.stack(rows, axis=1))

    @staticmethod
    def to_pattern_major(dimension_major: np.ndarray) -> np.ndarray:
        """Back to a ``(batch, dimension)`` array."""
        return np.ascontiguousarray(np.asarray(dimension_major).T)

    @staticmethod
    def is_vectorization_beneficial(batch_size: int, dimension: int, min_batch_size: int) -> bool:
        return batch_size >= min_batch_size and dimension >= MIN_VECTOR_DIMENSION


class LayerDynamics:
    """Per-pattern (sequential) path."""

    def __init__(self, params: Optional[DynamicsParams] = None):
        self.params = params or DynamicsParams()

    def apply_driving_strength(self, x: np.ndarray, strength: Optional[float] = None) -> np.ndarray:
        return _drive(x, self.params.driving_strength if strength is None else strength)

    def apply_dynamics(self, x: np.ndarray, dt: float) -> np.ndarray:
        return _shunt(x, dt, self.params)

    def apply_saturation(self, x: np.ndarray) -> np.ndarray:
        return _saturate(x, self.params.ceiling, self.params.floor)

    def apply_decay(self, x: np.ndarray, rate: float) -> np.ndarray:
        return _decay(x, rate)

    def evolve(self, pattern: ArrayLike, steps: int = 1, dt: float = 0.01,
               pool: Optional[WeightVectorPool] = None) -> np.ndarray:
        """
        Drive, integrate ``steps`` Euler steps and saturate one pattern.

        When a pool is given the working state lives in a rented buffer.
        """
        x = as_array(pattern, None if pool is None else pool.dimension)
        if pool is None:
            state = self.apply_driving_strength(x)
            for _ in range(steps):
                state = self.apply_dynamics(state, dt)
            return self.apply_saturation(state)

        with pool.borrowed() as buf:
            buf[:] = self.apply_driving_strength(x)
            for _ in range(steps):
                buf[:] = self.apply_dynamics(buf, dt)
            return self.apply_saturation(buf)


class VectorizedBatch:
    """
    Dimension-major batch. Operations update ``dimension_major`` in place
    and return ``self`` so they chain.
    """

    def __init__(self, dimension_major: np.ndarray, params: Optional[DynamicsParams] = None):
        self.dimension_major = np.array(dimension_major, dtype=np.float64, order='C')
        if self.dimension_major.ndim != 2:
            raise InvalidArgumentError(
                f"Expected a (dimension, batch) array, got shape {self.dimension_major.shape}",
                argument='dimension_major'
            )
        self.params = params or DynamicsParams()

    @classmethod
    def from_patterns(cls, patterns: Sequence[ArrayLike],
                      params: Optional[DynamicsParams] = None) -> "VectorizedBatch":
        return cls(BatchLayout.to_dimension_major(patterns), params)

    @property
    def dimension(self) -> int:
        return int(self.dimension_major.shape[0])

    @property
    def batch_size(self) -> int:
        return int(self.dimension_major.shape[1])

    def apply_driving_strength(self, strength: Optional[float] = None) -> "VectorizedBatch":
        self.dimension_major = _drive(
            self.dimension_major, self.params.driving_strength if strength is None else strength)
        return self

    def apply_dynamics(self, dt: float) -> "VectorizedBatch":
        self.dimension_major = _shunt(self.dimension_major, dt, self.params)
        return self

    def apply_saturation(self) -> "VectorizedBatch":
        self.dimension_major = _saturate(self.dimension_major, self.params.ceiling, self.params.floor)
        return self

    def apply_decay(self, rate: float) -> "VectorizedBatch":
        self.dimension_major = _decay(self.dimension_major, rate)
        return self

    def evolve(self, steps: int = 1, dt: float = 0.01) -> "VectorizedBatch":
        self.apply_driving_strength()
        for _ in range(steps):
            self.apply_dynamics(dt)
        return self.apply_saturation()

    def to_patterns(self) -> np.ndarray:
        """Pattern-major ``(batch, dimension)`` copy of the current state."""
        return BatchLayout.to_pattern_major(self.dimension_major)


class BatchProcessor:
    """
    Batch front end for one resonance engine.

    Learning stays sequential and deterministic. Prediction and layer
    dynamics switch to the vectorized path once the batch is large enough.
    """

    def __init__(
        self,
        engine: ResonanceEngine,
        min_batch_size: int = 32,
        pool: Optional[WeightVectorPool] = None,
        worker_pool: Optional[WorkerPool] = None,
        dynamics: Optional[DynamicsParams] = None
    ):
        """
        Initialize batch processor.

        Args:
            engine: Engine that owns the category store
            min_batch_size: Smallest batch that takes the vectorized path
            pool: Buffer pool for the per-pattern dynamics path
            worker_pool: Caller-owned pool for parallel per-pattern dynamics
            dynamics: Layer dynamics parameters
        """
        if min_batch_size < 1:
            raise InvalidParameterError(
                f"min_batch_size must be >= 1, got {min_batch_size}",
                argument='min_batch_size_for_vectorization', value=min_batch_size
            )
        self.engine = engine
        self.min_batch_size = min_batch_size
        self.pool = pool
        self.worker_pool = worker_pool
        self.layer = LayerDynamics(dynamics)

    def process_batch(self, patterns: Sequence[ArrayLike]) -> List[int]:
        """
        Learn patterns in order.

        Stops at the first failing pattern and re-raises its error with the
        number of patterns already processed in ``details['processed']``.
        Categories committed before the failure are kept.
        """
        indices: List[int] = []
        self.engine.counters.increment('batches')
        for i, pattern in enumerate(patterns):
            try:
                indices.append(self.engine.learn(pattern).index)
            except ResonanceError as e:
                e.details['processed'] = i
                logger.warning(f"Batch aborted at pattern {i}: {e}")
                raise
        logger.info(f"Processed batch of {len(indices)} patterns, "
                    f"{self.engine.category_count} categories")
        return indices

    def predict_batch(self, patterns: Sequence[ArrayLike]) -> List[int]:
        """Arg-max choice for every pattern, no learning."""
        patterns = list(patterns)
        if not patterns:
            return []
        dimension = self.engine.dimension
        if not BatchLayout.is_vectorization_beneficial(len(patterns), dimension, self.min_batch_size) \
                or not self.engine.category_count:
            return [self.engine.predict(p) for p in patterns]

        x = np.stack([self.engine.prepare(p) for p in patterns])
        weights = self.engine.store.matrix
        norms = np.abs(weights).sum(axis=1)
        choices = np.empty((x.shape[0], weights.shape[0]), dtype=np.float64)
        for j in range(weights.shape[0]):
            choices[:, j] = np.abs(np.minimum(x, weights[j])).sum(axis=1) / (self.engine.params.choice_alpha + norms[j])
        self.engine.counters.increment('predictions', len(patterns))
        return [int(i) for i in np.argmax(choices, axis=1)]

    def evolve(self, patterns: Sequence[ArrayLike], steps: int = 1, dt: float = 0.01) -> np.ndarray:
        """
        Run layer dynamics over a batch.

        Returns:
            ``(batch, dimension)`` array of evolved activations
        """
        patterns = list(patterns)
        if not patterns:
            return np.empty((0, 0), dtype=np.float64)
        dimension = as_array(patterns[0]).shape[0]
        if BatchLayout.is_vectorization_beneficial(len(patterns), dimension, self.min_batch_size):
            batch = VectorizedBatch.from_patterns(patterns, self.layer.params)
            return batch.evolve(steps, dt).to_patterns()

        def run(pattern):
            return self.layer.evolve(as_array(pattern, dimension), steps, dt, self.pool)

        if self.worker_pool is not None:
            rows = self.worker_pool.map(run, patterns)
        else:
            rows = [run(p) for p in patterns]
        return np.stack(rows)
