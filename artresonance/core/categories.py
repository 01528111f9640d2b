"""
Category store: growable, indexed collection of prototype weight vectors.

Weights live in one contiguous 2-D buffer so choice and match functions can
be evaluated for every category with a single vectorized pass. The buffer
grows by doubling; live rows are ``[0, len)``.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Any
import logging

import numpy as np

from .errors import CapacityExceededError, DimensionMismatchError, InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass
class Category:
    """
    Read-only handle on one stored category.

    ``weights`` is a non-writable view into the store buffer; it reflects
    later in-place updates until the store grows or is cleared.
    """

    index: int
    weights: np.ndarray
    created_seq: int
    usage_count: int
    last_used: int
    learning_state: Optional[float] = None

    @property
    def dimension(self) -> int:
        return int(self.weights.shape[0])


class CategoryStore:
    """
    Append-only ordered sequence of categories up to ``max_categories``.

    Indices are stable once assigned. ``append`` is the only mutator that
    grows ``len()``; ``clear`` and the out-of-band ``prune`` are the only
    ones that shrink it.
    """

    def __init__(self, dimension: int, max_categories: int, initial_capacity: int = 16):
        """
        Initialize an empty store.

        Args:
            dimension: Length of every prototype
            max_categories: Hard upper bound on the number of categories
            initial_capacity: Rows pre-allocated before the first growth
        """
        if dimension <= 0:
            raise InvalidArgumentError(
                f"dimension must be positive, got {dimension}",
                argument='dimension', value=dimension
            )
        if max_categories <= 0:
            raise InvalidArgumentError(
                f"max_categories must be positive, got {max_categories}",
                argument='max_categories', value=max_categories
            )

        self.dimension = int(dimension)
        self.max_categories = int(max_categories)
        self._initial_capacity = max(1, min(initial_capacity, self.max_categories))

        self._weights = np.zeros((self._initial_capacity, self.dimension), dtype=np.float64)
        self._size = 0
        self._usage: List[int] = []
        self._created: List[int] = []
        self._last_used: List[int] = []
        # Learning-rule state side-array, indexed like the categories
        self._state: List[Optional[float]] = []
        self._seq = 0
        self._tick = 0

    def __len__(self) -> int:
        return self._size

    def is_full(self) -> bool:
        return self._size >= self.max_categories

    @property
    def capacity(self) -> int:
        """Rows currently allocated."""
        return int(self._weights.shape[0])

    @property
    def matrix(self) -> np.ndarray:
        """Read-only view of the live prototype rows, shape ``(len, dimension)``."""
        view = self._weights[:self._size]
        view.flags.writeable = False
        return view

    def _check_index(self, index: int):
        if not 0 <= index < self._size:
            raise InvalidArgumentError(
                f"Category index {index} out of range [0, {self._size})",
                argument='index', value=index
            )

    def _check_vector(self, weights: np.ndarray) -> np.ndarray:
        arr = np.asarray(weights, dtype=np.float64)
        if arr.ndim != 1 or arr.shape[0] != self.dimension:
            actual = arr.shape[0] if arr.ndim == 1 else int(arr.size)
            raise DimensionMismatchError(self.dimension, actual, argument='weights')
        return arr

    def _grow(self):
        new_capacity = min(self.capacity * 2, self.max_categories)
        grown = np.zeros((new_capacity, self.dimension), dtype=np.float64)
        grown[:self._size] = self._weights[:self._size]
        self._weights = grown
        logger.debug(f"Category store grown to {new_capacity} rows")

    def append(self, prototype: np.ndarray, learning_state: Optional[float] = None) -> int:
        """
        Append a new category.

        Args:
            prototype: Initial weight vector (copied)
            learning_state: Optional initial learning-rule state

        Returns:
            Index of the new category

        Raises:
            CapacityExceededError: If the store already holds max_categories
        """
        weights = self._check_vector(prototype)
        if self.is_full():
            raise CapacityExceededError(self.max_categories, details={'dimension': self.dimension})

        if self._size == self.capacity:
            self._grow()

        index = self._size
        self._weights[index] = weights
        self._size += 1
        self._tick += 1
        self._usage.append(1)
        self._created.append(self._seq)
        self._last_used.append(self._tick)
        self._state.append(learning_state)
        self._seq += 1
        return index

    def get(self, index: int) -> Category:
        """Return a read-only handle on category ``index``."""
        self._check_index(index)
        row = self._weights[index]
        row.flags.writeable = False
        return Category(
            index=index,
            weights=row,
            created_seq=self._created[index],
            usage_count=self._usage[index],
            last_used=self._last_used[index],
            learning_state=self._state[index],
        )

    def weights(self, index: int) -> np.ndarray:
        """Copy of the prototype at ``index``."""
        self._check_index(index)
        return self._weights[index].copy()

    def set_weights(self, index: int, weights: np.ndarray):
        """Overwrite the prototype at ``index`` in place."""
        self._check_index(index)
        self._weights[index] = self._check_vector(weights)

    def touch(self, index: int):
        """Record one more use of category ``index``."""
        self._check_index(index)
        self._tick += 1
        self._usage[index] += 1
        self._last_used[index] = self._tick

    def get_state(self, index: int) -> Optional[float]:
        self._check_index(index)
        return self._state[index]

    def set_state(self, index: int, value: Optional[float]):
        self._check_index(index)
        self._state[index] = value

    def usage_counts(self) -> List[int]:
        return list(self._usage)

    def clear(self):
        """Remove every category and release the grown buffer."""
        self._weights = np.zeros((self._initial_capacity, self.dimension), dtype=np.float64)
        self._size = 0
        self._usage.clear()
        self._created.clear()
        self._last_used.clear()
        self._state.clear()
        self._seq = 0
        self._tick = 0

    def prune(self, min_usage: int) -> Dict[int, int]:
        """
        Drop categories used fewer than ``min_usage`` times and compact.

        Out-of-band maintenance; the search engine never calls it. Callers
        holding indices (e.g. a map field) must apply the returned remap.

        Returns:
            Mapping of surviving old index -> new index
        """
        keep = [i for i in range(self._size) if self._usage[i] >= min_usage]
        remap = {old: new for new, old in enumerate(keep)}
        if len(keep) == self._size:
            return remap

        self._weights[:len(keep)] = self._weights[keep]
        self._usage = [self._usage[i] for i in keep]
        self._created = [self._created[i] for i in keep]
        self._last_used = [self._last_used[i] for i in keep]
        self._state = [self._state[i] for i in keep]
        removed = self._size - len(keep)
        self._size = len(keep)
        logger.info(f"Pruned {removed} categories below usage {min_usage}")
        return remap

    def get_stats(self) -> Dict[str, Any]:
        """Store usage statistics."""
        return {
            'categories': self._size,
            'max_categories': self.max_categories,
            'dimension': self.dimension,
            'capacity': self.capacity,
            'total_usage': int(sum(self._usage)),
            'memory_bytes': int(self._weights.nbytes),
        }
