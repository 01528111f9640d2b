"""
Pool of reusable weight-vector buffers.

Rented buffers are owned by the caller until returned, exactly once. The
pool never blocks: renting from an empty pool allocates, and returning to
a full pool drops the buffer.
"""

from contextlib import contextmanager
from typing import Dict, Iterator
import logging
import queue
import threading

import numpy as np

from ..core.errors import DimensionMismatchError, InvalidParameterError

logger = logging.getLogger(__name__)


class WeightVectorPool:
    """
    Bounded multiset of float64 buffers of one fixed dimension.

    Safe for concurrent rent/return from several threads. There is no
    ordering guarantee between concurrent renters.
    """

    def __init__(self, dimension: int, max_pool_size: int = 64):
        """
        Initialize an empty pool.

        Args:
            dimension: Length of every buffer
            max_pool_size: Most buffers retained between uses
        """
        if dimension <= 0:
            raise InvalidParameterError(
                f"dimension must be positive, got {dimension}",
                argument='dimension', value=dimension
            )
        if max_pool_size <= 0:
            raise InvalidParameterError(
                f"max_pool_size must be positive, got {max_pool_size}",
                argument='pool_max_size', value=max_pool_size
            )
        self.dimension = int(dimension)
        self.max_pool_size = int(max_pool_size)
        self._buffers: "queue.Queue[np.ndarray]" = queue.Queue(maxsize=self.max_pool_size)

        self._stats_lock = threading.Lock()
        self.allocations = 0
        self.reuses = 0
        self.drops = 0

    def _allocate(self) -> np.ndarray:
        with self._stats_lock:
            self.allocations += 1
        return np.empty(self.dimension, dtype=np.float64)

    def rent(self) -> np.ndarray:
        """
        Take a buffer. Contents are stale; do not assume zeros.
        """
        try:
            buf = self._buffers.get_nowait()
        except queue.Empty:
            return self._allocate()
        with self._stats_lock:
            self.reuses += 1
        return buf

    def rent_zeroed(self) -> np.ndarray:
        buf = self.rent()
        buf.fill(0.0)
        return buf

    def return_buffer(self, buf: np.ndarray):
        """
        Give a rented buffer back.

        Raises:
            DimensionMismatchError: If the buffer's shape or dtype does not fit
        """
        if not isinstance(buf, np.ndarray) or buf.dtype != np.float64 or buf.shape != (self.dimension,):
            actual = buf.shape[0] if isinstance(buf, np.ndarray) and buf.ndim == 1 else -1
            raise DimensionMismatchError(
                self.dimension, actual, argument='buffer',
                details={'dtype': str(getattr(buf, 'dtype', type(buf).__name__))}
            )
        try:
            self._buffers.put_nowait(buf)
        except queue.Full:
            with self._stats_lock:
                self.drops += 1

    def prewarm(self, count: int) -> int:
        """
        Allocate up to ``count`` buffers into the pool.

        Returns:
            Number of buffers actually added
        """
        added = 0
        for _ in range(count):
            try:
                self._buffers.put_nowait(self._allocate())
            except queue.Full:
                with self._stats_lock:
                    self.allocations -= 1
                break
            added += 1
        logger.debug(f"Prewarmed {added} buffers of dimension {self.dimension}")
        return added

    def available(self) -> int:
        """Approximate number of pooled buffers."""
        return self._buffers.qsize()

    @contextmanager
    def borrowed(self, zeroed: bool = False) -> Iterator[np.ndarray]:
        """Rent a buffer for the duration of a ``with`` block."""
        buf = self.rent_zeroed() if zeroed else self.rent()
        try:
            yield buf
        finally:
            self.return_buffer(buf)

    def stats(self) -> Dict[str, int]:
        with self._stats_lock:
            return {
                'dimension': self.dimension,
                'max_pool_size': self.max_pool_size,
                'available': self.available(),
                'allocations': self.allocations,
                'reuses': self.reuses,
                'drops': self.drops,
            }

    def __repr__(self) -> str:
        return f"WeightVectorPool(dimension={self.dimension}, available={self.available()}/{self.max_pool_size})"
