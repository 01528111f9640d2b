"""
Pattern vectors and the fuzzy operations defined on them.

A pattern is an immutable float64 vector. Inputs to fuzzy ART are usually
complement coded, ``[x, 1 - x]``, so the L1 norm of every input equals the
original dimension and the fuzzy AND stays well behaved.
"""

from typing import Iterable, Sequence, Union

import numpy as np

from .errors import InvalidArgumentError, DimensionMismatchError

ArrayLike = Union[Sequence[float], np.ndarray, "Pattern"]


class Pattern:
    """
    Immutable fixed-length vector of real values.

    Wraps a read-only numpy array; equality and hashing are by value.
    """

    __slots__ = ('_data',)

    def __init__(self, values: ArrayLike):
        if isinstance(values, Pattern):
            self._data = values._data
            return

        if values is None:
            raise InvalidArgumentError("Pattern values cannot be None", argument='values')

        try:
            data = np.array(values, dtype=np.float64, copy=True)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(
                f"Pattern values must be numeric: {e}", argument='values'
            ) from e
        if data.ndim != 1:
            raise InvalidArgumentError(
                f"Pattern must be one-dimensional, got shape {data.shape}",
                argument='values',
                value=data.shape
            )
        if data.size == 0:
            raise InvalidArgumentError("Pattern cannot be empty", argument='values')
        if not np.all(np.isfinite(data)):
            raise InvalidArgumentError("Pattern contains NaN or infinite values", argument='values')

        data.setflags(write=False)
        self._data = data

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the underlying values."""
        return self._data

    def dimension(self) -> int:
        return int(self._data.shape[0])

    def __len__(self) -> int:
        return self.dimension()

    def __getitem__(self, index):
        return self._data[index]

    def __iter__(self):
        return iter(self._data)

    def __array__(self, dtype=None, copy=None):
        if dtype is not None and dtype != self._data.dtype:
            return self._data.astype(dtype)
        if copy:
            return self._data.copy()
        return self._data

    def __eq__(self, other) -> bool:
        if not isinstance(other, Pattern):
            return NotImplemented
        return bool(np.array_equal(self._data, other._data))

    def __hash__(self) -> int:
        return hash(self._data.tobytes())

    def __repr__(self) -> str:
        return f"Pattern({np.array2string(self._data, precision=4, threshold=8)})"

    def norm(self) -> float:
        """L1 norm |p|."""
        return float(np.abs(self._data).sum())

    def complement_coded(self) -> "Pattern":
        """Return ``[p, 1 - p]``."""
        return complement_code(self)

    def to_list(self) -> list:
        return self._data.tolist()


def as_array(values: ArrayLike, dimension: int = None, argument: str = 'pattern') -> np.ndarray:
    """
    Coerce a pattern-like value to a validated float64 array.

    Args:
        values: Pattern, sequence or array
        dimension: Expected dimension, if any
        argument: Argument name for error messages

    Returns:
        Read-only float64 array (not copied when already a Pattern)
    """
    if isinstance(values, Pattern):
        data = values.data
    else:
        data = Pattern(values).data

    if dimension is not None and data.shape[0] != dimension:
        raise DimensionMismatchError(dimension, int(data.shape[0]), argument=argument)
    return data


def complement_code(values: ArrayLike) -> Pattern:
    """
    Complement code a vector: ``[x, 1 - x]``.

    Components are expected in [0, 1]; values outside are rejected so the
    coded pattern keeps a constant norm.
    """
    data = as_array(values)
    if np.any(data < 0.0) or np.any(data > 1.0):
        raise InvalidArgumentError(
            "Complement coding requires components in [0, 1]",
            argument='values'
        )
    return Pattern(np.concatenate([data, 1.0 - data]))


def complement_code_batch(rows: Iterable[ArrayLike]) -> list:
    """Complement code every row of a batch."""
    return [complement_code(row) for row in rows]


def fuzzy_and(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Fuzzy AND (componentwise min)."""
    return np.minimum(a, b)


def l1_norm(x: np.ndarray) -> float:
    """L1 norm |x|."""
    return float(np.sum(np.abs(x)))


def min_max_normalize(data: np.ndarray) -> np.ndarray:
    """
    Scale each column of a 2-D array into [0, 1].

    Constant columns map to 0.
    """
    data = np.asarray(data, dtype=np.float64)
    if data.ndim != 2:
        raise InvalidArgumentError(
            f"Expected a 2-D array, got shape {data.shape}",
            argument='data'
        )
    lo = data.min(axis=0)
    span = data.max(axis=0) - lo
    span[span == 0] = 1.0
    return (data - lo) / span
