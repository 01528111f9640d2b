"""Core data model: patterns, category store, errors and counters."""

from .errors import (
    ResonanceError,
    InvalidArgumentError,
    DimensionMismatchError,
    InvalidParameterError,
    IllegalStateError,
    CapacityExceededError,
)
from .pattern import Pattern, complement_code, complement_code_batch, fuzzy_and, l1_norm
from .categories import Category, CategoryStore
from .counters import PerformanceCounters

__all__ = [
    "ResonanceError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "InvalidParameterError",
    "IllegalStateError",
    "CapacityExceededError",
    "Pattern",
    "complement_code",
    "complement_code_batch",
    "fuzzy_and",
    "l1_norm",
    "Category",
    "CategoryStore",
    "PerformanceCounters",
]
