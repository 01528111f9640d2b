"""
Error taxonomy for the resonance engines.

Programmer errors (bad dimensions, bad configuration, misuse of a closed
object) fail fast. Expected data conditions are values, not errors: an
unmapped prediction returns ``UNMAPPED`` and match-tracking conflicts are
only visible through counters.
"""

from typing import Optional, Any, Dict


class ResonanceError(Exception):
    """
    Base exception for all engine errors.

    Carries a structured ``details`` dict alongside the message.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize resonance error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidArgumentError(ResonanceError, ValueError):
    """
    Raised for null/empty patterns, out-of-range parameters and
    dimension mismatches. Never retried.
    """

    def __init__(self, message: str,
                 argument: Optional[str] = None,
                 value: Any = None,
                 details: Optional[Dict[str, Any]] = None):
        """
        Initialize invalid argument error.

        Args:
            message: Error message
            argument: Name of the offending argument
            value: Offending value
            details: Additional error context
        """
        super().__init__(message, details)
        self.argument = argument
        self.value = value

        self.details.update({
            'argument': argument,
            'value': value
        })


class DimensionMismatchError(InvalidArgumentError):
    """Raised when a vector does not have the dimension a module expects."""

    def __init__(self, expected: int, actual: int,
                 argument: str = 'pattern',
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Dimension mismatch for {argument}: expected {expected}, got {actual}",
            argument=argument,
            value=actual,
            details=details
        )
        self.expected = expected
        self.actual = actual
        self.details.update({'expected': expected, 'actual': actual})


class InvalidParameterError(InvalidArgumentError):
    """Raised when a rate, bound or configuration value is out of range."""


class IllegalStateError(ResonanceError, RuntimeError):
    """
    Raised when an operation is not valid in the current state,
    e.g. predicting before anything was learned or using a closed pool.
    """

    def __init__(self, message: str,
                 state: str = 'general',
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.state = state
        self.details['state'] = state


class CapacityExceededError(ResonanceError):
    """
    Raised when a category store is full and a commit is required.

    Surfaced to the caller, who may prune and retry.
    """

    def __init__(self, capacity: int, details: Optional[Dict[str, Any]] = None):
        super().__init__(f"Category store is full ({capacity} categories)", details)
        self.capacity = capacity
        self.details['capacity'] = capacity


def is_dimension_error(error: Exception) -> bool:
    """Check if error is a dimension mismatch."""
    return isinstance(error, DimensionMismatchError)


def is_parameter_error(error: Exception) -> bool:
    """Check if error is an out-of-range parameter."""
    return isinstance(error, InvalidParameterError)


def is_capacity_error(error: Exception) -> bool:
    """Check if error is due to a full category store."""
    return isinstance(error, CapacityExceededError)


def is_closed_error(error: Exception) -> bool:
    """Check if error comes from using a closed engine or pool."""
    return isinstance(error, IllegalStateError) and error.state == 'closed'
