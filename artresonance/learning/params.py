"""
Parameter variants for the learning rules.

One frozen dataclass per rule, validated once at construction. Rules never
re-check their parameters at call time.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any, Tuple, Union

from ..core.errors import InvalidParameterError


def _check_unit(name: str, value: float):
    if not (0.0 <= value <= 1.0):
        raise InvalidParameterError(
            f"{name} must be in [0, 1], got {value}",
            argument=name, value=value
        )


def check_weight_bounds(min_weight: float, max_weight: float):
    """Weight bounds must satisfy 0 <= min < max <= 1."""
    if min_weight < 0.0 or max_weight > 1.0 or min_weight >= max_weight:
        raise InvalidParameterError(
            f"Invalid weight bounds: min={min_weight}, max={max_weight}",
            argument='weight_bounds', value=(min_weight, max_weight)
        )


class InstarMode(Enum):
    """Direction of instar/outstar learning."""
    INSTAR = "instar"
    OUTSTAR = "outstar"
    BOTH = "both"


@dataclass(frozen=True)
class FuzzyARTParams:
    """
    Fuzzy ART learning. The learning rate plays the role of beta;
    rate 1.0 is fast learning (w <- p AND w).
    """

    min_weight: float = 0.0
    max_weight: float = 1.0

    def __post_init__(self):
        check_weight_bounds(self.min_weight, self.max_weight)

    @property
    def weight_bounds(self) -> Tuple[float, float]:
        return (self.min_weight, self.max_weight)


@dataclass(frozen=True)
class HebbianParams:
    """Plain Hebbian learning with multiplicative weight decay."""

    decay_rate: float = 0.0
    min_weight: float = 0.0
    max_weight: float = 1.0

    def __post_init__(self):
        _check_unit('decay_rate', self.decay_rate)
        check_weight_bounds(self.min_weight, self.max_weight)

    @property
    def weight_bounds(self) -> Tuple[float, float]:
        return (self.min_weight, self.max_weight)


@dataclass(frozen=True)
class BCMParams:
    """
    Bienenstock-Cooper-Munro learning with a per-category sliding threshold.

    threshold_rate is tau in theta <- (1 - tau) theta + tau y^2.
    """

    threshold_rate: float = 0.5
    weight_decay: float = 0.0005
    min_weight: float = 0.0
    max_weight: float = 1.0
    initial_threshold: float = 0.1

    def __post_init__(self):
        _check_unit('threshold_rate', self.threshold_rate)
        _check_unit('weight_decay', self.weight_decay)
        check_weight_bounds(self.min_weight, self.max_weight)
        if self.initial_threshold < 0.0:
            raise InvalidParameterError(
                f"initial_threshold must be non-negative, got {self.initial_threshold}",
                argument='initial_threshold', value=self.initial_threshold
            )

    @property
    def weight_bounds(self) -> Tuple[float, float]:
        return (self.min_weight, self.max_weight)

    @classmethod
    def competitive(cls) -> "BCMParams":
        """Fast threshold adaptation."""
        return cls(threshold_rate=0.8, weight_decay=0.0001)

    @classmethod
    def homeostatic(cls) -> "BCMParams":
        """Slow threshold adaptation."""
        return cls(threshold_rate=0.1, weight_decay=0.0001)


@dataclass(frozen=True)
class InstarOutstarParams:
    """Grossberg instar/outstar learning."""

    mode: InstarMode = InstarMode.INSTAR
    decay_rate: float = 0.0
    min_weight: float = 0.0
    max_weight: float = 1.0

    def __post_init__(self):
        if not isinstance(self.mode, InstarMode):
            try:
                object.__setattr__(self, 'mode', InstarMode(self.mode))
            except ValueError:
                raise InvalidParameterError(
                    f"Unknown instar/outstar mode: {self.mode}",
                    argument='mode', value=self.mode
                )
        _check_unit('decay_rate', self.decay_rate)
        check_weight_bounds(self.min_weight, self.max_weight)

    @property
    def weight_bounds(self) -> Tuple[float, float]:
        return (self.min_weight, self.max_weight)


@dataclass(frozen=True)
class GradientHybridParams:
    """
    Mix of a Hebbian term and an error-driven step toward the input.

    hebbian_weight is lambda: 1.0 is pure Hebbian, 0.0 pure gradient.
    """

    hebbian_weight: float = 0.5
    decay_rate: float = 0.0
    min_weight: float = 0.0
    max_weight: float = 1.0

    def __post_init__(self):
        _check_unit('hebbian_weight', self.hebbian_weight)
        _check_unit('decay_rate', self.decay_rate)
        check_weight_bounds(self.min_weight, self.max_weight)

    @property
    def weight_bounds(self) -> Tuple[float, float]:
        return (self.min_weight, self.max_weight)


RuleParams = Union[FuzzyARTParams, HebbianParams, BCMParams, InstarOutstarParams, GradientHybridParams]

PARAMS_BY_RULE = {
    'fuzzy_art': FuzzyARTParams,
    'hebbian': HebbianParams,
    'bcm': BCMParams,
    'instar_outstar': InstarOutstarParams,
    'gradient_hybrid': GradientHybridParams,
}


def params_to_dict(params: RuleParams) -> Dict[str, Any]:
    """Serialize rule parameters, turning enums into their values."""
    data = asdict(params)
    for key, value in data.items():
        if isinstance(value, Enum):
            data[key] = value.value
    return data


def params_from_dict(rule: str, data: Dict[str, Any]) -> RuleParams:
    """Build the parameter variant for ``rule`` from a plain dict."""
    if rule not in PARAMS_BY_RULE:
        raise InvalidParameterError(
            f"Unknown learning rule: {rule}",
            argument='learning_rule', value=rule,
            details={'known_rules': sorted(PARAMS_BY_RULE)}
        )
    cls = PARAMS_BY_RULE[rule]
    try:
        return cls(**(data or {}))
    except TypeError as e:
        raise InvalidParameterError(
            f"Bad parameters for {rule}: {e}",
            argument='learning_rule_params', value=data
        ) from e
