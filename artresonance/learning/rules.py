"""
Pluggable synaptic learning rules.

Every rule maps (pre-synaptic pattern, current category weights, rate,
post-synaptic activation, per-category state) to new weights and a new
state. Inputs are never mutated. Only BCM carries state (its sliding
threshold); the category store keeps that state in its side-array.

Rules are stateless objects and safe to share across threads. Concurrent
updates to the *same* category must still be serialized by the caller.
"""

from abc import ABC, abstractmethod
from typing import NamedTuple, Optional, Dict, Any

import numpy as np

from ..core.errors import DimensionMismatchError, InvalidParameterError
from .params import (
    FuzzyARTParams,
    HebbianParams,
    BCMParams,
    InstarOutstarParams,
    GradientHybridParams,
    InstarMode,
    RuleParams,
    PARAMS_BY_RULE,
    params_from_dict,
)


class LearningUpdate(NamedTuple):
    """Result of one learning step."""

    weights: np.ndarray
    state: Optional[float] = None


class LearningRule(ABC):
    """Abstract base class for learning rules."""

    name: str = "abstract"

    def __init__(self, params: RuleParams):
        self.params = params
        self.min_weight, self.max_weight = params.weight_bounds

    def update(
        self,
        pre: np.ndarray,
        weights: np.ndarray,
        rate: float,
        activation: float = 1.0,
        state: Optional[float] = None
    ) -> LearningUpdate:
        """
        Compute updated weights for one category.

        Args:
            pre: Pre-synaptic pattern (the input)
            weights: Current category weights
            rate: Learning rate in [0, 1]
            activation: Post-synaptic activation of the category
            state: Per-category learning state, if the rule keeps any

        Returns:
            LearningUpdate with new weights and the new state

        Raises:
            InvalidParameterError: If rate is outside [0, 1]
            DimensionMismatchError: If pattern and weights differ in length
        """
        if not (0.0 <= rate <= 1.0):
            raise InvalidParameterError(
                f"learning rate must be in [0, 1], got {rate}",
                argument='rate', value=rate
            )
        x = np.asarray(pre, dtype=np.float64)
        w = np.asarray(weights, dtype=np.float64)
        if x.shape != w.shape:
            raise DimensionMismatchError(w.shape[0], x.shape[0], argument='pre')
        return self._apply(x, w, float(rate), float(activation), state)

    @abstractmethod
    def _apply(self, x: np.ndarray, w: np.ndarray, rate: float,
               y: float, state: Optional[float]) -> LearningUpdate:
        pass

    def clip(self, w: np.ndarray) -> np.ndarray:
        return np.clip(w, self.min_weight, self.max_weight)

    def initial_weights(self, pattern: np.ndarray) -> np.ndarray:
        """Prototype for a newly committed category: the pattern itself, bounded."""
        return self.clip(np.asarray(pattern, dtype=np.float64))

    def initial_state(self) -> Optional[float]:
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.params})"


class FuzzyARTRule(LearningRule):
    """
    w' = rate * (x AND w) + (1 - rate) * w

    With rate 1.0 (fast learning) the new prototype is exactly the fuzzy
    AND, so weights only ever contract.
    """

    name = "fuzzy_art"

    def __init__(self, params: Optional[FuzzyARTParams] = None):
        super().__init__(params or FuzzyARTParams())

    def _apply(self, x, w, rate, y, state):
        updated = rate * np.minimum(x, w) + (1.0 - rate) * w
        return LearningUpdate(np.minimum(updated, self.max_weight), state)


class HebbianRule(LearningRule):
    """w' = clip(w * (1 - decay * rate) + rate * y * x)"""

    name = "hebbian"

    def __init__(self, params: Optional[HebbianParams] = None):
        super().__init__(params or HebbianParams())

    def _apply(self, x, w, rate, y, state):
        decayed = w * (1.0 - self.params.decay_rate * rate)
        return LearningUpdate(self.clip(decayed + rate * y * x), state)


class BCMRule(LearningRule):
    """
    BCM with sliding threshold.

    theta <- (1 - tau) * theta + tau * y^2
    phi = y * (y - theta)
    w' = clip(w * (1 - decay * rate) + rate * phi * x)

    y above theta potentiates, below theta depresses.
    """

    name = "bcm"

    def __init__(self, params: Optional[BCMParams] = None):
        super().__init__(params or BCMParams())

    def initial_state(self) -> float:
        return self.params.initial_threshold

    def _apply(self, x, w, rate, y, state):
        tau = self.params.threshold_rate
        theta = self.params.initial_threshold if state is None else state
        theta = (1.0 - tau) * theta + tau * y * y
        phi = y * (y - theta)
        decayed = w * (1.0 - self.params.weight_decay * rate)
        return LearningUpdate(self.clip(decayed + rate * phi * x), theta)


class InstarOutstarRule(LearningRule):
    """
    Grossberg instar/outstar: delta = rate * y * (x - w).

    INSTAR and OUTSTAR apply the full step after decay. BOTH applies half
    an instar step, clips, then adds half an outstar step and clips again.
    """

    name = "instar_outstar"

    def __init__(self, params: Optional[InstarOutstarParams] = None):
        super().__init__(params or InstarOutstarParams())

    def _apply(self, x, w, rate, y, state):
        delta = rate * y * (x - w)
        decayed = w * (1.0 - self.params.decay_rate * rate)
        if self.params.mode is InstarMode.BOTH:
            half = self.clip(decayed + 0.5 * delta)
            return LearningUpdate(self.clip(half + 0.5 * delta), state)
        return LearningUpdate(self.clip(decayed + delta), state)


class GradientHybridRule(LearningRule):
    """
    w' = clip(w + rate * (lambda * y * x + (1 - lambda) * (x - w)) - rate * decay * w)
    """

    name = "gradient_hybrid"

    def __init__(self, params: Optional[GradientHybridParams] = None):
        super().__init__(params or GradientHybridParams())

    def _apply(self, x, w, rate, y, state):
        lam = self.params.hebbian_weight
        step = lam * y * x + (1.0 - lam) * (x - w)
        updated = w + rate * step - rate * self.params.decay_rate * w
        return LearningUpdate(self.clip(updated), state)


RULES = {
    'fuzzy_art': FuzzyARTRule,
    'hebbian': HebbianRule,
    'bcm': BCMRule,
    'instar_outstar': InstarOutstarRule,
    'gradient_hybrid': GradientHybridRule,
}

assert set(RULES) == set(PARAMS_BY_RULE)


def create_rule(name: str, params: Optional[Dict[str, Any]] = None) -> LearningRule:
    """
    Build a learning rule from its name and a plain parameter dict.

    Args:
        name: One of fuzzy_art, hebbian, bcm, instar_outstar, gradient_hybrid
        params: Keyword parameters for the rule's parameter class

    Returns:
        Configured learning rule
    """
    rule_params = params_from_dict(name, params or {})
    return RULES[name](rule_params)
