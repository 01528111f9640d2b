"""Learning rules and their parameter variants."""

from .params import (
    FuzzyARTParams,
    HebbianParams,
    BCMParams,
    InstarOutstarParams,
    GradientHybridParams,
    InstarMode,
    params_to_dict,
    params_from_dict,
)
from .rules import (
    LearningRule,
    LearningUpdate,
    FuzzyARTRule,
    HebbianRule,
    BCMRule,
    InstarOutstarRule,
    GradientHybridRule,
    create_rule,
    RULES,
)

__all__ = [
    "FuzzyARTParams",
    "HebbianParams",
    "BCMParams",
    "InstarOutstarParams",
    "GradientHybridParams",
    "InstarMode",
    "params_to_dict",
    "params_from_dict",
    "LearningRule",
    "LearningUpdate",
    "FuzzyARTRule",
    "HebbianRule",
    "BCMRule",
    "InstarOutstarRule",
    "GradientHybridRule",
    "create_rule",
    "RULES",
]
