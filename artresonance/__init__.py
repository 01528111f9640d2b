"""art-resonance - Adaptive Resonance Theory pattern-learning engines."""

__version__ = "0.1.0"

from .core.errors import (
    ResonanceError,
    InvalidArgumentError,
    DimensionMismatchError,
    InvalidParameterError,
    IllegalStateError,
    CapacityExceededError,
)
from .core.pattern import Pattern, complement_code
from .engine.resonance import ResonanceEngine, EngineParams, SearchResult
from .engine.artmap import ARTMAP, SimpleARTMAP, ARTMAPParams, UNMAPPED
from .learning.rules import create_rule
from .config import EngineConfig, load_config

__all__ = [
    "ResonanceError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "InvalidParameterError",
    "IllegalStateError",
    "CapacityExceededError",
    "Pattern",
    "complement_code",
    "ResonanceEngine",
    "EngineParams",
    "SearchResult",
    "ARTMAP",
    "SimpleARTMAP",
    "ARTMAPParams",
    "UNMAPPED",
    "create_rule",
    "EngineConfig",
    "load_config",
    "__version__",
]
