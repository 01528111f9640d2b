"""
Configuration for resonance engines.

One dataclass carries every recognized option. Validation happens in a
single pass: ``validate()`` collects every problem, and construction raises
one ``InvalidParameterError`` listing them all in ``details['errors']``.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .core.counters import PerformanceCounters
from .core.errors import InvalidParameterError
from .engine.artmap import ARTMAPParams
from .engine.resonance import EngineParams, ResonanceEngine
from .learning.params import PARAMS_BY_RULE, params_from_dict
from .learning.rules import LearningRule, create_rule
from .performance.parallel import WorkerPool
from .performance.pool import WeightVectorPool

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = ".artresonance.yml"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_FIELD_TYPES = {
    "vigilance": "number",
    "learning_rate": "number",
    "max_categories": "int",
    "choice_alpha": "number",
    "complement_code": "bool",
    "output_vigilance": "number",
    "match_tracking_epsilon": "number",
    "max_vigilance": "number",
    "pool_max_size": "int",
    "worker_pool_size": "int",
    "min_batch_size_for_vectorization": "int",
}

_TYPE_NAMES = {"number": "a number", "int": "an integer", "bool": "true or false"}


def _has_type(value: Any, kind: str) -> bool:
    # bool is an int subclass; YAML booleans are never numbers here
    if kind == "bool":
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if kind == "int":
        return isinstance(value, int)
    return isinstance(value, (int, float))


@dataclass
class LearningRuleConfig:
    """Learning rule name plus its keyword parameters."""

    name: str = "fuzzy_art"
    params: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> List[str]:
        if not isinstance(self.name, str) or self.name not in PARAMS_BY_RULE:
            return [f"learning_rule must be one of {sorted(PARAMS_BY_RULE)}, got {self.name!r}"]
        if not isinstance(self.params, dict):
            return [f"learning_rule params must be a mapping, got {self.params!r}"]
        try:
            params_from_dict(self.name, self.params)
        except InvalidParameterError as e:
            return [f"learning_rule params: {e.message}"]
        return []

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "params": dict(self.params)}

    @classmethod
    def from_dict(cls, data: Union[str, Dict[str, Any], None]) -> "LearningRuleConfig":
        if data is None:
            return cls()
        if not isinstance(data, dict):
            return cls(name=data)
        return cls(name=data.get("name", "fuzzy_art"), params=data.get("params") or {})


@dataclass
class EngineConfig:
    """
    Every recognized engine option.

    The engine-level fields map onto EngineParams, the match-tracking fields
    onto ARTMAPParams, and the rest size the pools and batch paths.
    """

    vigilance: float = 0.75
    learning_rate: float = 1.0
    max_categories: int = 1000
    choice_alpha: float = 0.001
    complement_code: bool = True

    # Supervised layer
    output_vigilance: float = 0.9
    match_tracking_epsilon: float = 0.001
    max_vigilance: float = 1.0

    learning_rule: LearningRuleConfig = field(default_factory=LearningRuleConfig)

    # Performance substrate
    pool_max_size: int = 64
    worker_pool_size: int = 4
    min_batch_size_for_vectorization: int = 32

    log_level: str = "INFO"

    def __post_init__(self):
        """Validate configuration parameters."""
        if not isinstance(self.learning_rule, LearningRuleConfig):
            self.learning_rule = LearningRuleConfig.from_dict(self.learning_rule)
        errors = self.validate()
        if errors:
            raise InvalidParameterError(
                f"Invalid configuration: {'; '.join(errors)}",
                argument='config',
                details={'errors': errors}
            )

    def validate(self) -> List[str]:
        """
        Check every option.

        Returns:
            List of problems; empty when the configuration is valid
        """
        errors = []
        bad_type = set()
        for name, kind in _FIELD_TYPES.items():
            value = getattr(self, name)
            if not _has_type(value, kind):
                errors.append(f"{name} must be {_TYPE_NAMES[kind]}, got {value!r}")
                bad_type.add(name)

        def ok(*names):
            return not bad_type.intersection(names)

        for name in ("vigilance", "learning_rate", "output_vigilance", "max_vigilance"):
            value = getattr(self, name)
            if ok(name) and not (0.0 <= value <= 1.0):
                errors.append(f"{name} must be between 0 and 1, got {value}")
        if ok("vigilance", "max_vigilance") and self.max_vigilance < self.vigilance:
            errors.append(f"max_vigilance ({self.max_vigilance}) must be >= vigilance ({self.vigilance})")
        if ok("max_categories") and self.max_categories <= 0:
            errors.append(f"max_categories must be positive, got {self.max_categories}")
        if ok("choice_alpha") and self.choice_alpha <= 0:
            errors.append(f"choice_alpha must be positive, got {self.choice_alpha}")
        if ok("match_tracking_epsilon") and self.match_tracking_epsilon < 0:
            errors.append(f"match_tracking_epsilon must be non-negative, got {self.match_tracking_epsilon}")
        if ok("pool_max_size") and self.pool_max_size <= 0:
            errors.append(f"pool_max_size must be positive, got {self.pool_max_size}")
        if ok("worker_pool_size") and self.worker_pool_size <= 0:
            errors.append(f"worker_pool_size must be positive, got {self.worker_pool_size}")
        if ok("min_batch_size_for_vectorization") and self.min_batch_size_for_vectorization < 1:
            errors.append(
                f"min_batch_size_for_vectorization must be >= 1, got {self.min_batch_size_for_vectorization}"
            )
        if str(self.log_level).upper() not in LOG_LEVELS:
            errors.append(f"log_level must be one of {LOG_LEVELS}, got {self.log_level!r}")
        errors.extend(self.learning_rule.validate())
        return errors

    @property
    def weight_bounds(self):
        """(min, max) weight bounds of the configured rule."""
        return params_from_dict(self.learning_rule.name, self.learning_rule.params).weight_bounds

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "vigilance": self.vigilance,
            "learning_rate": self.learning_rate,
            "max_categories": self.max_categories,
            "choice_alpha": self.choice_alpha,
            "complement_code": self.complement_code,
            "output_vigilance": self.output_vigilance,
            "match_tracking_epsilon": self.match_tracking_epsilon,
            "max_vigilance": self.max_vigilance,
            "learning_rule": self.learning_rule.to_dict(),
            "pool_max_size": self.pool_max_size,
            "worker_pool_size": self.worker_pool_size,
            "min_batch_size_for_vectorization": self.min_batch_size_for_vectorization,
            "log_level": self.log_level,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EngineConfig":
        """Create from dictionary representation. Unknown keys are rejected."""
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidParameterError(
                f"Configuration must be a mapping, got {type(data).__name__}",
                argument='config', value=data,
                details={'errors': [f"top level must be a mapping, got {type(data).__name__}"]}
            )
        data = dict(data)
        known = set(cls.__dataclass_fields__)
        unknown = sorted(str(k) for k in data if k not in known)
        if unknown:
            raise InvalidParameterError(
                f"Unknown configuration keys: {', '.join(unknown)}",
                argument='config', value=unknown,
                details={'errors': [f"unknown key {k!r}" for k in unknown]}
            )
        data["learning_rule"] = LearningRuleConfig.from_dict(data.get("learning_rule"))
        return cls(**data)

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "EngineConfig":
        """Load configuration from YAML file."""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")
        with open(file_path, "r") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidParameterError(
                    f"Could not parse {file_path}: {e}",
                    argument='config',
                    details={'errors': [f"invalid YAML: {e}"]}
                ) from e
        return cls.from_dict(data)

    # Factories

    def engine_params(self) -> EngineParams:
        return EngineParams(
            vigilance=self.vigilance,
            learning_rate=self.learning_rate,
            choice_alpha=self.choice_alpha,
            max_categories=self.max_categories,
            complement_code=self.complement_code,
        )

    def artmap_params(self) -> ARTMAPParams:
        return ARTMAPParams(
            vigilance_a=self.vigilance,
            vigilance_b=self.output_vigilance,
            epsilon=self.match_tracking_epsilon,
            max_vigilance=self.max_vigilance,
        )

    def build_rule(self) -> LearningRule:
        return create_rule(self.learning_rule.name, self.learning_rule.params)

    def build_engine(self, dimension: int, counters: Optional[PerformanceCounters] = None) -> ResonanceEngine:
        """Create an engine for inputs of ``dimension`` (before complement coding)."""
        return ResonanceEngine(dimension, self.engine_params(), self.build_rule(), counters)

    def build_pool(self, dimension: int) -> WeightVectorPool:
        return WeightVectorPool(dimension, self.pool_max_size)

    def build_worker_pool(self) -> WorkerPool:
        return WorkerPool(self.worker_pool_size)


def get_default_config_path() -> Path:
    """Current directory first, then the home directory."""
    current_dir_config = Path(DEFAULT_CONFIG_NAME)
    if current_dir_config.exists():
        return current_dir_config
    return Path.home() / DEFAULT_CONFIG_NAME


def load_config(config_path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Explicit file; must exist when given

    Returns:
        EngineConfig instance
    """
    if config_path:
        return EngineConfig.load_from_file(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        logger.debug(f"Loading configuration from {default_path}")
        return EngineConfig.load_from_file(default_path)
    return EngineConfig()
