"""
Tests for configuration loading and validation.
"""

import pytest
import yaml

from artresonance.config import (
    DEFAULT_CONFIG_NAME,
    EngineConfig,
    LearningRuleConfig,
    load_config,
)
from artresonance.core.counters import PerformanceCounters
from artresonance.core.errors import InvalidParameterError, is_parameter_error
from artresonance.learning.rules import BCMRule, FuzzyARTRule


class TestEngineConfig:
    """Tests for EngineConfig."""

    def test_defaults(self):
        """Test default values."""
        config = EngineConfig()
        assert config.vigilance == 0.75
        assert config.max_categories == 1000
        assert config.complement_code is True
        assert config.learning_rule.name == "fuzzy_art"
        assert config.validate() == []

    def test_reports_every_error(self):
        """Test one error lists every problem."""
        with pytest.raises(InvalidParameterError) as exc_info:
            EngineConfig(vigilance=1.5, max_categories=0, log_level="LOUD")
        errors = exc_info.value.details["errors"]
        assert len(errors) >= 3
        assert any("vigilance" in e for e in errors)
        assert any("max_categories" in e for e in errors)
        assert any("log_level" in e for e in errors)
        assert is_parameter_error(exc_info.value)

    def test_max_vigilance_below_vigilance(self):
        """Test the match-tracking ceiling must not be below vigilance."""
        with pytest.raises(InvalidParameterError):
            EngineConfig(vigilance=0.8, max_vigilance=0.7)

    def test_unknown_rule(self):
        """Test an unknown learning rule is rejected."""
        with pytest.raises(InvalidParameterError):
            EngineConfig(learning_rule="backprop")

    def test_string_rule(self):
        """Test a bare rule name is accepted."""
        config = EngineConfig(learning_rule="bcm")
        assert isinstance(config.learning_rule, LearningRuleConfig)
        assert isinstance(config.build_rule(), BCMRule)

    def test_bad_rule_params(self):
        """Test rule parameters are validated."""
        with pytest.raises(InvalidParameterError):
            EngineConfig(learning_rule={"name": "hebbian", "params": {"bogus": 1}})

    def test_roundtrip(self, tmp_path):
        """Test saving and loading YAML."""
        path = tmp_path / "sub" / "config.yml"
        original = EngineConfig(vigilance=0.6, learning_rule={"name": "hebbian", "params": {"decay_rate": 0.01}})
        original.save_to_file(path)

        loaded = EngineConfig.load_from_file(path)
        assert loaded == original
        assert yaml.safe_load(path.read_text())["learning_rule"]["name"] == "hebbian"

    def test_unknown_key(self):
        """Test unknown keys are rejected."""
        with pytest.raises(InvalidParameterError) as exc_info:
            EngineConfig.from_dict({"vigilance": 0.5, "vigilence": 0.6})
        assert exc_info.value.value == ["vigilence"]

    def test_wrong_types_collected(self):
        """Test values of the wrong type are reported, not raised raw."""
        with pytest.raises(InvalidParameterError) as exc_info:
            EngineConfig.from_dict({"vigilance": "high", "max_categories": 2.5,
                                    "complement_code": "yes", "worker_pool_size": True})
        errors = exc_info.value.details["errors"]
        assert len(errors) == 4
        assert any("vigilance must be a number" in e for e in errors)
        assert any("max_categories must be an integer" in e for e in errors)
        assert any("complement_code must be true or false" in e for e in errors)
        assert any("worker_pool_size must be an integer" in e for e in errors)

    def test_bad_rule_shapes(self):
        """Test malformed learning rule entries."""
        with pytest.raises(InvalidParameterError):
            EngineConfig(learning_rule=5)
        with pytest.raises(InvalidParameterError):
            EngineConfig(learning_rule={"name": "hebbian", "params": ["decay_rate"]})

    def test_top_level_not_mapping(self, tmp_path):
        """Test a YAML file whose top level is a list or scalar."""
        with pytest.raises(InvalidParameterError):
            EngineConfig.from_dict(["vigilance", 0.5])
        path = tmp_path / "list.yml"
        path.write_text("- vigilance\n- 0.5\n")
        with pytest.raises(InvalidParameterError) as exc_info:
            EngineConfig.load_from_file(path)
        assert exc_info.value.details["errors"]

    def test_unparseable_yaml(self, tmp_path):
        """Test broken YAML is a configuration error."""
        path = tmp_path / "broken.yml"
        path.write_text("vigilance: [0.5\n")
        with pytest.raises(InvalidParameterError):
            EngineConfig.load_from_file(path)

    def test_missing_file(self, tmp_path):
        """Test loading a missing file."""
        with pytest.raises(FileNotFoundError):
            EngineConfig.load_from_file(tmp_path / "nope.yml")

    def test_build_engine(self):
        """Test the engine factory applies every option."""
        counters = PerformanceCounters()
        config = EngineConfig(vigilance=0.6, max_categories=5)
        engine = config.build_engine(3, counters)

        assert engine.input_dimension == 3
        assert engine.dimension == 6
        assert engine.params.vigilance == 0.6
        assert engine.store.max_categories == 5
        assert engine.counters is counters
        assert isinstance(engine.rule, FuzzyARTRule)

    def test_artmap_params(self):
        """Test the supervised parameters."""
        params = EngineConfig(vigilance=0.4, output_vigilance=0.8).artmap_params()
        assert params.vigilance_a == 0.4
        assert params.vigilance_b == 0.8
        assert params.epsilon == 0.001

    def test_pools(self):
        """Test the pool factories."""
        config = EngineConfig(pool_max_size=3, worker_pool_size=2)
        assert config.build_pool(4).max_pool_size == 3
        workers = config.build_worker_pool()
        assert workers.size == 2
        workers.shutdown()


class TestLoadConfig:
    """Tests for config discovery."""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        """Test defaults when no file is found."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        assert load_config() == EngineConfig()

    def test_current_directory(self, tmp_path, monkeypatch):
        """Test the file in the working directory is used."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        EngineConfig(vigilance=0.3).save_to_file(tmp_path / DEFAULT_CONFIG_NAME)
        assert load_config().vigilance == 0.3

    def test_home_directory(self, tmp_path, monkeypatch):
        """Test the home directory is the fallback."""
        home = tmp_path / "home"
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(home))
        EngineConfig(vigilance=0.2).save_to_file(home / DEFAULT_CONFIG_NAME)
        assert load_config().vigilance == 0.2

    def test_explicit_path(self, tmp_path):
        """Test an explicit path must exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yml")
