"""
Tests for learning rules and their parameters.
"""

import numpy as np
import pytest

from artresonance.core.errors import DimensionMismatchError, InvalidParameterError
from artresonance.learning import (
    BCMParams,
    BCMRule,
    FuzzyARTRule,
    GradientHybridParams,
    GradientHybridRule,
    HebbianParams,
    HebbianRule,
    InstarMode,
    InstarOutstarParams,
    InstarOutstarRule,
    create_rule,
    params_from_dict,
    params_to_dict,
)


X = np.array([1.0, 0.0])
W = np.array([0.5, 0.5])


class TestLearningRuleContract:
    """Tests shared by every rule."""

    @pytest.mark.parametrize("name", ["fuzzy_art", "hebbian", "bcm", "instar_outstar", "gradient_hybrid"])
    def test_rate_out_of_range(self, name):
        """Test that rates outside [0, 1] are rejected."""
        rule = create_rule(name)
        for rate in (-0.1, 1.5):
            with pytest.raises(InvalidParameterError):
                rule.update(X, W, rate)

    @pytest.mark.parametrize("name", ["fuzzy_art", "hebbian", "bcm", "instar_outstar", "gradient_hybrid"])
    def test_dimension_mismatch(self, name):
        """Test that pattern and weights must agree in length."""
        with pytest.raises(DimensionMismatchError):
            create_rule(name).update(np.array([1.0, 0.0, 0.0]), W, 0.5)

    @pytest.mark.parametrize("name", ["fuzzy_art", "hebbian", "bcm", "instar_outstar", "gradient_hybrid"])
    def test_inputs_not_mutated(self, name):
        """Test that update returns new arrays."""
        x, w = X.copy(), W.copy()
        create_rule(name).update(x, w, 0.5, activation=0.8)
        np.testing.assert_array_equal(x, X)
        np.testing.assert_array_equal(w, W)

    @pytest.mark.parametrize("name", ["fuzzy_art", "hebbian", "bcm", "instar_outstar", "gradient_hybrid"])
    def test_weights_stay_in_bounds(self, name):
        """Test clipping to the weight bounds."""
        rng = np.random.default_rng(11)
        rule = create_rule(name)
        for _ in range(20):
            x, w = rng.random(6), rng.random(6)
            update = rule.update(x, w, float(rng.random()), activation=float(rng.random()) * 2)
            assert np.all(update.weights >= 0.0)
            assert np.all(update.weights <= 1.0)


class TestFuzzyARTRule:
    """Tests for fuzzy ART learning."""

    def test_fast_learning_is_fuzzy_and(self):
        """Test that rate 1 gives the componentwise minimum."""
        update = FuzzyARTRule().update(np.array([0.9, 0.1]), np.array([1.0, 0.0]), 1.0)
        np.testing.assert_allclose(update.weights, [0.9, 0.0])

    def test_slow_learning(self):
        """Test partial movement toward the fuzzy AND."""
        update = FuzzyARTRule().update(np.array([0.2, 1.0]), np.array([0.6, 0.4]), 0.5)
        np.testing.assert_allclose(update.weights, [0.4, 0.4])

    def test_contraction(self):
        """Test that weights never grow."""
        rng = np.random.default_rng(5)
        rule = FuzzyARTRule()
        for _ in range(50):
            x, w = rng.random(8), rng.random(8)
            fast = rule.update(x, w, 1.0).weights
            assert np.all(fast <= np.minimum(w, x) + 1e-15)
            slow = rule.update(x, w, float(rng.random())).weights
            assert np.all(slow <= w + 1e-15)

    def test_initial_weights_clamped(self):
        """Test that new prototypes respect the bounds."""
        np.testing.assert_allclose(FuzzyARTRule().initial_weights(np.array([1.5, -0.5])), [1.0, 0.0])
        assert FuzzyARTRule().initial_state() is None


class TestHebbianRule:
    """Tests for Hebbian learning."""

    def test_update(self):
        """Test w + rate * y * x without decay."""
        update = HebbianRule().update(X, W, 0.1, activation=1.0)
        np.testing.assert_allclose(update.weights, [0.6, 0.5])

    def test_decay(self):
        """Test multiplicative decay."""
        rule = HebbianRule(HebbianParams(decay_rate=0.5))
        update = rule.update(np.zeros(2), W, 0.2)
        np.testing.assert_allclose(update.weights, [0.45, 0.45])

    def test_clipped_at_max(self):
        """Test clipping at max_weight."""
        rule = HebbianRule(HebbianParams(max_weight=0.55))
        update = rule.update(X, W, 1.0)
        np.testing.assert_allclose(update.weights, [0.55, 0.5])


class TestBCMRule:
    """Tests for BCM learning."""

    def test_potentiation_and_threshold(self):
        """Test the sliding threshold and potentiation above it."""
        rule = BCMRule()
        update = rule.update(X, W, 0.1, activation=1.0, state=None)

        # theta = 0.5 * 0.1 + 0.5 * 1.0; phi = 1.0 * (1.0 - 0.55)
        assert update.state == pytest.approx(0.55)
        decayed = 0.5 * (1.0 - 0.0005 * 0.1)
        np.testing.assert_allclose(update.weights, [decayed + 0.1 * 0.45, decayed])

    def test_depression_below_threshold(self):
        """Test that activity below theta depresses active weights."""
        update = BCMRule().update(X, W, 0.5, activation=0.5, state=0.9)
        assert update.state == pytest.approx(0.575)
        assert update.weights[0] < W[0]

    def test_initial_state(self):
        """Test that theta starts at the configured value."""
        assert BCMRule().initial_state() == pytest.approx(0.1)
        assert BCMRule(BCMParams(initial_threshold=0.3)).initial_state() == pytest.approx(0.3)

    def test_presets(self):
        """Test the competitive and homeostatic presets."""
        assert BCMParams.competitive().threshold_rate == pytest.approx(0.8)
        assert BCMParams.homeostatic().threshold_rate == pytest.approx(0.1)


class TestInstarOutstarRule:
    """Tests for instar/outstar learning."""

    def test_instar(self):
        """Test a full step toward the input."""
        update = InstarOutstarRule().update(X, W, 0.5, activation=1.0)
        np.testing.assert_allclose(update.weights, [0.75, 0.25])

    def test_both_mode(self):
        """Test two half steps."""
        rule = InstarOutstarRule(InstarOutstarParams(mode=InstarMode.BOTH))
        update = rule.update(X, W, 0.5, activation=1.0)
        np.testing.assert_allclose(update.weights, [0.75, 0.25])

    def test_mode_from_string(self):
        """Test string modes are coerced."""
        assert InstarOutstarParams(mode="outstar").mode is InstarMode.OUTSTAR
        with pytest.raises(InvalidParameterError):
            InstarOutstarParams(mode="sideways")

    def test_zero_activation_only_decays(self):
        """Test that an inactive category only decays."""
        rule = InstarOutstarRule(InstarOutstarParams(decay_rate=0.1))
        update = rule.update(X, W, 1.0, activation=0.0)
        np.testing.assert_allclose(update.weights, [0.45, 0.45])


class TestGradientHybridRule:
    """Tests for the Hebbian/gradient mix."""

    def test_update(self):
        """Test the mixed step."""
        update = GradientHybridRule().update(X, W, 0.1, activation=1.0)
        np.testing.assert_allclose(update.weights, [0.575, 0.475])

    def test_pure_gradient(self):
        """Test lambda 0 moves straight toward the input."""
        rule = GradientHybridRule(GradientHybridParams(hebbian_weight=0.0))
        update = rule.update(X, W, 1.0)
        np.testing.assert_allclose(update.weights, X)


class TestParams:
    """Tests for parameter validation and factories."""

    def test_invalid_weight_bounds(self):
        """Test that bounds must satisfy 0 <= min < max <= 1."""
        for bounds in [(0.5, 0.5), (-0.1, 1.0), (0.0, 1.1), (0.8, 0.2)]:
            with pytest.raises(InvalidParameterError):
                HebbianParams(min_weight=bounds[0], max_weight=bounds[1])

    def test_invalid_rates(self):
        """Test unit-interval parameters."""
        with pytest.raises(InvalidParameterError):
            BCMParams(threshold_rate=1.5)
        with pytest.raises(InvalidParameterError):
            GradientHybridParams(hebbian_weight=-0.1)

    def test_params_are_frozen(self):
        """Test immutability."""
        params = HebbianParams()
        with pytest.raises(Exception):
            params.decay_rate = 0.5

    def test_create_rule(self):
        """Test building rules by name."""
        rule = create_rule("bcm", {"threshold_rate": 0.8})
        assert isinstance(rule, BCMRule)
        assert rule.params.threshold_rate == pytest.approx(0.8)

    def test_create_rule_unknown(self):
        """Test unknown names and parameters."""
        with pytest.raises(InvalidParameterError) as exc_info:
            create_rule("backprop")
        assert "known_rules" in exc_info.value.details
        with pytest.raises(InvalidParameterError):
            create_rule("hebbian", {"momentum": 0.9})

    def test_params_round_trip(self):
        """Test serialization of enum-valued parameters."""
        params = InstarOutstarParams(mode=InstarMode.BOTH, decay_rate=0.2)
        data = params_to_dict(params)
        assert data["mode"] == "both"
        assert params_from_dict("instar_outstar", data) == params
