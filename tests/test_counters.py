"""
Tests for per-engine performance counters.
"""

import threading

import pytest

from artresonance.core.counters import PerformanceCounters


class TestPerformanceCounters:
    """Tests for PerformanceCounters."""

    def test_increment_and_get(self):
        """Test counting by name and attribute."""
        counters = PerformanceCounters()
        counters.increment("resets", 3)
        counters.increment("resets")
        assert counters.get("resets") == 4
        assert counters.resets == 4

    def test_unknown_counter(self):
        """Test unknown names are rejected."""
        counters = PerformanceCounters()
        with pytest.raises(KeyError):
            counters.increment("nope")
        with pytest.raises(AttributeError):
            counters.nope

    def test_latency_ema(self):
        """Test the exponential moving average."""
        counters = PerformanceCounters(ema_alpha=0.5)
        counters.record_latency(0.002)
        counters.record_latency(0.004)
        assert counters.latency_ema == pytest.approx(0.003)
        assert counters.snapshot()["latency_ema_ms"] == pytest.approx(3.0)

    def test_timed(self):
        """Test timing a block records a latency."""
        counters = PerformanceCounters()
        with counters.timed():
            pass
        assert counters.latency_ema >= 0.0
        assert counters._timed == 1

    def test_reset(self):
        """Test an explicit reset clears everything."""
        counters = PerformanceCounters()
        counters.increment("commits", 2)
        counters.record_latency(1.0)
        counters.reset()
        snapshot = counters.snapshot()
        assert all(snapshot[name] == 0 for name in PerformanceCounters.FIELDS)
        assert snapshot["latency_ema_ms"] == 0.0

    def test_thread_safety(self):
        """Test concurrent increments are not lost."""
        counters = PerformanceCounters()

        def work():
            for _ in range(1000):
                counters.increment("learn_calls")

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counters.learn_calls == 8000
