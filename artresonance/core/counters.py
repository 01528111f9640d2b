"""
Per-engine performance counters.
"""

import threading
import time
from contextlib import contextmanager
from typing import Dict, Any


class PerformanceCounters:
    """
    Thread-safe accumulators tied to one engine instance.

    Latency is tracked as an exponential moving average of learn durations.
    Counters are only reset by an explicit ``reset()``.
    """

    FIELDS = (
        'learn_calls',
        'resonances',
        'resets',
        'commits',
        'match_tracking_events',
        'predictions',
        'unmapped_predictions',
        'batches',
    )

    def __init__(self, ema_alpha: float = 0.1):
        self.ema_alpha = ema_alpha
        self.lock = threading.RLock()
        self._counts: Dict[str, int] = {name: 0 for name in self.FIELDS}
        self.latency_ema = 0.0
        self._timed = 0

    def increment(self, name: str, amount: int = 1):
        if name not in self._counts:
            raise KeyError(f"Unknown counter: {name}")
        with self.lock:
            self._counts[name] += amount

    def get(self, name: str) -> int:
        with self.lock:
            return self._counts[name]

    def record_latency(self, seconds: float):
        with self.lock:
            if self._timed == 0:
                self.latency_ema = seconds
            else:
                self.latency_ema = (1.0 - self.ema_alpha) * self.latency_ema + self.ema_alpha * seconds
            self._timed += 1

    @contextmanager
    def timed(self):
        """Time the enclosed block into the latency EMA."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self.record_latency(time.perf_counter() - start)

    def reset(self):
        with self.lock:
            for name in self._counts:
                self._counts[name] = 0
            self.latency_ema = 0.0
            self._timed = 0

    def snapshot(self) -> Dict[str, Any]:
        """Copy of every counter plus the latency EMA in milliseconds."""
        with self.lock:
            data: Dict[str, Any] = dict(self._counts)
            data['latency_ema_ms'] = round(self.latency_ema * 1000.0, 4)
            return data

    def __getattr__(self, name: str) -> int:
        counts = self.__dict__.get('_counts')
        if counts is not None and name in counts:
            return self.get(name)
        raise AttributeError(name)
