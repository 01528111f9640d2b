"""
Multi-channel ensemble: one independent resonance engine per channel.

Each channel owns its own category store, so channels learn in parallel on
a caller-owned worker pool without any locking between them.
"""

from typing import Callable, Dict, List, Mapping, Optional
import logging

from ..core.errors import InvalidArgumentError
from ..core.pattern import ArrayLike
from ..performance.parallel import WorkerPool
from .resonance import ResonanceEngine, SearchResult

logger = logging.getLogger(__name__)


class ChannelEnsemble:
    """Named resonance engines presented with one pattern per channel."""

    def __init__(self, engines: Mapping[str, ResonanceEngine], worker_pool: Optional[WorkerPool] = None):
        """
        Initialize ensemble.

        Args:
            engines: Channel name -> engine; engines must be distinct objects
            worker_pool: Caller-owned pool; channels run sequentially without one
        """
        if not engines:
            raise InvalidArgumentError("Ensemble needs at least one channel", argument='engines')
        if len({id(e) for e in engines.values()}) != len(engines):
            raise InvalidArgumentError("Channels must not share an engine", argument='engines')
        self.engines: Dict[str, ResonanceEngine] = dict(engines)
        self.worker_pool = worker_pool

    @classmethod
    def build(cls, dimensions: Mapping[str, int], factory: Callable[[int], ResonanceEngine],
              worker_pool: Optional[WorkerPool] = None) -> "ChannelEnsemble":
        """Create one engine per channel with ``factory(dimension)``."""
        return cls({name: factory(dim) for name, dim in dimensions.items()}, worker_pool)

    @property
    def channels(self) -> List[str]:
        return list(self.engines)

    def _check_channels(self, patterns: Mapping[str, ArrayLike]):
        missing = set(self.engines) - set(patterns)
        unknown = set(patterns) - set(self.engines)
        if missing or unknown:
            raise InvalidArgumentError(
                "Pattern channels do not match ensemble channels",
                argument='patterns',
                details={'missing': sorted(missing), 'unknown': sorted(unknown)}
            )

    def _run(self, fn: Callable[[str], object]) -> Dict[str, object]:
        names = self.channels
        if self.worker_pool is not None:
            values = self.worker_pool.map(fn, names)
        else:
            values = [fn(name) for name in names]
        return dict(zip(names, values))

    def learn(self, patterns: Mapping[str, ArrayLike]) -> Dict[str, SearchResult]:
        """Present one pattern to every channel."""
        self._check_channels(patterns)
        return self._run(lambda name: self.engines[name].learn(patterns[name]))

    def predict(self, patterns: Mapping[str, ArrayLike]) -> Dict[str, int]:
        self._check_channels(patterns)
        return self._run(lambda name: self.engines[name].predict(patterns[name]))

    def fit(self, samples: List[Mapping[str, ArrayLike]]) -> List[Dict[str, int]]:
        """Learn samples in order; channels of one sample run concurrently."""
        assignments = []
        for sample in samples:
            results = self.learn(sample)
            assignments.append({name: r.index for name, r in results.items()})
        logger.info(
            "Ensemble fitted %d samples: %s", len(samples),
            ", ".join(f"{n}={e.category_count}" for n, e in self.engines.items())
        )
        return assignments

    def reset(self):
        for engine in self.engines.values():
            engine.reset()

    def close(self):
        for engine in self.engines.values():
            engine.close()

    def get_stats(self) -> Dict[str, Dict]:
        return {name: engine.get_stats() for name, engine in self.engines.items()}
