"""Buffer pooling, vectorized batches and the bounded worker pool."""

from .pool import WeightVectorPool
from .parallel import WorkerPool, TaskResult
from .batch import BatchLayout, BatchProcessor, DynamicsParams, LayerDynamics, VectorizedBatch

__all__ = [
    "WeightVectorPool",
    "WorkerPool",
    "TaskResult",
    "BatchLayout",
    "BatchProcessor",
    "DynamicsParams",
    "LayerDynamics",
    "VectorizedBatch",
]
