"""
Bounded worker pool for independent module and channel computations.

The pool is explicitly constructed and owned by the caller; nothing in the
package creates a hidden global executor. Work submitted here must not
share a category store between tasks.
"""

from concurrent.futures import ThreadPoolExecutor, Future, as_completed
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Sequence, Tuple, TypeVar
import logging
import os
import threading
import time

from ..core.errors import IllegalStateError, InvalidParameterError

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


@dataclass
class TaskResult(Generic[R]):
    """Result of one pooled task."""

    task_id: str
    result: Optional[R]
    error: Optional[BaseException]
    duration: float

    @property
    def success(self) -> bool:
        return self.error is None


class WorkerPool:
    """
    Fixed-size thread pool with fork-join helpers.

    ``map`` propagates the first task failure after every task has finished;
    ``run_all`` captures failures per task instead.
    """

    def __init__(self, size: Optional[int] = None, name: str = "art-worker"):
        """
        Initialize the pool. Threads start lazily on first use.

        Args:
            size: Number of worker threads (CPU count by default)
            name: Thread name prefix
        """
        size = size if size is not None else (os.cpu_count() or 1)
        if size <= 0:
            raise InvalidParameterError(
                f"worker pool size must be positive, got {size}",
                argument='worker_pool_size', value=size
            )
        self.size = size
        self.name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._shutdown = False
        self._lock = threading.Lock()

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.shutdown()

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def start(self):
        """Start the executor."""
        with self._lock:
            if self._shutdown:
                raise IllegalStateError("Worker pool has been shut down", state='closed')
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=self.size, thread_name_prefix=self.name)

    def shutdown(self, wait: bool = True):
        """Shut the executor down. The pool cannot be restarted."""
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=wait)
                self._executor = None
            self._shutdown = True

    def submit(self, func: Callable[..., R], *args, **kwargs) -> "Future[R]":
        self.start()
        return self._executor.submit(func, *args, **kwargs)

    def map(self, func: Callable[[T], R], items: Sequence[T],
            timeout: Optional[float] = None) -> List[R]:
        """
        Apply ``func`` to every item in parallel.

        Returns:
            Results in input order

        Raises:
            The first failure (in input order) once every task has finished
        """
        if not items:
            return []
        futures = [self.submit(func, item) for item in items]
        errors: Dict[int, BaseException] = {}
        results: List[Any] = [None] * len(futures)
        index_of = {f: i for i, f in enumerate(futures)}
        for future in as_completed(futures, timeout=timeout):
            i = index_of[future]
            error = future.exception()
            if error is not None:
                errors[i] = error
            else:
                results[i] = future.result()
        if errors:
            first = min(errors)
            logger.error(f"{len(errors)} of {len(items)} pooled tasks failed")
            raise errors[first]
        return results

    def starmap(self, func: Callable[..., R], args_list: Sequence[Tuple]) -> List[R]:
        """Apply ``func`` with unpacked argument tuples."""
        return self.map(lambda args: func(*args), args_list)

    def run_all(self, tasks: Dict[str, Callable[[], R]]) -> List[TaskResult]:
        """
        Run named zero-argument tasks and report each outcome.

        Returns:
            TaskResult per task, in the order given
        """
        def timed(task_id: str, task: Callable[[], R]) -> TaskResult:
            start = time.perf_counter()
            try:
                return TaskResult(task_id, task(), None, time.perf_counter() - start)
            except Exception as e:
                logger.debug(f"Task {task_id} failed: {e}")
                return TaskResult(task_id, None, e, time.perf_counter() - start)

        return self.map(lambda item: timed(*item), list(tasks.items()))

    def __repr__(self) -> str:
        state = "shutdown" if self._shutdown else ("running" if self._executor else "idle")
        return f"WorkerPool(size={self.size}, {state})"
