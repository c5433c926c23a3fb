"""
Fork-join worker pool for independent homomorphic operations.

Every parallel step of the cipher (16 byte substitutions, 4 columns, N blocks)
goes through WorkerPool.map. Calls made from inside a pool worker run inline
on that worker, so nesting block-level and byte-level fan-out never waits on
its own pool.
"""
from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)

_worker_state = threading.local()


def _mark_worker(fn: Callable[[T], R]) -> Callable[[T], R]:
    def run(item: T) -> R:
        _worker_state.active = True
        try:
            return fn(item)
        finally:
            _worker_state.active = False
    return run


class WorkerPool:
    """
    Thread pool with an order-preserving map.

    max_workers=1 evaluates everything serially on the calling thread.
    """

    def __init__(self, max_workers: Optional[int] = None):
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers or min(32, (os.cpu_count() or 1) + 4)
        self._executor: Optional[ThreadPoolExecutor] = None
        self._lock = threading.Lock()

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.max_workers, thread_name_prefix="fhe-aes"
                )
            return self._executor

    @property
    def serial(self) -> bool:
        return self.max_workers == 1

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        items = list(items)
        if self.serial or len(items) <= 1 or getattr(_worker_state, "active", False):
            return [fn(item) for item in items]
        # exceptions raised by a worker surface here, in submission order
        return list(self._get_executor().map(_mark_worker(fn), items))

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=True)
                self._executor = None

    def __enter__(self) -> "WorkerPool":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def __repr__(self) -> str:
        return f"WorkerPool(max_workers={self.max_workers})"


_default_pool: Optional[WorkerPool] = None
_default_lock = threading.Lock()


def default_pool() -> WorkerPool:
    """Process-wide pool used when no pool is passed explicitly."""
    global _default_pool
    with _default_lock:
        if _default_pool is None:
            _default_pool = WorkerPool()
            logger.debug("Created default %r", _default_pool)
        return _default_pool
