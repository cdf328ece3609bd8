"""Bounded worker pool that runs overflow jobs on the submitting thread."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

logger = logging.getLogger(__name__)


class WorkerPool:
    """``max_workers`` threads plus ``queue_capacity`` queued jobs.

    ``ThreadPoolExecutor`` queues without limit, so admission is counted with a
    semaphore sized ``max_workers + queue_capacity``. When every slot is taken
    the job runs synchronously on the caller's thread, which throttles
    submitters instead of rejecting them.

    The thread count is fixed: there are no overflow threads beyond
    ``max_workers`` once the queue fills. With the defaults (5 workers, 100
    queued) caller-runs starts at the 106th concurrent job, so raise
    ``max_workers`` for more in-flight runs rather than relying on burst threads.
    """

    def __init__(
        self,
        *,
        max_workers: int = 5,
        queue_capacity: int = 100,
        thread_name_prefix: str = "AsyncGeneration",
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if queue_capacity < 0:
            raise ValueError("queue_capacity must be >= 0")
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=thread_name_prefix,
        )
        self._slots = threading.BoundedSemaphore(max_workers + queue_capacity)

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future[Any]:
        if not self._slots.acquire(blocking=False):
            logger.warning(
                "worker_pool event=caller_runs max_workers=%d queue_capacity=%d",
                self.max_workers,
                self.queue_capacity,
            )
            return _run_inline(fn, args)

        try:
            return self._executor.submit(self._run_and_release, fn, args)
        except RuntimeError:
            # Executor already shut down.
            self._slots.release()
            raise

    def shutdown(self, *, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run_and_release(self, fn: Callable[..., Any], args: tuple[Any, ...]) -> Any:
        try:
            return fn(*args)
        finally:
            self._slots.release()


def _run_inline(fn: Callable[..., Any], args: tuple[Any, ...]) -> Future[Any]:
    future: Future[Any] = Future()
    try:
        future.set_result(fn(*args))
    except Exception as exc:  # noqa: BLE001
        future.set_exception(exc)
    return future
