"""Periodic eviction of old task records."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta

from content_orchestrator.tasks.registry import TaskRegistry

logger = logging.getLogger(__name__)


class TaskCleanupScheduler:
    """Call ``registry.evict_older_than(max_age)`` every ``interval_s`` on a daemon thread.

    ``max_age`` applies to every task regardless of status; keep it well above
    the longest expected pipeline run.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        interval_s: float = 300.0,
        max_age: timedelta = timedelta(hours=1),
    ) -> None:
        self.registry = registry
        self.interval_s = interval_s
        self.max_age = max_age
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="TaskCleanup",
            daemon=True,
        )
        self._thread.start()
        logger.info(
            "task_cleanup event=started interval_s=%s max_age_s=%s",
            self.interval_s,
            self.max_age.total_seconds(),
        )

    def stop(self, timeout_s: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout_s)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        total_before = self.registry.total_count()
        active_before = self.registry.active_count()

        removed = self.registry.evict_older_than(self.max_age)

        total_after = self.registry.total_count()
        active_after = self.registry.active_count()
        if removed > 0:
            logger.info(
                "Cleaned up %d old tasks. Active tasks: %d -> %d, Total tasks: %d -> %d",
                removed,
                active_before,
                active_after,
                total_before,
                total_after,
            )
        else:
            logger.debug("Task cleanup completed. Active: %d, Total: %d", active_after, total_after)
        return removed

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_s):
            try:
                self.run_once()
            except Exception:  # noqa: BLE001
                logger.exception("task_cleanup event=failed; retrying next tick")
