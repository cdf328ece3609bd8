"""In-memory task registry with copy-on-write lifecycle transitions.

Every write replaces the whole ``GenerationTask`` under its key with a single
dict assignment, so readers always see either the previous snapshot or the next
one. Each task has one writer at a time (the submitting request, then the worker
running it), which is why no per-task lock is taken. Concurrent writers to the
same key resolve last-writer-wins.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta

from content_orchestrator.domain.models import (
    GenerationTask,
    OrchestrationResult,
    TaskStatus,
    TopicRequest,
    utc_now,
)

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Single source of truth mapping task id -> current task snapshot."""

    def __init__(self, *, clock: Callable[[], datetime] = utc_now) -> None:
        self._tasks: dict[str, GenerationTask] = {}
        self._clock = clock

    def create(self, request: TopicRequest) -> str:
        task_id = str(uuid.uuid4())
        self._tasks[task_id] = GenerationTask.pending(task_id, request, now=self._clock())
        return task_id

    def get(self, task_id: str) -> GenerationTask | None:
        return self._tasks.get(task_id)

    def status_of(self, task_id: str) -> TaskStatus | None:
        task = self._tasks.get(task_id)
        return task.status if task is not None else None

    def result_of(self, task_id: str) -> OrchestrationResult | None:
        task = self._tasks.get(task_id)
        if task is not None and task.status == "COMPLETED":
            return task.result
        return None

    def transition_to_in_progress(self, task_id: str) -> None:
        current = self._tasks.get(task_id)
        if current is None:
            logger.debug("task_registry event=transition_skipped task_id=%s", task_id)
            return
        self._tasks[task_id] = current.with_status("IN_PROGRESS", now=self._clock())

    def complete_with_result(self, task_id: str, result: OrchestrationResult) -> None:
        # No terminal-state guard: a second completion overwrites the first.
        current = self._tasks.get(task_id)
        if current is None:
            logger.debug("task_registry event=complete_skipped task_id=%s", task_id)
            return
        self._tasks[task_id] = current.with_result(result, now=self._clock())

    def fail_with_error(self, task_id: str, error: str) -> None:
        current = self._tasks.get(task_id)
        if current is None:
            logger.debug("task_registry event=fail_skipped task_id=%s", task_id)
            return
        self._tasks[task_id] = current.with_error(error, now=self._clock())

    def evict_older_than(self, cutoff: timedelta) -> int:
        """Remove every task created before now - cutoff, whatever its status.

        In-flight tasks are removed too; a cutoff shorter than pipeline latency
        makes running tasks disappear from status polling.
        """
        threshold = self._clock() - cutoff
        # dict.copy() is a single atomic snapshot; iterating the live dict could
        # race with concurrent inserts.
        snapshot = self._tasks.copy()
        removed = 0
        for task_id, task in snapshot.items():
            if task.created_at < threshold and self._tasks.pop(task_id, None) is not None:
                removed += 1
        return removed

    def active_count(self) -> int:
        return sum(1 for task in self._tasks.copy().values() if not task.is_completed)

    def total_count(self) -> int:
        return len(self._tasks)
