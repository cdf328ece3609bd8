"""Asynchronous generation: fast submission, background pipeline execution.

Failures are recovered as close to their origin as possible. Stage agents and
pipeline nodes absorb their own errors, persistence errors are logged and
skipped, and only an exception escaping ``_execute_generation`` itself marks a
task FAILED.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Protocol

from content_orchestrator.domain.models import (
    GenerationTask,
    OrchestrationResult,
    TaskStatus,
    TopicRequest,
)
from content_orchestrator.identity import CallerIdentity, current_caller, use_caller
from content_orchestrator.storage.base import ContentStore
from content_orchestrator.storage.models import GeneratedContentRecord
from content_orchestrator.tasks.pool import WorkerPool
from content_orchestrator.tasks.registry import TaskRegistry

logger = logging.getLogger(__name__)


class Pipeline(Protocol):
    def run(self, request: TopicRequest) -> OrchestrationResult: ...


class AsyncGenerationService:
    """Dispatch pipeline runs onto the worker pool and track them in the registry."""

    def __init__(
        self,
        *,
        pipeline: Pipeline,
        registry: TaskRegistry,
        pool: WorkerPool,
        content_store: ContentStore | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.registry = registry
        self.pool = pool
        self.content_store = content_store

    def start_generation(
        self,
        request: TopicRequest,
        caller: CallerIdentity | None = None,
    ) -> str:
        """Register a PENDING task, hand the run to the pool, and return its id at once.

        The identity is resolved here, on the submitting thread, because pool
        threads do not see the submitter's context variables.
        """
        task_id = self.registry.create(request)
        identity = caller if caller is not None else current_caller()
        logger.info(
            "task_run event=submitted task_id=%s topic=%s user=%s",
            task_id,
            request.topic,
            identity.email if identity else None,
        )
        try:
            self.pool.submit(self._execute_generation, task_id, request, identity)
        except RuntimeError as exc:
            # Pool already shut down; never leave the record PENDING.
            logger.error("task_run event=rejected task_id=%s reason=%s", task_id, exc)
            self.registry.fail_with_error(task_id, f"Task could not be scheduled: {exc}")
            raise
        return task_id

    def generate_now(self, request: TopicRequest, caller: CallerIdentity) -> OrchestrationResult:
        """Run the pipeline on the calling thread and persist; persistence errors propagate."""
        logger.info(
            "task_run event=sync_start topic=%s platform=%s user=%s",
            request.topic,
            request.platform,
            caller.email,
        )
        with use_caller(caller):
            result = self.pipeline.run(request)
            if self.content_store is None:
                return result
            content_id = self.content_store.save_generated_content(caller.email, request, result)
        logger.info("task_run event=sync_completed content_id=%d", content_id)
        return result.with_id(content_id)

    def get_task(self, task_id: str) -> GenerationTask | None:
        return self.registry.get(task_id)

    def get_task_status(self, task_id: str) -> TaskStatus | None:
        return self.registry.status_of(task_id)

    def get_task_result(self, task_id: str) -> OrchestrationResult | None:
        return self.registry.result_of(task_id)

    def get_content(self, content_id: int, caller: CallerIdentity) -> GeneratedContentRecord | None:
        """Stored content owned by ``caller``; other users' records read as missing."""
        if self.content_store is None:
            return None
        return self.content_store.get_content(content_id, caller.email)

    def active_task_count(self) -> int:
        return self.registry.active_count()

    def total_task_count(self) -> int:
        return self.registry.total_count()

    def cleanup_old_tasks(self, max_age: timedelta = timedelta(hours=1)) -> int:
        return self.registry.evict_older_than(max_age)

    def _execute_generation(
        self,
        task_id: str,
        request: TopicRequest,
        caller: CallerIdentity | None,
    ) -> None:
        with use_caller(caller):
            try:
                if self.registry.get(task_id) is None:
                    logger.error("task_run event=missing task_id=%s", task_id)
                    return

                self.registry.transition_to_in_progress(task_id)
                logger.info(
                    "task_run event=start task_id=%s user=%s",
                    task_id,
                    caller.email if caller else None,
                )

                result = self.pipeline.run(request)
                if caller is not None:
                    result = self._persist(task_id, caller, request, result)

                self.registry.complete_with_result(task_id, result)
                logger.info("task_run event=completed task_id=%s", task_id)
            except Exception as exc:  # noqa: BLE001
                logger.exception("task_run event=failed task_id=%s", task_id)
                self.registry.fail_with_error(task_id, str(exc) or exc.__class__.__name__)

    def _persist(
        self,
        task_id: str,
        caller: CallerIdentity,
        request: TopicRequest,
        result: OrchestrationResult,
    ) -> OrchestrationResult:
        if self.content_store is None:
            logger.debug("task_run event=persist_skipped task_id=%s reason=no_store", task_id)
            return result
        try:
            content_id = self.content_store.save_generated_content(caller.email, request, result)
        except Exception:  # noqa: BLE001
            logger.exception(
                "task_run event=persist_failed task_id=%s; completing without content id",
                task_id,
            )
            return result
        logger.info("task_run event=persisted task_id=%s content_id=%d", task_id, content_id)
        return result.with_id(content_id)
