"""Task registry, dispatch and cleanup."""

from content_orchestrator.tasks.cleanup import TaskCleanupScheduler
from content_orchestrator.tasks.dispatch import AsyncGenerationService, Pipeline
from content_orchestrator.tasks.pool import WorkerPool
from content_orchestrator.tasks.registry import TaskRegistry

__all__ = [
    "AsyncGenerationService",
    "Pipeline",
    "TaskCleanupScheduler",
    "TaskRegistry",
    "WorkerPool",
]
