"""Content persistence backends and models."""

from content_orchestrator.storage.base import ContentStore, UserNotFoundError
from content_orchestrator.storage.memory import InMemoryContentStore
from content_orchestrator.storage.models import GeneratedContentRecord
from content_orchestrator.storage.postgres import PostgresContentStore

__all__ = [
    "ContentStore",
    "GeneratedContentRecord",
    "InMemoryContentStore",
    "PostgresContentStore",
    "UserNotFoundError",
]
