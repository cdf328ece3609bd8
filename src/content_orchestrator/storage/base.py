"""Persistence interface for finished generations."""

from __future__ import annotations

from typing import Protocol

from content_orchestrator.domain.models import OrchestrationResult, TopicRequest
from content_orchestrator.storage.models import GeneratedContentRecord


class UserNotFoundError(LookupError):
    """Raised when content is saved for an email the store does not know."""

    def __init__(self, email: str) -> None:
        super().__init__(f"User not found: {email}")
        self.email = email


class ContentStore(Protocol):
    def migrate(self) -> None: ...

    def save_generated_content(
        self,
        user_email: str,
        request: TopicRequest,
        result: OrchestrationResult,
    ) -> int: ...

    def get_content(self, content_id: int, user_email: str) -> GeneratedContentRecord | None: ...
