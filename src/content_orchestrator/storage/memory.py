"""In-memory content store for tests and local runs."""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterable
from datetime import UTC, datetime

from content_orchestrator.domain.models import OrchestrationResult, TopicRequest
from content_orchestrator.storage.base import UserNotFoundError
from content_orchestrator.storage.models import GeneratedContentRecord

logger = logging.getLogger(__name__)


class InMemoryContentStore:
    """Dict-backed store. ``users=None`` accepts any caller email."""

    def __init__(self, users: Iterable[str] | None = None) -> None:
        self._users = set(users) if users is not None else None
        self._records: dict[int, GeneratedContentRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def migrate(self) -> None:
        return None

    def save_generated_content(
        self,
        user_email: str,
        request: TopicRequest,
        result: OrchestrationResult,
    ) -> int:
        with self._lock:
            if self._users is not None and user_email not in self._users:
                raise UserNotFoundError(user_email)
            content_id = next(self._ids)
            self._records[content_id] = GeneratedContentRecord.from_result(
                content_id=content_id,
                user_email=user_email,
                request=request,
                result=result,
                now=datetime.now(UTC),
            )
        logger.info("Saved generated content id=%d user=%s", content_id, user_email)
        return content_id

    def get_content(self, content_id: int, user_email: str) -> GeneratedContentRecord | None:
        with self._lock:
            record = self._records.get(content_id)
        if record is None or record.user_email != user_email:
            return None
        return record
