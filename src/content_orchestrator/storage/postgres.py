"""PostgreSQL-backed content store with automatic table migration."""

from __future__ import annotations

import json
import logging
import threading
from datetime import UTC, datetime
from typing import Any

from content_orchestrator.domain.models import OrchestrationResult, TopicRequest
from content_orchestrator.storage.base import UserNotFoundError
from content_orchestrator.storage.models import GeneratedContentRecord

logger = logging.getLogger(__name__)

_JSON_LIST_COLUMNS = (
    "research_points",
    "research_sources",
    "image_openai_urls",
    "image_local_paths",
    "image_local_urls",
)


class PostgresContentStore:
    """Persist generated content rows owned by users in PostgreSQL."""

    def __init__(self, database_url: str) -> None:
        if not database_url:
            raise ValueError("CONTENT_ORCHESTRATOR_DATABASE_URL is required")
        self.database_url = database_url
        self._lock = threading.Lock()
        self._psycopg, self._dict_row, self._json_wrapper = self._load_psycopg()

    def migrate(self) -> None:
        with self._lock, self._connect() as conn:
            # The users table belongs to the auth service; only the columns read here are ensured.
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id BIGSERIAL PRIMARY KEY,
                    email TEXT NOT NULL UNIQUE
                )
                """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS generated_content (
                    id BIGSERIAL PRIMARY KEY,
                    user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    topic VARCHAR(200) NOT NULL,
                    platform VARCHAR(50) NOT NULL,
                    tone VARCHAR(50) NOT NULL,
                    image_count INTEGER DEFAULT 1,
                    research_points JSONB,
                    research_sources JSONB,
                    content_headline VARCHAR(500),
                    content_body TEXT,
                    content_cta VARCHAR(500),
                    image_prompt TEXT,
                    image_openai_urls JSONB,
                    image_local_paths JSONB,
                    image_local_urls JSONB,
                    created_at TIMESTAMPTZ NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL
                )
                """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_generated_content_user_created
                ON generated_content(user_id, created_at DESC)
                """)
            conn.commit()

    def save_generated_content(
        self,
        user_email: str,
        request: TopicRequest,
        result: OrchestrationResult,
    ) -> int:
        now = datetime.now(tz=UTC)
        with self._lock, self._connect() as conn:
            user_row = conn.execute(
                "SELECT id FROM users WHERE email = %s",
                (user_email,),
            ).fetchone()
            if user_row is None:
                raise UserNotFoundError(user_email)

            row = conn.execute(
                """
                INSERT INTO generated_content (
                    user_id,
                    topic,
                    platform,
                    tone,
                    image_count,
                    research_points,
                    research_sources,
                    content_headline,
                    content_body,
                    content_cta,
                    image_prompt,
                    image_openai_urls,
                    image_local_paths,
                    image_local_urls,
                    created_at,
                    updated_at
                ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    user_row["id"],
                    request.topic,
                    request.platform,
                    request.tone,
                    request.image_count,
                    self._json_wrapper(list(result.research.points)),
                    self._json_wrapper(list(result.research.sources)),
                    result.content.headline,
                    result.content.body,
                    result.content.cta,
                    result.image.prompt,
                    self._json_wrapper(list(result.image.open_ai_image_urls)),
                    self._json_wrapper(list(result.image.local_image_paths)),
                    self._json_wrapper(list(result.image.local_image_urls)),
                    now,
                    now,
                ),
            ).fetchone()
            conn.commit()

        if row is None or row.get("id") is None:
            raise RuntimeError("Failed to persist generated content")
        content_id = int(row["id"])
        logger.info("Saved generated content id=%d user=%s", content_id, user_email)
        return content_id

    def get_content(self, content_id: int, user_email: str) -> GeneratedContentRecord | None:
        with self._lock, self._connect() as conn:
            row = conn.execute(
                """
                SELECT gc.*, u.email AS user_email
                FROM generated_content gc
                JOIN users u ON u.id = gc.user_id
                WHERE gc.id = %s AND u.email = %s
                """,
                (content_id, user_email),
            ).fetchone()
        if row is None:
            return None
        return self._row_to_record(row)

    def _connect(self) -> Any:
        return self._psycopg.connect(self.database_url, row_factory=self._dict_row)

    @staticmethod
    def _load_psycopg() -> tuple[Any, Any, Any]:
        try:
            import psycopg
            from psycopg.rows import dict_row
            from psycopg.types.json import Json
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "PostgreSQL storage requires psycopg. "
                'Install with: python -m pip install "psycopg[binary]>=3.2,<4.0"'
            ) from exc
        return psycopg, dict_row, Json

    @staticmethod
    def _parse_json_list(raw: Any) -> list[str]:
        if raw is None:
            return []
        parsed = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(parsed, list):
            return []
        return [str(item) for item in parsed]

    @staticmethod
    def _parse_datetime(raw: Any) -> datetime:
        if isinstance(raw, datetime):
            return raw
        if isinstance(raw, str):
            return datetime.fromisoformat(raw)
        raise TypeError(f"Unsupported datetime value: {type(raw)!r}")

    @classmethod
    def _row_to_record(cls, row: Any) -> GeneratedContentRecord:
        payload = {column: cls._parse_json_list(row.get(column)) for column in _JSON_LIST_COLUMNS}
        return GeneratedContentRecord(
            id=int(row["id"]),
            user_email=row["user_email"],
            topic=row["topic"],
            platform=row["platform"],
            tone=row["tone"],
            image_count=int(row.get("image_count") or 1),
            content_headline=row.get("content_headline") or "",
            content_body=row.get("content_body") or "",
            content_cta=row.get("content_cta") or "",
            image_prompt=row.get("image_prompt") or "",
            created_at=cls._parse_datetime(row["created_at"]),
            updated_at=cls._parse_datetime(row["updated_at"]),
            **payload,
        )
