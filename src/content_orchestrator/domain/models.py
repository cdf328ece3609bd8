"""Pydantic records shared by stage agents, the pipeline, the task registry and the API.

All records serialize with camelCase aliases (``imageCount``, ``openAiImageUrls``,
``createdAt``) and accept either the alias or the Python attribute name on input.
Records are frozen: a task transition or an id attachment always yields a new
instance, so a snapshot handed to a reader never changes underneath it.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer
from pydantic.alias_generators import to_camel

Platform = Literal["twitter", "linkedin", "instagram", "blog"]
Tone = Literal["professional", "casual", "playful", "authoritative"]

# Task lifecycle states used by the registry + API responses.
TaskStatus = Literal["PENDING", "IN_PROGRESS", "COMPLETED", "FAILED"]
TERMINAL_STATUSES: frozenset[str] = frozenset({"COMPLETED", "FAILED"})


def utc_now() -> datetime:
    return datetime.now(tz=UTC)


class Record(BaseModel):
    """Base for immutable camelCase records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class TopicRequest(Record):
    """Validated generation request."""

    topic: str = Field(min_length=1, max_length=200)
    platform: Platform
    tone: Tone
    image_count: int = Field(default=1, gt=0)

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Topic is required")
        return value

    @field_validator("image_count", mode="before")
    @classmethod
    def _default_image_count(cls, value: Any) -> Any:
        # Explicit null behaves like an omitted count.
        return 1 if value is None else value


class ResearchPoints(Record):
    points: list[str] = Field(default_factory=list)
    sources: list[str] = Field(default_factory=list)

    @field_validator("points", "sources", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls) -> ResearchPoints:
        return cls(points=[], sources=[])


class ContentDraft(Record):
    platform: str = ""
    tone: str = ""
    headline: str = ""
    body: str = ""
    cta: str = ""

    @field_validator("platform", "tone", "headline", "body", "cta", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def empty(cls) -> ContentDraft:
        return cls()


class ImageBrief(Record):
    prompt: str = ""


class ImageResult(Record):
    prompt: str = ""
    open_ai_image_urls: list[str] = Field(default_factory=list)
    local_image_paths: list[str] = Field(default_factory=list)
    local_image_urls: list[str] = Field(default_factory=list)

    @field_validator(
        "open_ai_image_urls", "local_image_paths", "local_image_urls", mode="before"
    )
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @classmethod
    def empty(cls) -> ImageResult:
        return cls()


class OrchestrationResult(Record):
    """Output of one pipeline run, optionally tagged with the persisted content id."""

    topic: str
    research: ResearchPoints = Field(default_factory=ResearchPoints.empty)
    content: ContentDraft = Field(default_factory=ContentDraft.empty)
    image: ImageResult = Field(default_factory=ImageResult.empty)
    id: int | None = None

    @classmethod
    def empty(cls, topic: str) -> OrchestrationResult:
        return cls(
            topic=topic,
            research=ResearchPoints.empty(),
            content=ContentDraft.empty(),
            image=ImageResult.empty(),
        )

    def with_id(self, content_id: int) -> OrchestrationResult:
        return self.model_copy(update={"id": content_id})

    @model_serializer(mode="wrap")
    def _omit_missing_id(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        if data.get("id") is None:
            data.pop("id", None)
        return data


class GenerationTask(Record):
    """Snapshot of one tracked generation; every transition returns a new snapshot."""

    id: str
    request: TopicRequest
    status: TaskStatus = "PENDING"
    result: OrchestrationResult | None = None
    error: str | None = None
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def pending(
        cls, task_id: str, request: TopicRequest, *, now: datetime | None = None
    ) -> GenerationTask:
        created = now or utc_now()
        return cls(id=task_id, request=request, created_at=created, updated_at=created)

    def with_status(self, status: TaskStatus, *, now: datetime | None = None) -> GenerationTask:
        return self.model_copy(update={"status": status, "updated_at": now or utc_now()})

    def with_result(
        self, result: OrchestrationResult, *, now: datetime | None = None
    ) -> GenerationTask:
        finished = now or utc_now()
        return self.model_copy(
            update={
                "status": "COMPLETED",
                "result": result,
                "updated_at": finished,
                "completed_at": finished,
            }
        )

    def with_error(self, error: str, *, now: datetime | None = None) -> GenerationTask:
        finished = now or utc_now()
        return self.model_copy(
            update={
                "status": "FAILED",
                "error": error,
                "updated_at": finished,
                "completed_at": finished,
            }
        )

    @property
    def is_completed(self) -> bool:
        return self.status in TERMINAL_STATUSES


class AsyncGenerationResponse(Record):
    """Body returned by POST /generate/async."""

    task_id: str
    status: TaskStatus = "PENDING"
    status_url: str
    result_url: str

    @classmethod
    def for_task(cls, task_id: str, *, prefix: str = "/api/v1") -> AsyncGenerationResponse:
        base = f"{prefix.rstrip('/')}/generate"
        return cls(
            task_id=task_id,
            status="PENDING",
            status_url=f"{base}/status/{task_id}",
            result_url=f"{base}/result/{task_id}",
        )


class HealthResponse(Record):
    status: str
    timestamp: int
    active_tasks: int
    total_tasks: int
