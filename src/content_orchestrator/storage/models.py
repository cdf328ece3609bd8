"""Storage models shared by persistence backends."""

from datetime import datetime

from pydantic import BaseModel, Field

from content_orchestrator.domain.models import OrchestrationResult, TopicRequest


class GeneratedContentRecord(BaseModel):
    """One persisted generation, flattened the way the ``generated_content`` table stores it."""

    id: int
    user_email: str
    topic: str
    platform: str
    tone: str
    image_count: int = 1
    research_points: list[str] = Field(default_factory=list)
    research_sources: list[str] = Field(default_factory=list)
    content_headline: str = ""
    content_body: str = ""
    content_cta: str = ""
    image_prompt: str = ""
    image_openai_urls: list[str] = Field(default_factory=list)
    image_local_paths: list[str] = Field(default_factory=list)
    image_local_urls: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_result(
        cls,
        *,
        content_id: int,
        user_email: str,
        request: TopicRequest,
        result: OrchestrationResult,
        now: datetime,
    ) -> "GeneratedContentRecord":
        return cls(
            id=content_id,
            user_email=user_email,
            topic=request.topic,
            platform=request.platform,
            tone=request.tone,
            image_count=request.image_count,
            research_points=list(result.research.points),
            research_sources=list(result.research.sources),
            content_headline=result.content.headline,
            content_body=result.content.body,
            content_cta=result.content.cta,
            image_prompt=result.image.prompt,
            image_openai_urls=list(result.image.open_ai_image_urls),
            image_local_paths=list(result.image.local_image_paths),
            image_local_urls=list(result.image.local_image_urls),
            created_at=now,
            updated_at=now,
        )
