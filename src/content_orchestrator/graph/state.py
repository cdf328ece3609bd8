"""Typed state contract for the content pipeline graph."""

from typing import Any, TypedDict

from content_orchestrator.agents.base import StageOutcome
from content_orchestrator.domain.models import (
    ContentDraft,
    ImageResult,
    OrchestrationResult,
    ResearchPoints,
    TopicRequest,
)


class PipelineState(TypedDict, total=False):
    topic: str
    platform: str
    tone: str
    image_count: int
    research: ResearchPoints
    content: ContentDraft
    image: ImageResult
    telemetry: dict[str, Any]


def initial_state(request: TopicRequest) -> PipelineState:
    return {
        "topic": request.topic,
        "platform": request.platform,
        "tone": request.tone,
        "image_count": request.image_count,
        "research": ResearchPoints.empty(),
        "content": ContentDraft.empty(),
        "image": ImageResult.empty(),
        "telemetry": {},
    }


def to_result(state: PipelineState) -> OrchestrationResult:
    return OrchestrationResult(
        topic=state["topic"],
        research=state.get("research") or ResearchPoints.empty(),
        content=state.get("content") or ContentDraft.empty(),
        image=state.get("image") or ImageResult.empty(),
    )


def stage_telemetry(outcome: StageOutcome[Any]) -> dict[str, Any]:
    payload: dict[str, Any] = {"status": outcome.status, "duration_ms": outcome.duration_ms}
    if outcome.error:
        payload["error"] = outcome.error
    return payload


def failed_stage_telemetry(state: PipelineState, stage: str, exc: Exception) -> dict[str, Any]:
    telemetry = dict(state.get("telemetry", {}))
    telemetry[stage] = {"status": "error", "error": str(exc) or exc.__class__.__name__}
    return telemetry
