"""Content node: draft platform copy from whatever research is in state."""

from __future__ import annotations

import logging

from content_orchestrator.agents.content import ContentAgent
from content_orchestrator.graph.state import (
    PipelineState,
    failed_stage_telemetry,
    stage_telemetry,
)

logger = logging.getLogger(__name__)


def run(state: PipelineState, *, agent: ContentAgent) -> PipelineState:
    logger.debug("Executing content node")
    try:
        outcome = agent.create_content(state["research"], state["platform"], state["tone"])
    except Exception as exc:  # noqa: BLE001
        logger.exception("Content node failed")
        return {"telemetry": failed_stage_telemetry(state, "content", exc)}

    telemetry = dict(state.get("telemetry", {}))
    telemetry["content"] = stage_telemetry(outcome)
    logger.debug("Content node completed platform=%s", outcome.value.platform)
    return {"content": outcome.value, "telemetry": telemetry}
