"""Research node: gather points for the topic."""

from __future__ import annotations

import logging

from content_orchestrator.agents.research import ResearchAgent
from content_orchestrator.graph.state import (
    PipelineState,
    failed_stage_telemetry,
    stage_telemetry,
)

logger = logging.getLogger(__name__)


def run(state: PipelineState, *, agent: ResearchAgent) -> PipelineState:
    logger.debug("Executing research node")
    try:
        outcome = agent.research(state["topic"])
    except Exception as exc:  # noqa: BLE001
        # Slot keeps its empty value; later stages still run.
        logger.exception("Research node failed")
        return {"telemetry": failed_stage_telemetry(state, "research", exc)}

    telemetry = dict(state.get("telemetry", {}))
    telemetry["research"] = stage_telemetry(outcome)
    logger.debug("Research node completed points=%d", len(outcome.value.points))
    return {"research": outcome.value, "telemetry": telemetry}
