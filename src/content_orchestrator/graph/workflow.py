"""LangGraph assembly of the research -> content -> image pipeline."""

from __future__ import annotations

import logging
import time

from langgraph.graph import END, StateGraph

from content_orchestrator.agents import ContentAgent, ImageAgent, ResearchAgent
from content_orchestrator.domain.models import OrchestrationResult, TopicRequest
from content_orchestrator.graph.nodes import content, image, research
from content_orchestrator.graph.state import PipelineState, initial_state, to_result

logger = logging.getLogger(__name__)


def build_graph(
    *,
    research_agent: ResearchAgent,
    content_agent: ContentAgent,
    image_agent: ImageAgent,
):
    graph = StateGraph(PipelineState)

    graph.add_node("research", lambda state: research.run(state, agent=research_agent))
    graph.add_node("content", lambda state: content.run(state, agent=content_agent))
    graph.add_node("image", lambda state: image.run(state, agent=image_agent))

    graph.set_entry_point("research")
    graph.add_edge("research", "content")
    graph.add_edge("content", "image")
    graph.add_edge("image", END)

    return graph.compile()


class ContentPipeline:
    """Run one request through all three stages and always return a result.

    Stage failures are absorbed inside the nodes; anything escaping the graph
    itself degrades to ``OrchestrationResult.empty(topic)``. The compiled graph
    is stateless between invocations, so one pipeline serves every worker.
    """

    def __init__(
        self,
        *,
        research_agent: ResearchAgent,
        content_agent: ContentAgent,
        image_agent: ImageAgent,
    ) -> None:
        self.workflow = build_graph(
            research_agent=research_agent,
            content_agent=content_agent,
            image_agent=image_agent,
        )

    def run(self, request: TopicRequest) -> OrchestrationResult:
        started_at = time.perf_counter()
        logger.info(
            "pipeline_run event=start topic=%s platform=%s tone=%s",
            request.topic,
            request.platform,
            request.tone,
        )
        try:
            final_state = self.workflow.invoke(initial_state(request))
            result = to_result(final_state)
        except Exception:  # noqa: BLE001
            logger.exception("pipeline_run event=failed topic=%s", request.topic)
            return OrchestrationResult.empty(request.topic)

        logger.info(
            "pipeline_run event=completed topic=%s duration_ms=%.2f stages=%s",
            request.topic,
            (time.perf_counter() - started_at) * 1000.0,
            final_state.get("telemetry", {}),
        )
        return result
