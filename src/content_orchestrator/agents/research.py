"""Research stage: 5-7 factual points about a topic, optionally grounded in web search."""

from __future__ import annotations

import logging

from content_orchestrator.agents import prompts
from content_orchestrator.agents.base import StageOutcome, extract_json_object, run_stage
from content_orchestrator.domain.models import ResearchPoints
from content_orchestrator.tools.llm import ChatModel
from content_orchestrator.tools.search import WebSearch

logger = logging.getLogger(__name__)

MAX_SOURCES = 5
MAX_QUERIES = 3
MAX_WORDS_PER_POINT = 25


class ResearchAgent:
    def __init__(self, chat_model: ChatModel, search: WebSearch | None = None) -> None:
        self.chat_model = chat_model
        self.search = search

    def research(self, topic: str) -> StageOutcome[ResearchPoints]:
        def _research() -> ResearchPoints:
            if self.search is not None and self.search.is_enabled():
                return self._research_with_web_search(topic)
            return self._research_without_web_search(topic)

        return run_stage("research", _research, lambda: fallback_research(topic))

    def _research_without_web_search(self, topic: str) -> ResearchPoints:
        logger.debug("Researching topic=%s web_search=False", topic)
        response = self.chat_model.generate(
            system_prompt=prompts.RESEARCH_SYSTEM_MESSAGE,
            user_prompt=prompts.research_user_prompt(topic),
        )
        result = ResearchPoints.model_validate_json(extract_json_object(response))
        _warn_on_constraints(result)
        return result

    def _research_with_web_search(self, topic: str) -> ResearchPoints:
        logger.debug("Researching topic=%s web_search=True", topic)
        queries = self._search_queries(topic)
        responses = self.search.search_multiple(queries)

        summaries: list[str] = []
        web_sources: list[str] = []
        for response in responses:
            summaries.append(response.to_summary_text())
            web_sources.extend(response.extract_sources())

        reply = self.chat_model.generate(
            system_prompt=prompts.RESEARCH_SYSTEM_MESSAGE_WITH_WEB_SEARCH,
            user_prompt=prompts.research_user_prompt_with_search(topic, "\n\n".join(summaries)),
        )
        parsed = ResearchPoints.model_validate_json(extract_json_object(reply))

        sources = list(parsed.sources)
        for source in web_sources:
            if source not in sources:
                sources.append(source)
        result = ResearchPoints(points=parsed.points, sources=sources[:MAX_SOURCES])
        _warn_on_constraints(result)
        return result

    def _search_queries(self, topic: str) -> list[str]:
        try:
            reply = self.chat_model.generate(
                system_prompt="You write web search queries.",
                user_prompt=prompts.query_generation_prompt(topic),
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Search query generation failed reason=%s", exc)
            reply = ""
        queries = [line.strip() for line in reply.splitlines() if line.strip()][:MAX_QUERIES]
        if not queries:
            queries = [topic, f"{topic} latest news", f"{topic} facts statistics"]
        logger.debug("Generated %d search queries topic=%s", len(queries), topic)
        return queries


def fallback_research(topic: str) -> ResearchPoints:
    return ResearchPoints(
        points=[f"Unable to complete research for the topic: {topic}"],
        sources=[],
    )


def _warn_on_constraints(result: ResearchPoints) -> None:
    if not 5 <= len(result.points) <= 7:
        logger.warning("Research points count %d is outside expected range 5-7", len(result.points))
    for point in result.points:
        if len(point.split()) > MAX_WORDS_PER_POINT:
            logger.warning("Research point exceeds %d words: %s", MAX_WORDS_PER_POINT, point)
