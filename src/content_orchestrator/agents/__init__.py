"""Stage agents for the research -> content -> image pipeline."""

from content_orchestrator.agents.base import StageOutcome
from content_orchestrator.agents.content import ContentAgent
from content_orchestrator.agents.image import ImageAgent
from content_orchestrator.agents.research import ResearchAgent

__all__ = [
    "ContentAgent",
    "ImageAgent",
    "ResearchAgent",
    "StageOutcome",
]
