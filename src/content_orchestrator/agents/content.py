"""Content stage: turn research points into a platform-specific draft."""

from __future__ import annotations

import logging

from content_orchestrator.agents import prompts
from content_orchestrator.agents.base import StageOutcome, extract_json_object, run_stage
from content_orchestrator.domain.models import ContentDraft, ResearchPoints
from content_orchestrator.tools.llm import ChatModel

logger = logging.getLogger(__name__)


class ContentAgent:
    def __init__(self, chat_model: ChatModel) -> None:
        self.chat_model = chat_model

    def create_content(
        self, research: ResearchPoints, platform: str, tone: str
    ) -> StageOutcome[ContentDraft]:
        def _create() -> ContentDraft:
            logger.debug("Creating content platform=%s tone=%s", platform, tone)
            response = self.chat_model.generate(
                system_prompt=prompts.CONTENT_SYSTEM_MESSAGE,
                user_prompt=prompts.content_user_prompt(research, platform, tone),
            )
            draft = ContentDraft.model_validate_json(extract_json_object(response))
            warn_on_platform_constraints(draft, platform)
            return draft

        return run_stage("content", _create, lambda: fallback_content(platform, tone))


def fallback_content(platform: str, tone: str) -> ContentDraft:
    return ContentDraft(
        platform=platform,
        tone=tone,
        headline="Content Creation Error",
        body="Unable to generate content based on the research provided.",
        cta="Please try again.",
    )


def warn_on_platform_constraints(draft: ContentDraft, platform: str) -> list[str]:
    """Log (and return) soft platform-rule violations; the draft is kept either way."""
    warnings: list[str] = []
    match platform.lower():
        case "twitter":
            total = len(f"{draft.headline} {draft.body} {draft.cta}")
            if total > 280:
                warnings.append(f"Twitter content exceeds 280 characters: {total} chars")
        case "blog":
            words = len(draft.body.split())
            if not 300 <= words <= 500:
                warnings.append(f"Blog content word count {words} is outside expected range 300-500")
        case "linkedin":
            paragraphs = len(draft.body.split("\n\n"))
            if not 3 <= paragraphs <= 5:
                warnings.append(f"LinkedIn content has {paragraphs} paragraphs, expected 3-5")
        case "instagram":
            if "\n" not in draft.body:
                warnings.append("Instagram content should contain line breaks")
    for message in warnings:
        logger.warning(message)
    return warnings
