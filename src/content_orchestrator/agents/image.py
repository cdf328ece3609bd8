"""Image stage: derive an image prompt from the draft, then render it."""

from __future__ import annotations

import logging

from content_orchestrator.agents import prompts
from content_orchestrator.agents.base import StageOutcome, extract_json_object, run_stage
from content_orchestrator.domain.models import ContentDraft, ImageBrief, ImageResult
from content_orchestrator.tools.images import ImageGenerator
from content_orchestrator.tools.llm import ChatModel

logger = logging.getLogger(__name__)


class ImageAgent:
    def __init__(self, chat_model: ChatModel, image_generator: ImageGenerator) -> None:
        self.chat_model = chat_model
        self.image_generator = image_generator

    def generate_image(
        self, content: ContentDraft, image_count: int, topic: str
    ) -> StageOutcome[ImageResult]:
        def _generate() -> ImageResult:
            brief = self.build_brief(content)
            logger.debug("Image brief prompt=%s count=%d", brief.prompt, image_count)
            result = self.image_generator.generate_image(brief.prompt, image_count, topic)
            logger.debug(
                "Image generation completed urls=%d local_files=%d",
                len(result.open_ai_image_urls),
                len(result.local_image_paths),
            )
            return result

        return run_stage("image", _generate, lambda: fallback_image(content))

    def build_brief(self, content: ContentDraft) -> ImageBrief:
        """Ask the model for an image prompt; never raises."""
        try:
            response = self.chat_model.generate(
                system_prompt=prompts.IMAGE_SYSTEM_MESSAGE,
                user_prompt=prompts.image_user_prompt(content),
            )
            brief = ImageBrief.model_validate_json(extract_json_object(response))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Image brief generation failed reason=%s", exc)
            return ImageBrief(prompt=f"Professional illustration for: {content.headline}")

        if not brief.prompt.strip():
            logger.warning("Generated image prompt is empty, using fallback")
            return ImageBrief(prompt=f"Abstract illustration related to: {content.headline}")
        return brief


def fallback_image(content: ContentDraft) -> ImageResult:
    return ImageResult(prompt=f"Image generation failed for content: {content.headline}")
