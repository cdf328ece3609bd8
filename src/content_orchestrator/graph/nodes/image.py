"""Image node: render images for the current draft."""

from __future__ import annotations

import logging

from content_orchestrator.agents.image import ImageAgent
from content_orchestrator.graph.state import (
    PipelineState,
    failed_stage_telemetry,
    stage_telemetry,
)

logger = logging.getLogger(__name__)


def run(state: PipelineState, *, agent: ImageAgent) -> PipelineState:
    logger.debug("Executing image node")
    try:
        outcome = agent.generate_image(state["content"], state["image_count"], state["topic"])
    except Exception as exc:  # noqa: BLE001
        logger.exception("Image node failed")
        return {"telemetry": failed_stage_telemetry(state, "image", exc)}

    telemetry = dict(state.get("telemetry", {}))
    telemetry["image"] = stage_telemetry(outcome)
    image = outcome.value
    logger.debug(
        "Image node completed urls=%d local_files=%d",
        len(image.open_ai_image_urls),
        len(image.local_image_paths),
    )
    return {"image": image, "telemetry": telemetry}
