"""Shared stage-agent plumbing: tagged outcomes, timing and JSON extraction."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, Literal, TypeVar

T = TypeVar("T")

StageStatus = Literal["ok", "fallback"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageOutcome(Generic[T]):
    """Stage result tagged with whether it is real output or a fallback stand-in."""

    value: T
    status: StageStatus = "ok"
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def degraded(self) -> bool:
        return self.status == "fallback"


def run_stage(stage: str, action: Callable[[], T], fallback: Callable[[], T]) -> StageOutcome[T]:
    """Run ``action``; any exception is logged and replaced by ``fallback()``."""
    started_at = time.perf_counter()
    try:
        value = action()
    except Exception as exc:  # noqa: BLE001
        logger.exception("stage_run event=fallback stage=%s reason=%s", stage, exc)
        return StageOutcome(
            value=fallback(),
            status="fallback",
            error=str(exc) or exc.__class__.__name__,
            duration_ms=_duration_ms(started_at),
        )
    return StageOutcome(value=value, duration_ms=_duration_ms(started_at))


def extract_json_object(response: str) -> str:
    """Slice the outermost ``{...}`` out of a model reply that may wrap it in prose or fences."""
    start = response.find("{")
    end = response.rfind("}")
    if start != -1 and end > start:
        return response[start : end + 1]
    return response.strip()


def _duration_ms(started_at: float) -> float:
    return round((time.perf_counter() - started_at) * 1000.0, 2)
