from __future__ import annotations

from collections.abc import Callable

import pytest
from fakes import FakeChatModel, FakeImageGenerator, FakeWebSearch

from content_orchestrator.agents import ContentAgent, ImageAgent, ResearchAgent
from content_orchestrator.graph.workflow import ContentPipeline


@pytest.fixture
def chat_model() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def image_generator() -> FakeImageGenerator:
    return FakeImageGenerator()


@pytest.fixture
def make_pipeline() -> Callable[..., ContentPipeline]:
    def _make(
        chat_model: FakeChatModel | None = None,
        image_generator: FakeImageGenerator | None = None,
        search: FakeWebSearch | None = None,
    ) -> ContentPipeline:
        model = chat_model or FakeChatModel()
        return ContentPipeline(
            research_agent=ResearchAgent(model, search),
            content_agent=ContentAgent(model),
            image_agent=ImageAgent(model, image_generator or FakeImageGenerator()),
        )

    return _make
