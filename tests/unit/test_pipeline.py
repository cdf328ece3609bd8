from fakes import RESEARCH_POINTS, FakeChatModel, FakeImageGenerator, FakeWebSearch

from content_orchestrator.agents.base import StageOutcome
from content_orchestrator.domain.models import ContentDraft, ResearchPoints, TopicRequest
from content_orchestrator.graph.workflow import ContentPipeline


class ExplodingResearchAgent:
    def research(self, topic: str) -> StageOutcome[ResearchPoints]:
        raise RuntimeError("research agent crashed")


class ExplodingContentAgent:
    def create_content(self, research, platform, tone) -> StageOutcome[ContentDraft]:
        raise RuntimeError("content agent crashed")


class ExplodingImageAgent:
    def generate_image(self, content, image_count, topic):
        raise RuntimeError("image agent crashed")


def test_all_stages_succeed(make_pipeline) -> None:
    images = FakeImageGenerator()
    pipeline = make_pipeline(image_generator=images)

    result = pipeline.run(TopicRequest(topic="AI", platform="twitter", tone="casual"))

    assert result.topic == "AI"
    assert 5 <= len(result.research.points) <= 7
    assert result.research.points == RESEARCH_POINTS
    assert result.content.platform == "twitter"
    assert result.content.tone == "casual"
    assert result.content.headline == "AI is already at work"
    assert result.image.prompt == "A friendly robot sketching ideas on a whiteboard"
    assert result.image.open_ai_image_urls == ["https://images.example/ai/0.png"]
    assert images.calls == [("A friendly robot sketching ideas on a whiteboard", 1, "AI")]
    assert result.id is None


def test_content_failure_falls_back_and_image_still_runs(make_pipeline) -> None:
    images = FakeImageGenerator()
    pipeline = make_pipeline(
        chat_model=FakeChatModel(fail_stages={"content"}),
        image_generator=images,
    )

    result = pipeline.run(TopicRequest(topic="AI", platform="linkedin", tone="professional"))

    assert result.research.points == RESEARCH_POINTS
    assert result.content.headline == "Content Creation Error"
    assert result.content.body == "Unable to generate content based on the research provided."
    assert result.content.cta == "Please try again."
    assert result.content.platform == "linkedin"
    assert result.content.tone == "professional"
    assert len(images.calls) == 1
    assert result.image.open_ai_image_urls


def test_every_model_call_failing_still_yields_fallbacks(make_pipeline) -> None:
    pipeline = make_pipeline(
        chat_model=FakeChatModel(fail_stages={"research", "content", "image"}),
        image_generator=FakeImageGenerator(fail=True),
    )

    result = pipeline.run(TopicRequest(topic="Mars", platform="blog", tone="playful"))

    assert result.research.points == ["Unable to complete research for the topic: Mars"]
    assert result.research.sources == []
    assert result.content.headline == "Content Creation Error"
    assert result.image.prompt == "Image generation failed for content: Content Creation Error"
    assert result.image.open_ai_image_urls == []


def test_raising_agents_leave_empty_slots() -> None:
    pipeline = ContentPipeline(
        research_agent=ExplodingResearchAgent(),
        content_agent=ExplodingContentAgent(),
        image_agent=ExplodingImageAgent(),
    )

    result = pipeline.run(TopicRequest(topic="AI", platform="instagram", tone="casual"))

    assert result.topic == "AI"
    assert result.research == ResearchPoints.empty()
    assert result.content == ContentDraft.empty()
    assert result.image.open_ai_image_urls == []


def test_raising_content_agent_does_not_stop_later_stages(image_generator) -> None:
    from content_orchestrator.agents import ImageAgent, ResearchAgent

    model = FakeChatModel()
    pipeline = ContentPipeline(
        research_agent=ResearchAgent(model),
        content_agent=ExplodingContentAgent(),
        image_agent=ImageAgent(model, image_generator),
    )

    result = pipeline.run(TopicRequest(topic="AI", platform="twitter", tone="casual"))

    assert result.research.points == RESEARCH_POINTS
    assert result.content == ContentDraft.empty()
    assert len(image_generator.calls) == 1


def test_systemic_failure_returns_empty_result(make_pipeline) -> None:
    pipeline = make_pipeline()

    class BrokenWorkflow:
        def invoke(self, state):
            raise RuntimeError("graph compilation drifted")

    pipeline.workflow = BrokenWorkflow()
    result = pipeline.run(TopicRequest(topic="AI", platform="twitter", tone="casual"))

    assert result.topic == "AI"
    assert result.research.points == []
    assert result.content.headline == ""


def test_web_search_sources_are_merged(make_pipeline) -> None:
    search = FakeWebSearch()
    pipeline = make_pipeline(search=search)

    result = pipeline.run(TopicRequest(topic="AI", platform="twitter", tone="casual"))

    assert search.queries == ["AI adoption 2024", "AI regulation news", "AI statistics"]
    assert result.research.sources[0] == "https://example.com/ai"
    assert "https://news.example/0" in result.research.sources
    assert len(result.research.sources) <= 5
