import io
import json
import threading
import time

from fakes import FakeChatModel
from fastapi.testclient import TestClient

import content_orchestrator.tools.images as images_module
from content_orchestrator.agents import ContentAgent, ImageAgent, ResearchAgent
from content_orchestrator.api.main import create_app
from content_orchestrator.config.settings import Settings
from content_orchestrator.domain.models import OrchestrationResult, TopicRequest
from content_orchestrator.graph.workflow import ContentPipeline
from content_orchestrator.storage import InMemoryContentStore
from content_orchestrator.tasks import TaskRegistry, WorkerPool
from content_orchestrator.tools.images import ImageDownloader, OpenAIImageClient

REQUEST_BODY = {"topic": "AI", "platform": "twitter", "tone": "casual", "imageCount": 1}


class HeldPipeline:
    def __init__(self) -> None:
        self.release = threading.Event()

    def run(self, request: TopicRequest) -> OrchestrationResult:
        self.release.wait(timeout=5)
        return OrchestrationResult.empty(request.topic)


def _client(pipeline, *, registry=None, store=None) -> TestClient:
    app = create_app(
        settings_override=Settings(cleanup_enabled=False),
        pipeline=pipeline,
        content_store=store if store is not None else InMemoryContentStore(),
        registry=registry,
        pool=WorkerPool(max_workers=2, queue_capacity=4),
    )
    return TestClient(app)


def _poll_status(client: TestClient, status_url: str, timeout_s: float = 5.0) -> dict:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        payload = client.get(status_url).json()
        if payload["status"] in ("COMPLETED", "FAILED"):
            return payload
        time.sleep(0.01)
    raise AssertionError("task did not finish")


def test_async_generation_roundtrip(make_pipeline) -> None:
    client = _client(make_pipeline())

    create_resp = client.post("/api/v1/generate/async", json=REQUEST_BODY)
    assert create_resp.status_code == 202
    body = create_resp.json()
    assert body["status"] == "PENDING"
    task_id = body["taskId"]
    assert body["statusUrl"] == f"/api/v1/generate/status/{task_id}"
    assert body["resultUrl"] == f"/api/v1/generate/result/{task_id}"

    status = _poll_status(client, body["statusUrl"])
    assert status["status"] == "COMPLETED"
    assert status["request"]["imageCount"] == 1
    assert status["createdAt"]
    assert status["completedAt"]

    result_resp = client.get(body["resultUrl"])
    assert result_resp.status_code == 200
    result = result_resp.json()
    assert result["topic"] == "AI"
    assert 5 <= len(result["research"]["points"]) <= 7
    assert result["content"]["platform"] == "twitter"
    assert result["image"]["openAiImageUrls"] == ["https://images.example/ai/0.png"]
    assert "id" not in result


def test_result_before_completion_is_bad_request() -> None:
    pipeline = HeldPipeline()
    client = _client(pipeline)

    task_id = client.post("/api/v1/generate/async", json=REQUEST_BODY).json()["taskId"]
    try:
        response = client.get(f"/api/v1/generate/result/{task_id}")
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Task not completed yet. Status: ")
    finally:
        pipeline.release.set()


def test_unknown_task_is_not_found(make_pipeline) -> None:
    client = _client(make_pipeline())

    assert client.get("/api/v1/generate/status/does-not-exist").status_code == 404
    assert client.get("/api/v1/generate/result/does-not-exist").status_code == 404


def test_completed_task_without_result_is_server_error(make_pipeline) -> None:
    registry = TaskRegistry()
    client = _client(make_pipeline(), registry=registry)
    task_id = registry.create(TopicRequest(topic="AI", platform="twitter", tone="casual"))
    registry._tasks[task_id] = registry.get(task_id).with_status("COMPLETED")

    response = client.get(f"/api/v1/generate/result/{task_id}")

    assert response.status_code == 500


def test_invalid_request_is_rejected(make_pipeline) -> None:
    client = _client(make_pipeline())

    response = client.post(
        "/api/v1/generate/async",
        json={"topic": "", "platform": "twitter", "tone": "casual"},
    )

    assert response.status_code == 422


def test_async_generation_persists_for_identified_caller(make_pipeline) -> None:
    store = InMemoryContentStore(users=["ada@example.com"])
    client = _client(make_pipeline(), store=store)

    body = client.post(
        "/api/v1/generate/async",
        json=REQUEST_BODY,
        headers={"X-User-Email": "ada@example.com"},
    ).json()
    _poll_status(client, body["statusUrl"])

    result = client.get(body["resultUrl"]).json()
    assert result["id"] == 1
    assert store.get_content(1, "ada@example.com") is not None


def test_sync_generation_requires_identity(make_pipeline) -> None:
    store = InMemoryContentStore(users=["ada@example.com"])
    client = _client(make_pipeline(), store=store)

    assert client.post("/api/v1/generate", json=REQUEST_BODY).status_code == 401

    unknown = client.post(
        "/api/v1/generate",
        json=REQUEST_BODY,
        headers={"X-User-Email": "eve@example.com"},
    )
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "User not found: eve@example.com"

    ok = client.post(
        "/api/v1/generate",
        json=REQUEST_BODY,
        headers={"X-User-Email": "ada@example.com"},
    )
    assert ok.status_code == 200
    assert ok.json()["id"] == 1
    assert ok.json()["content"]["tone"] == "casual"


def test_health_reports_task_counts() -> None:
    pipeline = HeldPipeline()
    client = _client(pipeline)
    client.post("/api/v1/generate/async", json=REQUEST_BODY)

    try:
        for path in ("/health", "/api/v1/health"):
            response = client.get(path)
            assert response.status_code == 200
            payload = response.json()
            assert payload["status"] == "healthy"
            assert payload["activeTasks"] == 1
            assert payload["totalTasks"] == 1
            assert payload["timestamp"] > 0
    finally:
        pipeline.release.set()


def test_lifespan_starts_and_stops_cleanup(make_pipeline) -> None:
    app = create_app(
        settings_override=Settings(cleanup_enabled=True, cleanup_interval_s=60),
        pipeline=make_pipeline(),
        content_store=InMemoryContentStore(),
    )

    with TestClient(app) as client:
        assert client.app.state.cleanup.running
        assert client.get("/health").status_code == 200

    assert not app.state.cleanup.running


def test_stored_content_is_scoped_to_its_owner(make_pipeline) -> None:
    store = InMemoryContentStore(users=["ada@example.com", "bob@example.com"])
    client = _client(make_pipeline(), store=store)
    created = client.post(
        "/api/v1/generate",
        json=REQUEST_BODY,
        headers={"X-User-Email": "ada@example.com"},
    ).json()

    owned = client.get(
        f"/api/v1/content/{created['id']}", headers={"X-User-Email": "ada@example.com"}
    )
    assert owned.status_code == 200
    assert owned.json()["topic"] == "AI"
    assert owned.json()["user_email"] == "ada@example.com"

    other = client.get(
        f"/api/v1/content/{created['id']}", headers={"X-User-Email": "bob@example.com"}
    )
    assert other.status_code == 404
    assert client.get(f"/api/v1/content/{created['id']}").status_code == 401
    assert (
        client.get("/api/v1/content/999", headers={"X-User-Email": "ada@example.com"}).status_code
        == 404
    )


class _ImageResponse(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
        return False


def _image_api_urlopen(req, timeout):
    if isinstance(req, str):
        return _ImageResponse(b"\x89PNG served bytes")
    payload = json.loads(req.data.decode("utf-8"))
    data = [{"url": f"https://cdn.example/img-{i}.png"} for i in range(payload["n"])]
    return _ImageResponse(json.dumps({"data": data}).encode("utf-8"))


def test_downloaded_images_are_served(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(images_module.request, "urlopen", _image_api_urlopen)
    model = FakeChatModel()
    image_client = OpenAIImageClient(
        api_key="sk-test",
        downloader=ImageDownloader(enabled=True, storage_path=str(tmp_path)),
        public_base_url="http://testserver",
    )
    pipeline = ContentPipeline(
        research_agent=ResearchAgent(model, None),
        content_agent=ContentAgent(model),
        image_agent=ImageAgent(model, image_client),
    )
    app = create_app(
        settings_override=Settings(
            cleanup_enabled=False,
            image_download_enabled=True,
            image_storage_path=str(tmp_path),
        ),
        pipeline=pipeline,
        content_store=InMemoryContentStore(),
        pool=WorkerPool(max_workers=1, queue_capacity=0),
    )
    client = TestClient(app)

    result = client.post(
        "/api/v1/generate",
        json=REQUEST_BODY,
        headers={"X-User-Email": "ada@example.com"},
    ).json()

    local_url = result["image"]["localImageUrls"][0]
    assert local_url.startswith("http://testserver/generated-image/")
    served = client.get(local_url.removeprefix("http://testserver"))
    assert served.status_code == 200
    assert served.content == b"\x89PNG served bytes"
    assert client.get("/generated-image/missing.png").status_code == 404
