"""FastAPI app entrypoint for content-orchestrator."""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI, HTTPException, Request
from fastapi.staticfiles import StaticFiles

from content_orchestrator.agents import ContentAgent, ImageAgent, ResearchAgent
from content_orchestrator.config.settings import Settings, get_settings
from content_orchestrator.domain.models import (
    AsyncGenerationResponse,
    GenerationTask,
    HealthResponse,
    OrchestrationResult,
    TopicRequest,
)
from content_orchestrator.graph.workflow import ContentPipeline
from content_orchestrator.identity import identity_from_header
from content_orchestrator.storage import (
    ContentStore,
    GeneratedContentRecord,
    InMemoryContentStore,
    PostgresContentStore,
    UserNotFoundError,
)
from content_orchestrator.tasks import (
    AsyncGenerationService,
    Pipeline,
    TaskCleanupScheduler,
    TaskRegistry,
    WorkerPool,
)
from content_orchestrator.tools.images import ImageDownloader, OpenAIImageClient
from content_orchestrator.tools.llm import OpenAIChatModel
from content_orchestrator.tools.search import SerpApiSearch

logger = logging.getLogger(__name__)


def build_pipeline(settings: Settings) -> ContentPipeline:
    api_key = settings.resolved_openai_api_key()
    if not api_key:
        raise RuntimeError(
            "Missing OpenAI API key. Set CONTENT_ORCHESTRATOR_OPENAI_API_KEY "
            "or OPENAI_API_KEY before starting the app."
        )
    chat_model = OpenAIChatModel(
        api_key=api_key,
        model=settings.llm_model,
        base_url=settings.llm_base_url,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout_s=settings.llm_timeout_s,
        max_retries=settings.llm_max_retries,
        backoff_s=settings.llm_backoff_s,
    )
    search = SerpApiSearch(
        api_key=settings.resolved_serpapi_api_key(),
        enabled=settings.serpapi_enabled,
        engine=settings.serpapi_engine,
        location=settings.serpapi_location,
        max_results=settings.serpapi_max_results,
        timeout_s=settings.serpapi_timeout_s,
        cache_ttl_s=settings.serpapi_cache_ttl_s,
        cache_max_entries=settings.serpapi_cache_max_entries,
    )
    image_client = OpenAIImageClient(
        api_key=api_key,
        model=settings.image_model,
        base_url=settings.llm_base_url,
        size=settings.image_size,
        timeout_s=settings.image_timeout_s,
        downloader=ImageDownloader(
            enabled=settings.image_download_enabled,
            storage_path=settings.image_storage_path,
            timeout_s=settings.image_timeout_s,
        ),
        keep_remote_url=settings.image_keep_remote_url,
        public_base_url=settings.image_public_base_url,
    )
    return ContentPipeline(
        research_agent=ResearchAgent(chat_model, search),
        content_agent=ContentAgent(chat_model),
        image_agent=ImageAgent(chat_model, image_client),
    )


def build_content_store(settings: Settings) -> ContentStore:
    database_url = settings.resolved_database_url()
    if not database_url:
        logger.warning("No database URL configured; generated content is kept in memory only")
        return InMemoryContentStore()
    store = PostgresContentStore(database_url)
    store.migrate()
    return store


def _ensure_runtime_state(
    app: FastAPI,
    *,
    settings: Settings,
    pipeline: Pipeline | None,
    content_store: ContentStore | None,
    registry: TaskRegistry | None,
    pool: WorkerPool | None,
) -> None:
    if hasattr(app.state, "generation_service"):
        return

    task_registry = registry or TaskRegistry()
    worker_pool = pool or WorkerPool(
        max_workers=settings.worker_max_workers,
        queue_capacity=settings.worker_queue_capacity,
    )
    app.state.settings = settings
    app.state.registry = task_registry
    app.state.pool = worker_pool
    app.state.generation_service = AsyncGenerationService(
        pipeline=pipeline or build_pipeline(settings),
        registry=task_registry,
        pool=worker_pool,
        content_store=content_store if content_store is not None else build_content_store(settings),
    )
    app.state.cleanup = TaskCleanupScheduler(
        task_registry,
        interval_s=settings.cleanup_interval_s,
        max_age=timedelta(seconds=settings.cleanup_max_age_s),
    )


def create_app(
    *,
    settings_override: Settings | None = None,
    pipeline: Pipeline | None = None,
    content_store: ContentStore | None = None,
    registry: TaskRegistry | None = None,
    pool: WorkerPool | None = None,
) -> FastAPI:
    settings = settings_override or get_settings()
    logging.getLogger("content_orchestrator").setLevel(settings.log_level.upper())
    prefix = settings.api_prefix.rstrip("/")

    def _ensure(app: FastAPI) -> None:
        _ensure_runtime_state(
            app,
            settings=settings,
            pipeline=pipeline,
            content_store=content_store,
            registry=registry,
            pool=pool,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _ensure(app)
        if settings.cleanup_enabled:
            app.state.cleanup.start()
        try:
            yield
        finally:
            app.state.cleanup.stop()
            app.state.pool.shutdown(wait=settings.worker_shutdown_wait)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    if settings.image_download_enabled:
        # Local URLs handed out by the image client resolve here.
        image_dir = Path(settings.image_storage_path)
        image_dir.mkdir(parents=True, exist_ok=True)
        app.mount("/generated-image", StaticFiles(directory=image_dir), name="generated-image")

    # Injected pipelines make the app usable without running the lifespan (plain TestClient).
    if pipeline is not None:
        _ensure(app)

    def _service(request: Request) -> AsyncGenerationService:
        if not hasattr(request.app.state, "generation_service"):
            _ensure(request.app)
        return request.app.state.generation_service

    @app.get("/health", response_model=HealthResponse)
    @app.get(f"{prefix}/health", response_model=HealthResponse)
    def health(request: Request) -> HealthResponse:
        service = _service(request)
        return HealthResponse(
            status="healthy",
            timestamp=int(time.time() * 1000),
            active_tasks=service.active_task_count(),
            total_tasks=service.total_task_count(),
        )

    @app.post(f"{prefix}/generate", response_model=OrchestrationResult)
    def generate(payload: TopicRequest, request: Request) -> OrchestrationResult:
        caller = identity_from_header(request.headers.get(settings.identity_header))
        if caller is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        try:
            return _service(request).generate_now(payload, caller)
        except UserNotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post(
        f"{prefix}/generate/async",
        response_model=AsyncGenerationResponse,
        status_code=202,
    )
    def start_async_generation(payload: TopicRequest, request: Request) -> AsyncGenerationResponse:
        caller = identity_from_header(request.headers.get(settings.identity_header))
        task_id = _service(request).start_generation(payload, caller=caller)
        return AsyncGenerationResponse.for_task(task_id, prefix=prefix)

    @app.get(f"{prefix}/generate/status/{{task_id}}", response_model=GenerationTask)
    def get_task_status(task_id: str, request: Request) -> GenerationTask:
        task = _service(request).get_task(task_id)
        if task is None:
            logger.warning("Task not found task_id=%s", task_id)
            raise HTTPException(status_code=404, detail="Task not found")
        return task

    @app.get(f"{prefix}/generate/result/{{task_id}}", response_model=OrchestrationResult)
    def get_task_result(task_id: str, request: Request) -> OrchestrationResult:
        task = _service(request).get_task(task_id)
        if task is None:
            logger.warning("Task not found task_id=%s", task_id)
            raise HTTPException(status_code=404, detail="Task not found")
        if task.status != "COMPLETED":
            raise HTTPException(
                status_code=400,
                detail=f"Task not completed yet. Status: {task.status}",
            )
        if task.result is None:
            logger.error("Task %s marked as completed but has no result", task_id)
            raise HTTPException(status_code=500, detail="Task completed without a result")
        return task.result

    @app.get(f"{prefix}/content/{{content_id}}", response_model=GeneratedContentRecord)
    def get_content(content_id: int, request: Request) -> GeneratedContentRecord:
        caller = identity_from_header(request.headers.get(settings.identity_header))
        if caller is None:
            raise HTTPException(status_code=401, detail="Authentication required")
        record = _service(request).get_content(content_id, caller)
        if record is None:
            raise HTTPException(status_code=404, detail="Content not found")
        return record

    return app


app = create_app()
