"""Application settings."""

from functools import lru_cache
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "content-orchestrator"
    log_level: str = "INFO"
    api_prefix: str = "/api/v1"
    identity_header: str = "X-User-Email"

    openai_api_key: str = ""
    llm_base_url: str = "https://api.openai.com/v1"
    llm_model: str = "gpt-4o-mini"
    llm_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_tokens: int = Field(default=2000, ge=1)
    llm_timeout_s: float = Field(default=60.0, ge=0.5)
    llm_max_retries: int = Field(default=1, ge=0)
    llm_backoff_s: float = Field(default=0.2, ge=0.0)

    image_model: str = "dall-e-3"
    image_size: str = "1024x1024"
    image_timeout_s: float = Field(default=120.0, ge=0.5)
    image_download_enabled: bool = False
    image_storage_path: str = "generated-images"
    image_keep_remote_url: bool = True
    image_public_base_url: str = "http://localhost:8000"

    serpapi_api_key: str = ""
    serpapi_enabled: bool = True
    serpapi_engine: str = "google"
    serpapi_location: str = "United States"
    serpapi_max_results: int = Field(default=5, ge=1)
    serpapi_timeout_s: float = Field(default=30.0, ge=0.5)
    serpapi_cache_ttl_s: float = Field(default=3600.0, ge=0.0)
    serpapi_cache_max_entries: int = Field(default=100, ge=1)

    worker_max_workers: int = Field(default=5, ge=1)
    worker_queue_capacity: int = Field(default=100, ge=0)
    worker_shutdown_wait: bool = True

    cleanup_enabled: bool = True
    cleanup_interval_s: float = Field(default=300.0, gt=0.0)
    cleanup_max_age_s: float = Field(default=3600.0, gt=0.0)

    database_url: str = ""

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_ORCHESTRATOR_",
        extra="ignore",
        env_file=(PROJECT_ROOT / ".env", PROJECT_ROOT / ".env.local"),
        env_file_encoding="utf-8",
    )

    def resolved_openai_api_key(self) -> str:
        return self.openai_api_key or os.getenv("OPENAI_API_KEY", "")

    def resolved_serpapi_api_key(self) -> str:
        return self.serpapi_api_key or os.getenv("SERPAPI_API_KEY", "")

    def resolved_database_url(self) -> str:
        return self.database_url or os.getenv("DATABASE_URL", "")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
