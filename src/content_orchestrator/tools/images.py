"""OpenAI Images API client with optional local download of generated files."""

from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol
from urllib import error, request

from content_orchestrator.domain.models import ImageResult

logger = logging.getLogger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9]")


class ImageGenerator(Protocol):
    def generate_image(self, prompt: str, count: int, topic: str) -> ImageResult: ...


@dataclass(frozen=True)
class DownloadResult:
    # Original URL when the download was skipped or failed.
    local_path: str
    filename: str | None = None


class ImageDownloader:
    """Store generated images on disk so they outlive the provider's short-lived URLs."""

    def __init__(self, *, enabled: bool, storage_path: str, timeout_s: float = 30.0) -> None:
        self.enabled = enabled
        self.storage_path = Path(storage_path)
        self.timeout_s = timeout_s
        if enabled:
            self.storage_path.mkdir(parents=True, exist_ok=True)

    def download(self, image_url: str, topic: str) -> DownloadResult:
        if not self.enabled:
            return DownloadResult(local_path=image_url)

        filename = _build_filename(topic)
        target = self.storage_path / filename
        try:
            with request.urlopen(image_url, timeout=self.timeout_s) as response:
                target.write_bytes(response.read())
        except (OSError, ValueError) as exc:
            logger.error("Image download failed url=%s reason=%s", image_url, exc)
            return DownloadResult(local_path=image_url)

        logger.info("Downloaded image path=%s", target.resolve())
        return DownloadResult(local_path=str(target.resolve()), filename=filename)


class OpenAIImageClient:
    """Generate images through POST /images/generations."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "dall-e-3",
        base_url: str = "https://api.openai.com/v1",
        size: str = "1024x1024",
        timeout_s: float = 120.0,
        downloader: ImageDownloader | None = None,
        keep_remote_url: bool = True,
        public_base_url: str = "http://localhost:8000",
    ) -> None:
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.size = size
        self.timeout_s = timeout_s
        self.downloader = downloader or ImageDownloader(enabled=False, storage_path=".")
        self.keep_remote_url = keep_remote_url
        self.public_base_url = public_base_url.rstrip("/")

    def generate_image(self, prompt: str, count: int, topic: str) -> ImageResult:
        payload = {"model": self.model, "prompt": prompt, "n": count, "size": self.size}
        response_json = self._request(payload)
        image_urls = _image_urls(response_json)
        logger.debug("Generated %d image(s) model=%s", len(image_urls), self.model)

        local_paths: list[str] = []
        local_urls: list[str] = []
        for image_url in image_urls:
            downloaded = self.downloader.download(image_url, topic)
            local_paths.append(downloaded.local_path)
            if downloaded.filename is not None:
                local_urls.append(f"{self.public_base_url}/generated-image/{downloaded.filename}")

        return ImageResult(
            prompt=prompt,
            open_ai_image_urls=image_urls if self.keep_remote_url else [],
            local_image_paths=local_paths,
            local_image_urls=local_urls,
        )

    def _request(self, payload: dict[str, Any]) -> dict[str, Any]:
        req = request.Request(
            url=f"{self.base_url}/images/generations",
            data=json.dumps(payload).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            with request.urlopen(req, timeout=self.timeout_s) as response:
                raw = response.read().decode("utf-8")
        except error.HTTPError as exc:
            message = exc.read().decode("utf-8", errors="replace")
            raise RuntimeError(
                f"OpenAI Images API failed with status {exc.code}: {message[:400]}"
            ) from exc
        except error.URLError as exc:
            raise RuntimeError(f"OpenAI Images API request failed: {exc.reason}") from exc

        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise RuntimeError("OpenAI Images API returned non-JSON response") from exc


def _image_urls(response_json: dict[str, Any]) -> list[str]:
    data = response_json.get("data")
    if not isinstance(data, list):
        raise RuntimeError("OpenAI Images API response missing data")
    urls: list[str] = []
    for item in data:
        if isinstance(item, dict) and isinstance(item.get("url"), str):
            urls.append(item["url"])
    return urls


def _build_filename(topic: str) -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    safe_topic = _UNSAFE_FILENAME_CHARS.sub("_", topic).lower()
    return f"{timestamp}_{safe_topic}_{uuid.uuid4().hex[:8]}.png"
