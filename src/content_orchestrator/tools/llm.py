"""Chat-completions client shared by the three stage agents."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Protocol
from urllib import error, request

logger = logging.getLogger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"

# Transport and parse failures worth another attempt; HTTP errors are filtered by status.
RETRYABLE_ERRORS = (TimeoutError, ValueError, error.URLError)


class ChatModel(Protocol):
    """Turns a system + user prompt pair into the model's text reply."""

    def generate(self, *, system_prompt: str, user_prompt: str) -> str: ...


class OpenAIChatModel:
    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str = OPENAI_BASE_URL,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout_s: float = 60.0,
        max_retries: int = 1,
        backoff_s: float = 0.2,
    ) -> None:
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")
        self.api_key = api_key
        self.model = model
        self.endpoint = f"{base_url.rstrip('/')}/chat/completions"
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s
        self.attempts = 1 + max(0, max_retries)
        self.backoff_s = max(0.0, backoff_s)

    def generate(self, *, system_prompt: str, user_prompt: str) -> str:
        body = {
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        for attempt in range(1, self.attempts + 1):
            try:
                return self._extract_content(self._post(body))
            except error.HTTPError as exc:
                retryable = _is_retryable_status(exc.code)
                logger.warning(
                    "chat_completion event=http_error attempt=%d/%d model=%s status=%d retry=%s",
                    attempt,
                    self.attempts,
                    self.model,
                    exc.code,
                    retryable,
                )
                if not retryable or attempt == self.attempts:
                    raise
            except RETRYABLE_ERRORS as exc:
                logger.warning(
                    "chat_completion event=failed attempt=%d/%d model=%s reason=%s",
                    attempt,
                    self.attempts,
                    self.model,
                    exc,
                )
                if attempt == self.attempts:
                    raise
            if self.backoff_s:
                time.sleep(self.backoff_s * attempt)
        raise RuntimeError("Chat completion failed without an error")

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        req = request.Request(
            url=self.endpoint,
            data=json.dumps(body).encode("utf-8"),
            method="POST",
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        started_at = time.perf_counter()
        try:
            with request.urlopen(req, timeout=self.timeout_s) as response:
                raw = response.read()
        except error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")[:400]
            raise error.HTTPError(
                exc.url, exc.code, f"Chat completion rejected: {detail}", exc.headers, None
            ) from exc
        logger.debug(
            "chat_completion event=ok model=%s duration_ms=%.1f",
            self.model,
            (time.perf_counter() - started_at) * 1000.0,
        )
        return json.loads(raw)

    @staticmethod
    def _extract_content(payload: dict[str, Any]) -> str:
        """Return the first choice's text; list-of-parts content is concatenated."""
        choices = payload.get("choices") or []
        if not choices:
            raise ValueError("Chat completion returned no choices")

        content = (choices[0].get("message") or {}).get("content")
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            text = "".join(
                part["text"]
                for part in content
                if isinstance(part, dict) and isinstance(part.get("text"), str)
            ).strip()
            if text:
                return text
        raise ValueError("Chat completion content is not text")


def _is_retryable_status(status: int) -> bool:
    # Rate limits and server errors clear up; other 4xx responses will not.
    return status == 429 or status >= 500
