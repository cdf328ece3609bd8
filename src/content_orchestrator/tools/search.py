"""SerpApi web search used to ground research in current sources."""

from __future__ import annotations

import json
import logging
import re
import threading
import time
from collections import OrderedDict
from typing import Any, Protocol
from urllib import error, parse, request

from content_orchestrator.tools.schemas import WebSearchResponse, WebSearchResult

logger = logging.getLogger(__name__)

SERPAPI_URL = "https://serpapi.com/search"


class WebSearch(Protocol):
    def is_enabled(self) -> bool: ...

    def search_multiple(self, queries: list[str]) -> list[WebSearchResponse]: ...


class SerpApiSearch:
    """Query SerpApi, caching responses per query for ``cache_ttl_s`` seconds.

    Any transport or parsing failure yields an empty response for that query
    rather than an exception.
    """

    def __init__(
        self,
        *,
        api_key: str,
        enabled: bool = True,
        engine: str = "google",
        location: str = "United States",
        max_results: int = 5,
        timeout_s: float = 30.0,
        cache_ttl_s: float = 3600.0,
        cache_max_entries: int = 100,
    ) -> None:
        self.api_key = api_key
        self.enabled = enabled
        self.engine = engine
        self.location = location
        self.max_results = max_results
        self.timeout_s = timeout_s
        self.cache_ttl_s = cache_ttl_s
        self.cache_max_entries = cache_max_entries
        self._cache: OrderedDict[str, tuple[float, WebSearchResponse]] = OrderedDict()
        # Lock guards the cache; workers search concurrently.
        self._lock = threading.Lock()

    def is_enabled(self) -> bool:
        return self.enabled and bool(self.api_key)

    def search(self, query: str) -> WebSearchResponse:
        if not self.is_enabled():
            logger.warning("SerpApi is not configured or disabled; returning empty results")
            return WebSearchResponse.empty(query)

        cached = self._cached(query)
        if cached is not None:
            return cached

        try:
            payload = self._request(query)
        except (OSError, ValueError) as exc:
            logger.error("Web search failed query=%s reason=%s", query, exc)
            return WebSearchResponse.empty(query)

        response = self._parse(query, payload)
        self._store(query, response)
        logger.debug("Parsed %d search results query=%s", len(response.results), query)
        return response

    def search_multiple(self, queries: list[str]) -> list[WebSearchResponse]:
        return [self.search(query) for query in queries]

    def _request(self, query: str) -> dict[str, Any]:
        params = parse.urlencode(
            {
                "api_key": self.api_key,
                "engine": self.engine,
                "q": query,
                "location": self.location,
                "hl": "en",
                "gl": "us",
                "num": str(self.max_results),
            }
        )
        try:
            with request.urlopen(f"{SERPAPI_URL}?{params}", timeout=self.timeout_s) as response:
                raw = response.read().decode("utf-8")
        except error.HTTPError as exc:
            raise ValueError(f"SerpApi request failed with status {exc.code}") from exc
        parsed = json.loads(raw)
        if not isinstance(parsed, dict):
            raise ValueError("SerpApi response must be a JSON object")
        return parsed

    def _parse(self, query: str, payload: dict[str, Any]) -> WebSearchResponse:
        results: list[WebSearchResult] = []
        organic = payload.get("organic_results")
        if isinstance(organic, list):
            for index, row in enumerate(organic[: self.max_results], start=1):
                if not isinstance(row, dict):
                    continue
                results.append(
                    WebSearchResult(
                        title=_as_text(row.get("title")),
                        snippet=_as_text(row.get("snippet")),
                        link=_as_text(row.get("link")),
                        display_link=_as_text(row.get("displayed_link")),
                        date=_as_text(row.get("date")),
                        position=index,
                    )
                )

        knowledge_graph: dict[str, Any] = {}
        graph = payload.get("knowledge_graph")
        if isinstance(graph, dict):
            for key in ("title", "description"):
                if isinstance(graph.get(key), str):
                    knowledge_graph[key] = graph[key]
            source = graph.get("source")
            if isinstance(source, dict) and isinstance(source.get("link"), str):
                knowledge_graph["sourceLink"] = source["link"]

        total_results = 0
        search_time = 0.0
        info = payload.get("search_information")
        if isinstance(info, dict):
            try:
                total_results = int(info.get("total_results") or 0)
            except (TypeError, ValueError):
                total_results = 0
            search_time = _seconds(info.get("time_taken_displayed"))

        return WebSearchResponse(
            query=query,
            results=results,
            knowledge_graph=knowledge_graph,
            total_results=total_results,
            search_time=search_time,
        )

    def _cached(self, query: str) -> WebSearchResponse | None:
        with self._lock:
            entry = self._cache.get(query)
            if entry is None:
                return None
            stored_at, response = entry
            if time.monotonic() - stored_at > self.cache_ttl_s:
                del self._cache[query]
                return None
            self._cache.move_to_end(query)
            return response

    def _store(self, query: str, response: WebSearchResponse) -> None:
        with self._lock:
            self._cache[query] = (time.monotonic(), response)
            self._cache.move_to_end(query)
            while len(self._cache) > self.cache_max_entries:
                self._cache.popitem(last=False)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _seconds(value: Any) -> float:
    # SerpApi reports e.g. "0.45 seconds".
    if isinstance(value, (int, float)):
        return float(value)
    digits = re.sub(r"[^0-9.]", "", str(value or ""))
    try:
        return float(digits)
    except ValueError:
        return 0.0
