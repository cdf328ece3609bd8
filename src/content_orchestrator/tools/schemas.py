"""Typed payloads for the web-search tool."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WebSearchResult(BaseModel):
    title: str = ""
    snippet: str = ""
    link: str = ""
    display_link: str = ""
    date: str = ""
    position: int = 0

    def to_formatted_text(self) -> str:
        lines = [f"**{self.title}**"]
        if self.snippet:
            lines.append(self.snippet)
        if self.date:
            lines.append(f"Date: {self.date}")
        if self.link:
            lines.append(f"Source: {self.link}")
        return "\n".join(lines)


class WebSearchResponse(BaseModel):
    query: str = ""
    results: list[WebSearchResult] = Field(default_factory=list)
    knowledge_graph: dict[str, Any] = Field(default_factory=dict)
    total_results: int = 0
    search_time: float = 0.0

    @classmethod
    def empty(cls, query: str) -> WebSearchResponse:
        return cls(query=query)

    def to_summary_text(self) -> str:
        if not self.results:
            return f"No search results found for: {self.query}"
        lines = [f"Search results for '{self.query}':", ""]
        for index, result in enumerate(self.results[:5], start=1):
            lines.append(f"{index}. {result.to_formatted_text()}")
            lines.append("")
        return "\n".join(lines)

    def extract_sources(self) -> list[str]:
        sources: list[str] = []
        for result in self.results:
            if result.link and result.link not in sources:
                sources.append(result.link)
            if len(sources) == 5:
                break
        return sources
