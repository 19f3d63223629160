"""Render search outcomes for the terminal or for machine consumption."""

from __future__ import annotations

import json
from typing import Any, Optional, Protocol, Sequence

from search.highlighter import highlight_text
from search.models import SearchOutcome, SearchResult, SearchStats

DESCRIPTION_WIDTH = 80


class ResultFormatter(Protocol):
    def format(self, outcome: SearchOutcome) -> str: ...


def truncate(text: str, max_length: int = DESCRIPTION_WIDTH) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


class TextFormatter:
    """Numbered, human-readable listing with location and match details."""

    def __init__(self, show_stats: bool = True, suggestions: Sequence[str] = ()):
        self.show_stats = show_stats
        self.suggestions = list(suggestions)

    def format(self, outcome: SearchOutcome) -> str:
        if not outcome.results:
            lines = ["No results found."]
            if self.suggestions:
                lines.append(f"Did you mean: {', '.join(self.suggestions)}?")
            return "\n".join(lines)

        lines = [f"Found {len(outcome.results)} result(s):", ""]
        for number, result in enumerate(outcome.results, start=1):
            lines.extend(self._format_result(result, number))
            lines.append("")
        if self.show_stats:
            lines.append(self._format_stats(outcome.stats))
        return "\n".join(lines).rstrip("\n")

    @staticmethod
    def _format_result(result: SearchResult, number: int) -> list[str]:
        entity = result.entity
        name_highlights = [
            h for h in (result.highlights or ()) if h.field == "qualified_name"
        ]
        title = highlight_text(entity.qualified_name, name_highlights)
        lines = [
            f"{number}. {title} ({entity.kind})",
            f"   File: {entity.file}:{entity.line}",
            f"   Match: {round(result.relevance * 100)}%",
        ]
        if entity.brief_description:
            lines.append(f"   {truncate(entity.brief_description)}")
        if result.matched_fields:
            fields = ", ".join(
                f"{f.field_name} ({f.match_type})" for f in result.matched_fields
            )
            lines.append(f"   Matched in: {fields}")
        return lines

    @staticmethod
    def _format_stats(stats: SearchStats) -> str:
        text = (
            f"Searched {stats.total_entities} entities, "
            f"{stats.matched_entities} matched, in {stats.search_time_ms:.2f}ms"
        )
        if stats.cache_hit:
            text += " (cached)"
        return text


class JsonFormatter:
    """Indented JSON document with results and, optionally, statistics."""

    def __init__(self, show_stats: bool = True, indent: Optional[int] = 2):
        self.show_stats = show_stats
        self.indent = indent

    def format(self, outcome: SearchOutcome) -> str:
        payload: dict[str, Any] = {
            "total": len(outcome.results),
            "results": [self._result_payload(r) for r in outcome.results],
        }
        if self.show_stats:
            payload["stats"] = {
                "total_entities": outcome.stats.total_entities,
                "matched_entities": outcome.stats.matched_entities,
                "returned_results": outcome.stats.returned_results,
                "search_time_ms": outcome.stats.search_time_ms,
                "cache_hit": outcome.stats.cache_hit,
            }
        return json.dumps(payload, indent=self.indent)

    @staticmethod
    def _result_payload(result: SearchResult) -> dict[str, Any]:
        entity = result.entity
        return {
            "id": entity.id,
            "name": entity.name,
            "qualified_name": entity.qualified_name,
            "kind": entity.kind,
            "file": entity.file,
            "line": entity.line,
            "relevance": result.relevance,
            "brief_description": entity.brief_description,
            "matched_fields": [
                {"field": f.field_name, "type": f.match_type, "score": f.score}
                for f in result.matched_fields
            ],
        }


FORMATTERS: dict[str, type] = {
    "text": TextFormatter,
    "json": JsonFormatter,
}


def create_formatter(name: str, **kwargs: Any) -> ResultFormatter:
    """Build the formatter registered as ``name``.

    Raises:
        ValueError: If ``name`` is not a known output format.
    """
    formatter_cls = FORMATTERS.get(name)
    if formatter_cls is None:
        raise ValueError(
            f"Unknown output format: {name} (expected one of {', '.join(FORMATTERS)})"
        )
    return formatter_cls(**kwargs)
