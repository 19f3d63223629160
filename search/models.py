"""
Data types exchanged between search engines and their callers.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Collection, Iterator, Optional

from extraction.models import DoxygenEntity

MATCH_TYPES: tuple[str, ...] = ("exact", "prefix", "substring", "fuzzy", "semantic")


@dataclass(frozen=True)
class MatchedField:
    """How one entity field matched the query and what it scored."""

    field_name: str
    match_type: str
    score: float


@dataclass(frozen=True)
class Highlight:
    """Span of a match inside a field, with an optional context snippet."""

    field: str
    start: int
    length: int
    context: Optional[str] = None


@dataclass(frozen=True)
class SearchResult:
    entity: DoxygenEntity
    relevance: float
    matched_fields: tuple[MatchedField, ...]
    highlights: Optional[tuple[Highlight, ...]] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity": self.entity.to_dict(),
            "relevance": self.relevance,
            "matched_fields": [asdict(f) for f in self.matched_fields],
            "highlights": (
                [asdict(h) for h in self.highlights] if self.highlights is not None else None
            ),
        }


@dataclass(frozen=True)
class SearchQuery:
    """One search request.

    ``case_sensitive`` and ``exact_match`` override the engine options for
    this query when set. ``max_results`` can only lower the engine's
    configured maximum.
    """

    term: str
    entity_types: Optional[Collection[str]] = None
    case_sensitive: Optional[bool] = None
    exact_match: Optional[bool] = None
    max_results: Optional[int] = None
    namespace: Optional[str] = None
    file_pattern: Optional[str] = None


@dataclass(frozen=True)
class SearchOptions:
    """Engine configuration; ``configure`` merges overrides onto it.

    ``timeout_ms`` is reserved: it is accepted but not enforced.
    """

    case_sensitive: bool = False
    exact_match: bool = False
    max_results: int = 50
    enable_highlights: bool = True
    include_descriptions: bool = True
    fuzzy_threshold: float = 0.4
    timeout_ms: Optional[int] = None


@dataclass(frozen=True)
class SearchStats:
    total_entities: int
    matched_entities: int
    returned_results: int
    search_time_ms: float
    cache_hit: bool = False


@dataclass(frozen=True)
class SearchOutcome:
    """Results of one ``search`` call together with its statistics."""

    results: tuple[SearchResult, ...]
    stats: SearchStats

    def __iter__(self) -> Iterator[SearchResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)
