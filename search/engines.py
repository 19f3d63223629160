"""
Search engines over a loaded snapshot of Doxygen entities.

Every engine follows the ``SearchEngine`` protocol: ``configure`` merges
option overrides, ``load_entities`` replaces the snapshot and rebuilds any
engine-specific index, and ``search`` returns a ``SearchOutcome`` carrying
both the ranked results and the statistics of that call.

Engines are registered by name in ``ENGINES``; ``create_engine`` builds one.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import sys
import time
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Sequence

from extraction.models import DoxygenEntity
from search.errors import EngineNotLoadedError, UnknownEngineError
from search.filters import filters_for_query
from search.highlighter import make_context
from search.models import (
    Highlight,
    MatchedField,
    SearchOptions,
    SearchOutcome,
    SearchQuery,
    SearchResult,
    SearchStats,
)
from search.scoring import (
    DESCRIPTION_FIELDS,
    FUZZY_FIELD_WEIGHTS,
    SIMPLE_FIELD_WEIGHTS,
    approximate_match,
    combine_scores,
    field_value,
    is_blank,
    normalize,
    score_field,
    source_span,
)

logger = logging.getLogger(__name__)

# Lower bound for a matched field's distance in the fuzzy product, so a
# perfect field still lets other fields contribute.
FUZZY_EPSILON = sys.float_info.epsilon


class SearchEngine(Protocol):
    """Contract shared by all search engines.

    ``get_stats`` returns the statistics of the most recent ``search`` call
    on this instance (``None`` before the first one). Prefer
    ``SearchOutcome.stats`` when one engine instance serves several callers.
    """

    options: SearchOptions

    def configure(self, **options: Any) -> None: ...

    def load_entities(self, entities: Iterable[DoxygenEntity]) -> None: ...

    def search(self, query: SearchQuery) -> SearchOutcome: ...

    def get_stats(self) -> Optional[SearchStats]: ...


def merge_options(current: SearchOptions, overrides: dict[str, Any]) -> SearchOptions:
    """Merge ``overrides`` onto ``current`` and validate the result.

    Raises:
        ValueError: On an unknown option name or an out-of-range value.
    """
    known = {f.name for f in dataclasses.fields(SearchOptions)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ValueError(f"Unknown search option(s): {', '.join(unknown)}")

    merged = dataclasses.replace(current, **overrides)
    if merged.max_results < 1:
        raise ValueError(f"max_results must be >= 1, got {merged.max_results}")
    if not 0.0 <= merged.fuzzy_threshold <= 1.0:
        raise ValueError(
            f"fuzzy_threshold must be within [0, 1], got {merged.fuzzy_threshold}"
        )
    if overrides.get("timeout_ms") is not None:
        logger.warning("timeout_ms=%s is accepted but not enforced", merged.timeout_ms)
    return merged


def effective_limit(query: SearchQuery, options: SearchOptions) -> int:
    """Smaller of the query limit and the configured maximum."""
    if query.max_results is None:
        return options.max_results
    return max(0, min(query.max_results, options.max_results))


def _resolve_flag(query_value: Optional[bool], default: bool) -> bool:
    return default if query_value is None else query_value


def _empty_outcome(total_entities: int, started: float) -> SearchOutcome:
    return SearchOutcome(
        results=(),
        stats=SearchStats(
            total_entities=total_entities,
            matched_entities=0,
            returned_results=0,
            search_time_ms=(time.perf_counter() - started) * 1000.0,
        ),
    )


def _finish(
    ranked: list[SearchResult],
    query: SearchQuery,
    options: SearchOptions,
    total_entities: int,
    started: float,
) -> SearchOutcome:
    results = tuple(ranked[: effective_limit(query, options)])
    stats = SearchStats(
        total_entities=total_entities,
        matched_entities=len(ranked),
        returned_results=len(results),
        search_time_ms=(time.perf_counter() - started) * 1000.0,
        cache_hit=False,
    )
    return SearchOutcome(results=results, stats=stats)


class SimpleSearchEngine:
    """Deterministic lexical search with exact, prefix and substring tiers."""

    name = "simple"

    def __init__(
        self,
        options: Optional[SearchOptions] = None,
        weights: Optional[dict[str, float]] = None,
    ):
        self.options = options or SearchOptions()
        self.weights = dict(weights or SIMPLE_FIELD_WEIGHTS)
        self._entities: list[DoxygenEntity] = []
        self._last_stats: Optional[SearchStats] = None

    def configure(self, **options: Any) -> None:
        self.options = merge_options(self.options, options)

    def load_entities(self, entities: Iterable[DoxygenEntity]) -> None:
        self._entities = list(entities)
        logger.debug("Simple engine loaded %d entities", len(self._entities))

    def get_stats(self) -> Optional[SearchStats]:
        return self._last_stats

    def search(self, query: SearchQuery) -> SearchOutcome:
        started = time.perf_counter()
        if is_blank(query.term):
            outcome = _empty_outcome(len(self._entities), started)
            self._last_stats = outcome.stats
            return outcome

        case_sensitive = _resolve_flag(query.case_sensitive, self.options.case_sensitive)
        exact_only = _resolve_flag(query.exact_match, self.options.exact_match)
        term = normalize(query.term, case_sensitive)

        ranked: list[SearchResult] = []
        for entity in filters_for_query(query).apply(self._entities):
            matches = self._match_fields(entity, term, case_sensitive, exact_only)
            if not matches:
                continue
            highlights = None
            if self.options.enable_highlights:
                highlights = self._highlights(entity, term, matches, case_sensitive)
            ranked.append(
                SearchResult(
                    entity=entity,
                    relevance=combine_scores(matches, self.weights),
                    matched_fields=tuple(matches),
                    highlights=highlights,
                )
            )

        # list.sort is stable: ties keep snapshot order.
        ranked.sort(key=lambda r: r.relevance, reverse=True)
        outcome = _finish(ranked, query, self.options, len(self._entities), started)
        self._last_stats = outcome.stats
        logger.debug(
            "Simple search %r matched %d, returned %d in %.2fms",
            query.term,
            outcome.stats.matched_entities,
            outcome.stats.returned_results,
            outcome.stats.search_time_ms,
        )
        return outcome

    def _match_fields(
        self,
        entity: DoxygenEntity,
        term: str,
        case_sensitive: bool,
        exact_only: bool,
    ) -> list[MatchedField]:
        matches: list[MatchedField] = []
        for field_name in self.weights:
            is_description = field_name in DESCRIPTION_FIELDS
            if is_description and not self.options.include_descriptions:
                continue
            value = field_value(entity, field_name)
            if not value:
                continue
            # Descriptions never use exact-only matching.
            match = score_field(
                normalize(value, case_sensitive),
                term,
                field_name,
                exact_only=exact_only and not is_description,
            )
            if match is not None:
                matches.append(match)
        return matches

    @staticmethod
    def _highlights(
        entity: DoxygenEntity,
        term: str,
        matches: Sequence[MatchedField],
        case_sensitive: bool,
    ) -> tuple[Highlight, ...]:
        highlights = []
        for match in matches:
            value = field_value(entity, match.field_name) or ""
            found = normalize(value, case_sensitive).find(term)
            if found == -1:
                continue
            start, length = source_span(value, found, len(term), case_sensitive)
            highlights.append(
                Highlight(
                    field=match.field_name,
                    start=start,
                    length=length,
                    context=make_context(value, start, length),
                )
            )
        return tuple(highlights)


@dataclass(frozen=True)
class FieldHit:
    """Approximate match of the term inside one field."""

    field_name: str
    distance: float
    start: int
    length: int


@dataclass(frozen=True)
class FuzzyHit:
    position: int
    distance: float
    fields: tuple[FieldHit, ...]


class FuzzyIndex:
    """Per-entity field table searched by approximate substring matching.

    A field's distance is the fewest edits turning the term into some
    substring of the field, divided by the term length. An entity's distance
    is the product of its matched fields' distances raised to their weights.
    """

    def __init__(self, entities: Sequence[DoxygenEntity], weights: dict[str, float]):
        self.weights = dict(weights)
        self.entries: list[tuple[DoxygenEntity, tuple[tuple[str, str], ...]]] = []
        for entity in entities:
            fields = []
            for name in self.weights:
                value = field_value(entity, name)
                if value:
                    fields.append((name, value))
            self.entries.append((entity, tuple(fields)))

    def __len__(self) -> int:
        return len(self.entries)

    def match_field(
        self,
        field_name: str,
        value: str,
        term: str,
        threshold: float,
    ) -> Optional[FieldHit]:
        found = approximate_match(term, value)
        if found is None:
            return None
        distance = found.errors / len(term)
        if distance > threshold:
            return None
        return FieldHit(field_name, distance, found.start, found.length)

    def search(
        self,
        term: str,
        threshold: float,
        case_sensitive: bool = False,
        include_descriptions: bool = True,
        positions: Optional[Iterable[int]] = None,
    ) -> list[FuzzyHit]:
        """Return hits for ``term`` ordered by ascending distance.

        Args:
            term: Query term, not yet case-normalized.
            threshold: Maximum normalized field distance accepted.
            case_sensitive: Compare without lower-casing.
            include_descriptions: Search description fields too.
            positions: Restrict the search to these entry positions.
        """
        needle = normalize(term, case_sensitive)
        candidates = range(len(self.entries)) if positions is None else positions
        hits: list[FuzzyHit] = []
        for position in candidates:
            _, fields = self.entries[position]
            field_hits = []
            for field_name, value in fields:
                if field_name in DESCRIPTION_FIELDS and not include_descriptions:
                    continue
                hit = self.match_field(
                    field_name, normalize(value, case_sensitive), needle, threshold
                )
                if hit is not None:
                    start, length = source_span(value, hit.start, hit.length, case_sensitive)
                    field_hits.append(dataclasses.replace(hit, start=start, length=length))
            if not field_hits:
                continue
            distance = math.prod(
                max(h.distance, FUZZY_EPSILON) ** self.weights[h.field_name]
                for h in field_hits
            )
            hits.append(FuzzyHit(position, distance, tuple(field_hits)))

        hits.sort(key=lambda h: h.distance)
        return hits


class FuzzySearchEngine:
    """Approximate search tolerant of typos, ranked by edit distance."""

    name = "fuzzy"

    def __init__(
        self,
        options: Optional[SearchOptions] = None,
        weights: Optional[dict[str, float]] = None,
    ):
        self.options = options or SearchOptions()
        self.weights = dict(weights or FUZZY_FIELD_WEIGHTS)
        self._entities: list[DoxygenEntity] = []
        self._index: Optional[FuzzyIndex] = None
        self._last_stats: Optional[SearchStats] = None

    def configure(self, **options: Any) -> None:
        self.options = merge_options(self.options, options)

    def load_entities(self, entities: Iterable[DoxygenEntity]) -> None:
        self._entities = list(entities)
        self._index = FuzzyIndex(self._entities, self.weights)
        logger.debug("Fuzzy index built over %d entities", len(self._index))

    def get_stats(self) -> Optional[SearchStats]:
        return self._last_stats

    def search(self, query: SearchQuery) -> SearchOutcome:
        """Rank entities by approximate match of ``query.term``.

        Raises:
            EngineNotLoadedError: If ``load_entities`` has not been called.
        """
        if self._index is None:
            raise EngineNotLoadedError("Entities not loaded. Call load_entities() first.")

        started = time.perf_counter()
        if is_blank(query.term):
            outcome = _empty_outcome(len(self._entities), started)
            self._last_stats = outcome.stats
            return outcome

        case_sensitive = _resolve_flag(query.case_sensitive, self.options.case_sensitive)
        exact_only = _resolve_flag(query.exact_match, self.options.exact_match)
        threshold = 0.0 if exact_only else self.options.fuzzy_threshold

        chain = filters_for_query(query)
        positions = None
        if chain:
            positions = [
                i for i, entity in enumerate(self._entities) if chain.accepts(entity)
            ]

        hits = self._index.search(
            query.term,
            threshold,
            case_sensitive=case_sensitive,
            include_descriptions=self.options.include_descriptions,
            positions=positions,
        )
        ranked = [self._to_result(hit) for hit in hits]
        outcome = _finish(ranked, query, self.options, len(self._entities), started)
        self._last_stats = outcome.stats
        logger.debug(
            "Fuzzy search %r (threshold %.2f) matched %d, returned %d in %.2fms",
            query.term,
            threshold,
            outcome.stats.matched_entities,
            outcome.stats.returned_results,
            outcome.stats.search_time_ms,
        )
        return outcome

    def _to_result(self, hit: FuzzyHit) -> SearchResult:
        entity = self._entities[hit.position]
        highlights = None
        if self.options.enable_highlights:
            highlights = tuple(
                Highlight(
                    field=f.field_name,
                    start=f.start,
                    length=f.length,
                    context=make_context(
                        field_value(entity, f.field_name) or "", f.start, f.length
                    ),
                )
                for f in hit.fields
            )
        return SearchResult(
            entity=entity,
            relevance=1.0 - hit.distance,
            matched_fields=tuple(
                MatchedField(f.field_name, "fuzzy", 1.0 - f.distance) for f in hit.fields
            ),
            highlights=highlights,
        )


class SemanticSearchEngine:
    """Placeholder for embedding-based search; ``search`` always fails."""

    name = "semantic"

    def __init__(self, options: Optional[SearchOptions] = None):
        self.options = options or SearchOptions()
        self._entities: list[DoxygenEntity] = []

    def configure(self, **options: Any) -> None:
        self.options = merge_options(self.options, options)

    def load_entities(self, entities: Iterable[DoxygenEntity]) -> None:
        self._entities = list(entities)

    def get_stats(self) -> Optional[SearchStats]:
        return None

    def search(self, query: SearchQuery) -> SearchOutcome:
        raise NotImplementedError("Semantic search is not implemented")


ENGINES: dict[str, type] = {
    SimpleSearchEngine.name: SimpleSearchEngine,
    FuzzySearchEngine.name: FuzzySearchEngine,
    SemanticSearchEngine.name: SemanticSearchEngine,
}


def create_engine(kind: str, **options: Any) -> SearchEngine:
    """Instantiate the engine registered as ``kind`` and apply ``options``.

    Raises:
        UnknownEngineError: If no engine is registered under ``kind``.
        ValueError: If an option is unknown or out of range.

    Example:
        >>> engine = create_engine("simple", max_results=10)
        >>> engine.options.max_results
        10
    """
    engine_cls = ENGINES.get(kind)
    if engine_cls is None:
        raise UnknownEngineError(
            f"Unknown search engine type: {kind} (expected one of {', '.join(ENGINES)})"
        )
    engine = engine_cls()
    if options:
        engine.configure(**options)
    return engine
