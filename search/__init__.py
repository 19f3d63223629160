"""
Layer 2: Search

Lexical and approximate search engines over extracted Doxygen entities,
plus the scoring, highlighting, filtering and formatting they share.
"""

from search.models import (
    MATCH_TYPES,
    Highlight,
    MatchedField,
    SearchOptions,
    SearchOutcome,
    SearchQuery,
    SearchResult,
    SearchStats,
)
from search.errors import EngineNotLoadedError, SearchError, UnknownEngineError
from search.scoring import (
    FUZZY_FIELD_WEIGHTS,
    SIMPLE_FIELD_WEIGHTS,
    approximate_match,
    levenshtein,
    score_field,
    similarity,
    suggest_names,
)
from search.highlighter import highlight_text, make_context
from search.filters import (
    FilePatternFilter,
    FilterChain,
    NamespaceFilter,
    TypeFilter,
    filters_for_query,
)
from search.engines import (
    ENGINES,
    FuzzyIndex,
    FuzzySearchEngine,
    SearchEngine,
    SemanticSearchEngine,
    SimpleSearchEngine,
    create_engine,
    merge_options,
)
from search.formatters import JsonFormatter, TextFormatter, create_formatter

__all__ = [
    # Data models
    "MATCH_TYPES",
    "Highlight",
    "MatchedField",
    "SearchOptions",
    "SearchOutcome",
    "SearchQuery",
    "SearchResult",
    "SearchStats",
    # Errors
    "EngineNotLoadedError",
    "SearchError",
    "UnknownEngineError",
    # Scoring
    "FUZZY_FIELD_WEIGHTS",
    "SIMPLE_FIELD_WEIGHTS",
    "approximate_match",
    "levenshtein",
    "score_field",
    "similarity",
    "suggest_names",
    "highlight_text",
    "make_context",
    # Filters
    "FilePatternFilter",
    "FilterChain",
    "NamespaceFilter",
    "TypeFilter",
    "filters_for_query",
    # Engines
    "ENGINES",
    "FuzzyIndex",
    "FuzzySearchEngine",
    "SearchEngine",
    "SemanticSearchEngine",
    "SimpleSearchEngine",
    "create_engine",
    "merge_options",
    # Output
    "JsonFormatter",
    "TextFormatter",
    "create_formatter",
]
