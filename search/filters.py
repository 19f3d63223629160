"""
Candidate filters applied before scoring.

Each filter is a predicate over entities; ``FilterChain`` keeps the
entities every filter accepts, preserving snapshot order.
"""

from __future__ import annotations

import fnmatch
from typing import Collection, Iterable, Optional, Protocol

from core.scope import is_within_scope
from extraction.models import DoxygenEntity
from search.models import SearchQuery


class EntityFilter(Protocol):
    def accepts(self, entity: DoxygenEntity) -> bool: ...


class TypeFilter:
    """Keep entities whose kind is one of ``kinds``."""

    def __init__(self, kinds: Collection[str]):
        self.kinds = frozenset(kinds)

    def accepts(self, entity: DoxygenEntity) -> bool:
        return entity.kind in self.kinds


class NamespaceFilter:
    """Keep entities that are the namespace itself or nested inside it."""

    def __init__(self, namespace: str):
        self.namespace = namespace.strip()

    def accepts(self, entity: DoxygenEntity) -> bool:
        return is_within_scope(entity.qualified_name, self.namespace)


class FilePatternFilter:
    """Keep entities whose source file matches a shell-style glob."""

    def __init__(self, pattern: str):
        self.pattern = pattern

    def accepts(self, entity: DoxygenEntity) -> bool:
        return fnmatch.fnmatchcase(entity.file, self.pattern)


class FilterChain:
    def __init__(self, filters: Optional[Iterable[EntityFilter]] = None):
        self.filters: list[EntityFilter] = list(filters or [])

    def __bool__(self) -> bool:
        return bool(self.filters)

    def accepts(self, entity: DoxygenEntity) -> bool:
        return all(f.accepts(entity) for f in self.filters)

    def apply(self, entities: Iterable[DoxygenEntity]) -> list[DoxygenEntity]:
        return [e for e in entities if self.accepts(e)]


def filters_for_query(query: SearchQuery) -> FilterChain:
    """Build the filter chain implied by the query's restrictions."""
    chain = FilterChain()
    if query.entity_types:
        chain.filters.append(TypeFilter(query.entity_types))
    if query.namespace:
        chain.filters.append(NamespaceFilter(query.namespace))
    if query.file_pattern:
        chain.filters.append(FilePatternFilter(query.file_pattern))
    return chain
