"""
Field-level scoring and string similarity shared by the search engines.

Match tiers for lexical scoring:

- exact: field equals the term, score 1.0
- prefix: field starts with the term, score 0.9
- substring: field contains the term, score in [0.5, 0.8], higher the
  earlier the match starts
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from extraction.models import DoxygenEntity
from search.models import MatchedField

EXACT_SCORE = 1.0
PREFIX_SCORE = 0.9
SUBSTRING_BASE = 0.5
SUBSTRING_RANGE = 0.3

MAX_RELEVANCE = 1.0

# Field -> weight. Hand-tuned; kept as tables so they can be overridden.
SIMPLE_FIELD_WEIGHTS: dict[str, float] = {
    "name": 1.0,
    "qualified_name": 0.8,
    "brief_description": 0.3,
}
FUZZY_FIELD_WEIGHTS: dict[str, float] = {
    "name": 0.5,
    "qualified_name": 0.3,
    "brief_description": 0.2,
}

DESCRIPTION_FIELDS = frozenset({"brief_description"})


def normalize(text: str, case_sensitive: bool) -> str:
    return text if case_sensitive else text.lower()


def source_span(text: str, start: int, length: int, case_sensitive: bool) -> tuple[int, int]:
    """Map a span of ``normalize(text)`` back onto ``text``.

    Lower-casing can lengthen a string (``"İ".lower()`` is two characters),
    so offsets found in the normalized text are not valid in the original.
    A span ending inside an expanded character covers that whole character.

    Example:
        >>> source_span("İstanbulWidget", 9, 6, case_sensitive=False)
        (8, 6)
    """
    if case_sensitive:
        return start, length
    owners: list[int] = []
    for index, char in enumerate(text):
        owners.extend([index] * len(char.lower()))
    owners.append(len(text))
    source_start = owners[start]
    if length <= 0:
        return source_start, 0
    return source_start, owners[start + length - 1] + 1 - source_start


def is_blank(term: Optional[str]) -> bool:
    """Blank terms (empty or whitespace only) match nothing."""
    return term is None or not term.strip()


def field_value(entity: DoxygenEntity, field_name: str) -> Optional[str]:
    """Return the searchable text of ``field_name``, ``None`` when unset."""
    value = getattr(entity, field_name, None)
    return value if isinstance(value, str) else None


def substring_score(position: int, field_length: int) -> float:
    """Score a substring match starting at ``position``.

    Example:
        >>> round(substring_score(1, 4), 3)
        0.725
    """
    return SUBSTRING_BASE + SUBSTRING_RANGE * (1 - position / field_length)


def score_field(
    value: str,
    term: str,
    field_name: str,
    exact_only: bool = False,
) -> Optional[MatchedField]:
    """Score one normalized field value against a normalized term.

    Args:
        value: Field text, already case-normalized.
        term: Query term, already case-normalized.
        field_name: Name recorded on the returned match.
        exact_only: Only the exact tier is tried.

    Returns:
        The match, or ``None`` when the field does not match.
    """
    if value == term:
        return MatchedField(field_name, "exact", EXACT_SCORE)

    if exact_only:
        return None

    if value.startswith(term):
        return MatchedField(field_name, "prefix", PREFIX_SCORE)

    position = value.find(term)
    if position != -1:
        return MatchedField(field_name, "substring", substring_score(position, len(value)))

    return None


def combine_scores(
    matches: Iterable[MatchedField],
    weights: dict[str, float],
) -> float:
    """Weighted sum of field scores, clamped to ``MAX_RELEVANCE``."""
    total = sum(m.score * weights.get(m.field_name, 0.0) for m in matches)
    return min(total, MAX_RELEVANCE)


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insertions, deletions, substitutions)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Edit-distance similarity in [0, 1]; 1.0 for identical strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


@dataclass(frozen=True)
class ApproximateMatch:
    """Best alignment of a pattern inside a text.

    ``start`` and ``end`` are inclusive character offsets into the text.
    """

    errors: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


def approximate_match(pattern: str, text: str) -> Optional[ApproximateMatch]:
    """Find the substring of ``text`` closest to ``pattern`` in edit distance.

    Every text position may start a match, so location in the text does not
    affect the result. Ties keep the earliest ending alignment.

    Returns:
        The best alignment, or ``None`` when either string is empty or no
        text character could be aligned.
    """
    if not pattern or not text:
        return None

    n = len(text)
    # Row 0: an empty pattern matches before any text position at no cost.
    prev_cost = [0] * (n + 1)
    prev_start = list(range(n + 1))

    for i in range(1, len(pattern) + 1):
        p_char = pattern[i - 1]
        cur_cost = [i] + [0] * n
        cur_start = [0] + [0] * n
        for j in range(1, n + 1):
            best = prev_cost[j - 1] + (p_char != text[j - 1])
            start = prev_start[j - 1]
            if prev_cost[j] + 1 < best:
                best = prev_cost[j] + 1
                start = prev_start[j]
            if cur_cost[j - 1] + 1 < best:
                best = cur_cost[j - 1] + 1
                start = cur_start[j - 1]
            cur_cost[j] = best
            cur_start[j] = start
        prev_cost, prev_start = cur_cost, cur_start

    best_end = min(range(1, n + 1), key=lambda j: prev_cost[j])
    start = prev_start[best_end]
    end = best_end - 1
    if end < start:
        return None
    return ApproximateMatch(errors=prev_cost[best_end], start=start, end=end)


def suggest_names(
    term: str,
    entities: Iterable[DoxygenEntity],
    limit: int = 3,
    min_similarity: float = 0.5,
) -> list[str]:
    """Closest distinct entity names to ``term``, best first.

    Used to offer "did you mean" hints when a query returns nothing.
    """
    needle = term.lower()
    scored: dict[str, float] = {}
    for entity in entities:
        if not entity.name or entity.name in scored:
            continue
        score = similarity(needle, entity.name.lower())
        if score >= min_similarity:
            scored[entity.name] = score
    ranked = sorted(scored.items(), key=lambda item: (-item[1], item[0]))
    return [name for name, _ in ranked[:limit]]
