"""Match-position highlighting for search results."""

from __future__ import annotations

from typing import Iterable

from search.models import Highlight

CONTEXT_RADIUS = 40
ELLIPSIS = "..."


def make_context(text: str, start: int, length: int, radius: int = CONTEXT_RADIUS) -> str:
    """Return the window of ``text`` around a match.

    The window extends ``radius`` characters on each side of the match and
    is marked with an ellipsis on each side where it was clipped.

    Example:
        >>> make_context("0123456789", 4, 2, radius=2)
        '...234567...'
    """
    window_start = max(0, start - radius)
    window_end = min(len(text), start + length + radius)
    snippet = text[window_start:window_end]
    if window_start > 0:
        snippet = ELLIPSIS + snippet
    if window_end < len(text):
        snippet = snippet + ELLIPSIS
    return snippet


def highlight_text(
    text: str,
    highlights: Iterable[Highlight],
    open_marker: str = "[",
    close_marker: str = "]",
) -> str:
    """Wrap each highlighted span of ``text`` in markers.

    Spans are applied in start order; a span overlapping an earlier one is
    skipped.
    """
    parts: list[str] = []
    last_end = 0
    for highlight in sorted(highlights, key=lambda h: h.start):
        if highlight.start < last_end:
            continue
        end = highlight.start + highlight.length
        parts.append(text[last_end:highlight.start])
        parts.append(f"{open_marker}{text[highlight.start:end]}{close_marker}")
        last_end = end
    parts.append(text[last_end:])
    return "".join(parts)
