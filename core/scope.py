"""Qualified-name contract shared by extraction and search layers."""

from __future__ import annotations

import re
from typing import Optional

SCOPE_SEPARATOR = "::"

_WHITESPACE_RE = re.compile(r"\s+")
_SCOPE_SEPARATOR_RE = re.compile(r"\s*::\s*")
_DESTRUCTOR_SPACING_RE = re.compile(r"::\s*~")


def normalize_qualified_name(qualified_name: str) -> str:
    """Normalize a C++ qualified name into its canonical form.

    Doxygen occasionally emits spacing around scope separators for
    operators and template specializations; collapsing it keeps derived
    scopes stable.

    Args:
        qualified_name: Raw name from the XML document.

    Returns:
        Canonicalized qualified name.
    """
    normalized = qualified_name.strip()
    normalized = _SCOPE_SEPARATOR_RE.sub(SCOPE_SEPARATOR, normalized)
    normalized = _DESTRUCTOR_SPACING_RE.sub("::~", normalized)
    normalized = _WHITESPACE_RE.sub(" ", normalized)
    return normalized.strip()


def parent_scope(qualified_name: str) -> Optional[str]:
    """Return the enclosing scope of ``qualified_name``.

    The scope is everything before the rightmost ``::``. Names without a
    separator live in the global scope and yield ``None``.

    Example:
        >>> parent_scope("my::nested::ns")
        'my::nested'
        >>> parent_scope("global") is None
        True
    """
    index = qualified_name.rfind(SCOPE_SEPARATOR)
    if index == -1:
        return None
    return qualified_name[:index]


def simple_name(qualified_name: str) -> str:
    """Return the last scope segment of ``qualified_name``."""
    index = qualified_name.rfind(SCOPE_SEPARATOR)
    if index == -1:
        return qualified_name
    return qualified_name[index + len(SCOPE_SEPARATOR):]


def is_within_scope(qualified_name: str, scope: str) -> bool:
    """Check whether ``qualified_name`` is ``scope`` itself or nested in it."""
    return qualified_name == scope or qualified_name.startswith(scope + SCOPE_SEPARATOR)
