"""
Configuration constants for Doxygen XML entity extraction.

Defines the XML element/attribute vocabulary and the entity kind tables
used by the builders and the parse orchestrator.
"""

from typing import Dict, FrozenSet, Set

# File layout
XML_EXTENSION: str = ".xml"
INDEX_FILE_NAME: str = "index.xml"

# Root elements
INDEX_ROOT: str = "doxygenindex"
COMPOUND_DOC_ROOT: str = "doxygen"
COMPOUND_DEF: str = "compounddef"
MEMBER_DEF: str = "memberdef"
SECTION_DEF: str = "sectiondef"
PARAGRAPH: str = "para"

# Every entity kind the model knows about
ENTITY_KINDS: FrozenSet[str] = frozenset({
    "class",
    "struct",
    "function",
    "method",
    "namespace",
    "enum",
    "typedef",
    "variable",
    "define",
})

CLASS_LIKE_KINDS: FrozenSet[str] = frozenset({"class", "struct"})

VISIBILITIES: FrozenSet[str] = frozenset({"public", "protected", "private"})
DEFAULT_VISIBILITY: str = "public"

# Attribute values, compared verbatim
YES: str = "yes"
VIRT_VIRTUAL: str = "virtual"
VIRT_PURE_VIRTUAL: str = "pure-virtual"

# Return type used when a function carries no type text
DEFAULT_RETURN_TYPE: str = "void"

# Index compound kind -> entity kinds the compound can contribute
COMPOUND_ENTITY_KINDS: Dict[str, Set[str]] = {
    "class": {"class", "method"},
    "struct": {"struct", "method"},
    "namespace": {"namespace", "function", "enum"},
    "file": {"function", "enum"},
    "enum": {"enum"},
}

# Compound kinds that only contribute members, no container entity
MEMBER_ONLY_COMPOUNDS: FrozenSet[str] = frozenset({"file"})

# Parse error severities
SEVERITY_WARNING: str = "warning"
SEVERITY_ERROR: str = "error"
