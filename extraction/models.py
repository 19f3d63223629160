"""
Data models for entities extracted from Doxygen XML.

Entities are immutable tagged records: the ``kind`` field tells the variants
apart, sequences are tuples, and containment is expressed through
``MemberReference`` ids rather than nested entities.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from extraction.config import DEFAULT_VISIBILITY


@dataclass(frozen=True)
class MemberReference:
    """Lightweight pointer from a container to one of its members, by id."""

    id: str
    name: str
    kind: str
    visibility: str = DEFAULT_VISIBILITY


@dataclass(frozen=True)
class BaseClass:
    """One entry of a class inheritance list."""

    name: str
    qualified_name: str
    visibility: str = DEFAULT_VISIBILITY
    is_virtual: bool = False


@dataclass(frozen=True)
class TemplateParam:
    name: str
    type: str
    default_value: Optional[str] = None


@dataclass(frozen=True)
class Parameter:
    name: str
    type: str
    default_value: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class EnumValue:
    name: str
    value: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class DoxygenEntity:
    """Fields shared by every extracted entity.

    Attributes:
        id: Doxygen id, unique within one parse result.
        name: Simple (unscoped) name, e.g. ``Widget``.
        qualified_name: Fully scoped name, e.g. ``ns::Widget``.
        kind: One of the kinds in ``extraction.config.ENTITY_KINDS``.
        file: Source file the entity is declared in.
        line: 1-indexed declaration line, 0 when unknown.
        brief_description: Flattened brief description, if any.
        detailed_description: Flattened detailed description, if any.
        visibility: public/protected/private; public when the source omits it.
    """

    id: str
    name: str
    qualified_name: str
    kind: str
    file: str = ""
    line: int = 0
    brief_description: Optional[str] = None
    detailed_description: Optional[str] = None
    visibility: str = DEFAULT_VISIBILITY

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entity to a dictionary suitable for JSON serialization."""
        return asdict(self)


@dataclass(frozen=True, kw_only=True)
class ClassEntity(DoxygenEntity):
    """A class or struct."""

    base_classes: Tuple[BaseClass, ...] = ()
    members: Tuple[MemberReference, ...] = ()
    template_params: Optional[Tuple[TemplateParam, ...]] = None
    is_abstract: bool = False
    namespace: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class FunctionEntity(DoxygenEntity):
    """A free function (``function``) or a class member (``method``)."""

    return_type: str = "void"
    parameters: Tuple[Parameter, ...] = ()
    is_const: bool = False
    is_static: bool = False
    is_virtual: bool = False
    is_inline: bool = False
    is_pure_virtual: bool = False
    parent_class: Optional[str] = None
    namespace: Optional[str] = None
    exceptions: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True, kw_only=True)
class NamespaceEntity(DoxygenEntity):
    members: Tuple[MemberReference, ...] = ()
    parent_namespace: Optional[str] = None


@dataclass(frozen=True, kw_only=True)
class EnumEntity(DoxygenEntity):
    values: Tuple[EnumValue, ...] = ()
    is_strong: bool = False
    underlying_type: Optional[str] = None


Entity = Union[ClassEntity, FunctionEntity, NamespaceEntity, EnumEntity]


@dataclass(frozen=True)
class ParseError:
    """Non-fatal problem recorded while parsing.

    Attributes:
        file: XML document the problem was found in.
        message: Human-readable description.
        severity: ``error`` for a whole compound, ``warning`` for one member.
        entity_id: Id of the offending member, when known.
    """

    file: str
    message: str
    severity: str
    entity_id: Optional[str] = None


@dataclass(frozen=True)
class ParseMetadata:
    doxygen_version: str
    generated_at: datetime
    total_files: int
    total_entities: int
    parse_time_ms: float
    from_cache: bool = False


@dataclass(frozen=True)
class ParseResult:
    """Output of one parse: a flat entity list plus diagnostics."""

    entities: Tuple[DoxygenEntity, ...]
    metadata: ParseMetadata
    errors: Tuple[ParseError, ...] = field(default_factory=tuple)

    def find(self, entity_id: str) -> Optional[DoxygenEntity]:
        """Look up an entity by id, e.g. to resolve a ``MemberReference``."""
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["metadata"]["generated_at"] = self.metadata.generated_at.isoformat()
        return payload
