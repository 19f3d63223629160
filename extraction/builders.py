"""
Entity builders for decoded Doxygen definitions.

Each builder is a plain function turning one ``DefinitionNode`` into an
immutable entity. Builders are selected through the ``BUILDERS`` table by
the definition's ``kind`` attribute; kinds without a builder raise
``UnsupportedKindError``, which callers record and skip.
"""

import logging
import re
from typing import Any, Callable, Dict, Optional

from core.scope import normalize_qualified_name, parent_scope, simple_name
from extraction.config import (
    CLASS_LIKE_KINDS,
    DEFAULT_RETURN_TYPE,
    DEFAULT_VISIBILITY,
    VIRT_PURE_VIRTUAL,
    VIRT_VIRTUAL,
    VISIBILITIES,
    YES,
)
from extraction.errors import UnsupportedKindError
from extraction.models import (
    BaseClass,
    ClassEntity,
    DoxygenEntity,
    EnumEntity,
    EnumValue,
    FunctionEntity,
    MemberReference,
    NamespaceEntity,
    Parameter,
    TemplateParam,
)
from extraction.schema import DefinitionNode

logger = logging.getLogger(__name__)

Builder = Callable[[DefinitionNode, Optional[DoxygenEntity]], DoxygenEntity]

_INITIALIZER_PREFIX_RE = re.compile(r"^\s*=\s*")


def resolve_visibility(prot: Optional[str]) -> str:
    """Map a ``prot`` attribute to a visibility, defaulting to public."""
    if prot in VISIBILITIES:
        return prot
    return DEFAULT_VISIBILITY


def build_base(node: DefinitionNode) -> Dict[str, Any]:
    """Extract the fields shared by every entity kind.

    Precedence per field:

    - name: last scope segment of compoundname, else name, else ``""``
    - qualified_name: qualifiedname, else compoundname, else name, else ``""``
    - file/line: from ``location``, ``""``/0 when absent
    - visibility: ``prot`` when valid, else public

    Returns:
        Keyword arguments for an entity constructor, without ``kind``.
    """
    qualified_name = node.qualifiedname or node.compoundname or node.name or ""
    return {
        "id": node.id,
        "name": simple_name(node.compoundname or node.name or ""),
        "qualified_name": normalize_qualified_name(qualified_name),
        "file": node.location.file if node.location else "",
        "line": node.location.line if node.location else 0,
        "brief_description": node.brief,
        "detailed_description": node.detailed,
        "visibility": resolve_visibility(node.prot),
    }


def _member_references(node: DefinitionNode) -> tuple:
    return tuple(
        MemberReference(
            id=head.id,
            name=head.name,
            kind=head.kind,
            visibility=resolve_visibility(head.prot),
        )
        for head in node.iter_member_heads()
    )


def build_class(node: DefinitionNode, parent: Optional[DoxygenEntity] = None) -> ClassEntity:
    """Build a class or struct entity.

    ``is_abstract`` is set when any member of any section is pure virtual,
    including members whose bodies failed to decode.
    """
    base = build_base(node)
    base_classes = tuple(
        BaseClass(
            name=ref.name,
            qualified_name=ref.refid or ref.name,
            visibility=resolve_visibility(ref.prot),
            is_virtual=ref.virt == VIRT_VIRTUAL,
        )
        for ref in node.base_refs
    )
    template_params = None
    if node.template_params:
        template_params = tuple(
            TemplateParam(name=p.declname or "", type=p.type_text, default_value=p.defval)
            for p in node.template_params
        )

    return ClassEntity(
        **base,
        kind=node.kind,
        base_classes=base_classes,
        members=_member_references(node),
        template_params=template_params,
        is_abstract=any(h.virt == VIRT_PURE_VIRTUAL for h in node.iter_member_heads()),
        namespace=parent_scope(base["qualified_name"]),
    )


def build_namespace(
    node: DefinitionNode, parent: Optional[DoxygenEntity] = None
) -> NamespaceEntity:
    base = build_base(node)
    return NamespaceEntity(
        **base,
        kind="namespace",
        members=_member_references(node),
        parent_namespace=parent_scope(base["qualified_name"]),
    )


def _explicit_enum_value(initializer: Optional[str]) -> Optional[str]:
    """Strip the leading ``=`` of an enumerator initializer.

    Example:
        >>> _explicit_enum_value("= 0xFF0000")
        '0xFF0000'
    """
    if initializer is None:
        return None
    value = _INITIALIZER_PREFIX_RE.sub("", initializer).strip()
    return value or None


def build_enum(node: DefinitionNode, parent: Optional[DoxygenEntity] = None) -> EnumEntity:
    """Build an enum entity; a blank ``type`` leaves the underlying type unset."""
    base = build_base(node)
    values = tuple(
        EnumValue(
            name=value.name,
            value=_explicit_enum_value(value.initializer),
            description=value.brief,
        )
        for value in node.enum_values
    )
    underlying_type = (node.type_text or "").strip() or None
    return EnumEntity(
        **base,
        kind="enum",
        values=values,
        is_strong=node.strong == YES,
        underlying_type=underlying_type,
    )


def build_function(
    node: DefinitionNode, parent: Optional[DoxygenEntity] = None
) -> FunctionEntity:
    """Build a function, or a method when ``parent`` is a class or struct.

    Modifier flags compare attribute values verbatim. Thrown exceptions are
    not extracted, so ``exceptions`` stays ``None``.
    """
    base = build_base(node)
    is_method = parent is not None and parent.kind in CLASS_LIKE_KINDS
    param_docs = {doc.name: doc.description for doc in node.param_docs}

    parameters = []
    for param in node.params:
        name = param.declname or param.defname or ""
        parameters.append(
            Parameter(
                name=name,
                type=param.type_text,
                default_value=param.defval,
                description=param_docs.get(name),
            )
        )

    return FunctionEntity(
        **base,
        kind="method" if is_method else "function",
        return_type=node.type_text or DEFAULT_RETURN_TYPE,
        parameters=tuple(parameters),
        is_const=node.const == YES,
        is_static=node.static == YES,
        is_virtual=node.virt in (VIRT_VIRTUAL, VIRT_PURE_VIRTUAL),
        is_inline=node.inline == YES,
        is_pure_virtual=node.virt == VIRT_PURE_VIRTUAL,
        parent_class=parent.qualified_name if is_method else None,
        namespace=parent_scope(base["qualified_name"]),
    )


BUILDERS: Dict[str, Builder] = {
    "class": build_class,
    "struct": build_class,
    "function": build_function,
    "namespace": build_namespace,
    "enum": build_enum,
}


def get_builder(kind: Optional[str]) -> Builder:
    """Select the builder for a kind discriminator.

    Raises:
        UnsupportedKindError: If no builder handles ``kind``.
    """
    try:
        return BUILDERS[kind]
    except KeyError:
        raise UnsupportedKindError(kind) from None


def build_entity(
    node: DefinitionNode, parent: Optional[DoxygenEntity] = None
) -> DoxygenEntity:
    """Dispatch ``node`` to its builder."""
    entity = get_builder(node.kind)(node, parent)
    logger.debug("Built %s %s (%s)", entity.kind, entity.qualified_name, entity.id)
    return entity
