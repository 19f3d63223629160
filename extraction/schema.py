"""
Typed decoding of Doxygen compound and member definitions.

Builders never touch ``xml.etree`` elements directly. Each ``compounddef``
or ``memberdef`` element is decoded once into a ``DefinitionNode`` whose
fields are explicit optionals with named defaults; repeated children
(sections, members, params, base refs, enum values) always become ordered
tuples, even when only one element is present.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from extraction.config import COMPOUND_DEF, MEMBER_DEF, PARAGRAPH, SECTION_DEF
from extraction.errors import SchemaError

logger = logging.getLogger(__name__)


def flatten_text(element: Optional[ET.Element]) -> str:
    """Flatten nested Doxygen markup into plain text.

    An element with ``para`` children yields its flattened paragraphs joined
    by newlines. Any other element yields its own text, the flattened text
    of each child and each child's tail, every piece trimmed, empty pieces
    dropped, joined by single spaces.

    Example:
        >>> el = ET.fromstring("<d><para>Draws the <ref>Widget</ref> now.</para>"
        ...                    "<para>Second.</para></d>")
        >>> flatten_text(el)
        'Draws the Widget now.\\nSecond.'
    """
    if element is None:
        return ""

    paragraphs = element.findall(PARAGRAPH)
    if paragraphs:
        return "\n".join(flatten_text(p) for p in paragraphs).strip()

    pieces: List[str] = []
    if element.text and element.text.strip():
        pieces.append(element.text.strip())
    for child in element:
        child_text = flatten_text(child)
        if child_text:
            pieces.append(child_text)
        if child.tail and child.tail.strip():
            pieces.append(child.tail.strip())
    return " ".join(pieces).strip()


def _optional_text(element: ET.Element, tag: str) -> Optional[str]:
    """Trimmed text of child ``tag``; ``None`` when absent or blank."""
    child = element.find(tag)
    if child is None:
        return None
    text = flatten_text(child)
    return text or None


@dataclass(frozen=True)
class LocationNode:
    file: str = ""
    line: int = 0


@dataclass(frozen=True)
class ParamNode:
    """A ``param`` element of a function or template parameter list."""

    declname: Optional[str] = None
    defname: Optional[str] = None
    type_text: str = ""
    defval: Optional[str] = None


@dataclass(frozen=True)
class ParamDocNode:
    """Documentation of one parameter from a ``parameterlist``."""

    name: str
    description: Optional[str] = None


@dataclass(frozen=True)
class BaseRefNode:
    name: str
    refid: Optional[str] = None
    prot: Optional[str] = None
    virt: Optional[str] = None


@dataclass(frozen=True)
class EnumValueNode:
    id: str
    name: str
    initializer: Optional[str] = None
    brief: Optional[str] = None


@dataclass(frozen=True)
class MemberHead:
    """Raw identity attributes of a ``memberdef``, read without validation.

    Heads exist for every member, decoded or not, so container-level facts
    (member listings, abstractness) never depend on a member's body.
    """

    id: str
    kind: str = ""
    name: str = ""
    prot: Optional[str] = None
    virt: Optional[str] = None


def read_member_head(element: ET.Element) -> MemberHead:
    return MemberHead(
        id=element.get("id", ""),
        kind=element.get("kind", ""),
        name=_optional_text(element, "name") or "",
        prot=element.get("prot"),
        virt=element.get("virt"),
    )


@dataclass(frozen=True)
class RejectedMember:
    """A ``memberdef`` that failed to decode; kept so it can be reported."""

    head: MemberHead
    message: str

    @property
    def id(self) -> str:
        return self.head.id


@dataclass(frozen=True)
class SectionNode:
    kind: str
    members: Tuple["DefinitionNode", ...] = ()
    sections: Tuple["SectionNode", ...] = ()
    rejected: Tuple[RejectedMember, ...] = ()
    heads: Tuple[MemberHead, ...] = ()

    def iter_members(self) -> Iterator["DefinitionNode"]:
        """Yield members of this section and of nested sections, in order."""
        yield from self.members
        for section in self.sections:
            yield from section.iter_members()

    def iter_heads(self) -> Iterator[MemberHead]:
        yield from self.heads
        for section in self.sections:
            yield from section.iter_heads()

    def iter_rejected(self) -> Iterator[RejectedMember]:
        yield from self.rejected
        for section in self.sections:
            yield from section.iter_rejected()


@dataclass(frozen=True)
class DefinitionNode:
    """Decoded ``compounddef`` or ``memberdef``.

    Attribute fields (``prot``, ``static``, ``const``, ``inline``, ``virt``,
    ``strong``) hold the raw attribute strings; interpretation is left to the
    builders. Text fields are flattened and ``None`` when absent or blank,
    except ``type_text`` which is ``""`` for a present but empty ``type``.
    """

    tag: str
    id: str
    kind: str
    prot: Optional[str] = None
    static: Optional[str] = None
    const: Optional[str] = None
    inline: Optional[str] = None
    virt: Optional[str] = None
    strong: Optional[str] = None
    compoundname: Optional[str] = None
    name: Optional[str] = None
    qualifiedname: Optional[str] = None
    location: Optional[LocationNode] = None
    brief: Optional[str] = None
    detailed: Optional[str] = None
    type_text: Optional[str] = None
    params: Tuple[ParamNode, ...] = ()
    template_params: Optional[Tuple[ParamNode, ...]] = None
    param_docs: Tuple[ParamDocNode, ...] = ()
    base_refs: Tuple[BaseRefNode, ...] = ()
    enum_values: Tuple[EnumValueNode, ...] = ()
    sections: Tuple[SectionNode, ...] = ()

    def iter_members(self) -> Iterator["DefinitionNode"]:
        """Yield every member definition of every section, in document order."""
        for section in self.sections:
            yield from section.iter_members()

    def iter_rejected(self) -> Iterator[RejectedMember]:
        """Yield members that could not be decoded."""
        for section in self.sections:
            yield from section.iter_rejected()

    def iter_member_heads(self) -> Iterator[MemberHead]:
        """Yield the head of every member, rejected ones included, in document order."""
        for section in self.sections:
            yield from section.iter_heads()


def _decode_location(element: ET.Element, owner_id: str) -> Optional[LocationNode]:
    location = element.find("location")
    if location is None:
        return None
    raw_line = location.get("line")
    try:
        line = int(raw_line) if raw_line else 0
    except ValueError as e:
        raise SchemaError(f"Invalid line number {raw_line!r} for {owner_id}") from e
    return LocationNode(file=location.get("file", ""), line=line)


def _decode_param(element: ET.Element) -> ParamNode:
    type_element = element.find("type")
    return ParamNode(
        declname=_optional_text(element, "declname"),
        defname=_optional_text(element, "defname"),
        type_text=flatten_text(type_element) if type_element is not None else "",
        defval=_optional_text(element, "defval"),
    )


def _decode_param_docs(element: ET.Element) -> Tuple[ParamDocNode, ...]:
    detailed = element.find("detaileddescription")
    if detailed is None:
        return ()

    docs: List[ParamDocNode] = []
    for param_list in detailed.iter("parameterlist"):
        if param_list.get("kind") != "param":
            continue
        for item in param_list.findall("parameteritem"):
            description = _optional_text(item, "parameterdescription")
            for name_element in item.iter("parametername"):
                name = flatten_text(name_element)
                if name:
                    docs.append(ParamDocNode(name=name, description=description))
    return tuple(docs)


def _decode_base_ref(element: ET.Element) -> BaseRefNode:
    return BaseRefNode(
        name=flatten_text(element),
        refid=element.get("refid") or None,
        prot=element.get("prot"),
        virt=element.get("virt"),
    )


def _decode_enum_value(element: ET.Element) -> EnumValueNode:
    return EnumValueNode(
        id=element.get("id", ""),
        name=_optional_text(element, "name") or "",
        initializer=_optional_text(element, "initializer"),
        brief=_optional_text(element, "briefdescription"),
    )


def _decode_section(element: ET.Element) -> SectionNode:
    # Undecodable members are collected, not raised.
    members: List[DefinitionNode] = []
    rejected: List[RejectedMember] = []
    heads: List[MemberHead] = []
    for member in element.findall(MEMBER_DEF):
        head = read_member_head(member)
        heads.append(head)
        try:
            members.append(decode_definition(member))
        except SchemaError as e:
            logger.warning("Rejected member %s: %s", head.id or "(no id)", e)
            rejected.append(RejectedMember(head=head, message=str(e)))

    return SectionNode(
        kind=element.get("kind", ""),
        members=tuple(members),
        sections=tuple(_decode_section(s) for s in element.findall(SECTION_DEF)),
        rejected=tuple(rejected),
        heads=tuple(heads),
    )


def decode_definition(element: ET.Element) -> DefinitionNode:
    """Decode a ``compounddef`` or ``memberdef`` element.

    Args:
        element: The definition element.

    Returns:
        The decoded node, including nested sections and members.

    Raises:
        SchemaError: If the element is not a definition, has no ``kind``,
            or carries an invalid location.
    """
    if element.tag not in (COMPOUND_DEF, MEMBER_DEF):
        raise SchemaError(f"Expected <{COMPOUND_DEF}> or <{MEMBER_DEF}>, got <{element.tag}>")

    element_id = element.get("id", "")
    kind = element.get("kind")
    if not kind:
        raise SchemaError(f"<{element.tag}> {element_id or '(no id)'} has no kind attribute")

    type_element = element.find("type")
    template_list = element.find("templateparamlist")

    return DefinitionNode(
        tag=element.tag,
        id=element_id,
        kind=kind,
        prot=element.get("prot"),
        static=element.get("static"),
        const=element.get("const"),
        inline=element.get("inline"),
        virt=element.get("virt"),
        strong=element.get("strong"),
        compoundname=_optional_text(element, "compoundname"),
        name=_optional_text(element, "name"),
        qualifiedname=_optional_text(element, "qualifiedname"),
        location=_decode_location(element, element_id),
        brief=_optional_text(element, "briefdescription"),
        detailed=_optional_text(element, "detaileddescription"),
        type_text=flatten_text(type_element) if type_element is not None else None,
        params=tuple(_decode_param(p) for p in element.findall("param")),
        template_params=(
            tuple(_decode_param(p) for p in template_list.findall("param"))
            if template_list is not None
            else None
        ),
        param_docs=_decode_param_docs(element),
        base_refs=tuple(_decode_base_ref(b) for b in element.findall("basecompoundref")),
        enum_values=tuple(_decode_enum_value(v) for v in element.findall("enumvalue")),
        sections=tuple(_decode_section(s) for s in element.findall(SECTION_DEF)),
    )
