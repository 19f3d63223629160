"""
High-level orchestrator for Doxygen XML entity extraction.

``parse_doxygen_dir`` validates the directory, interprets ``index.xml`` and
then walks the retained compound documents one by one. Directory and index
failures abort the parse; compound and member failures are recorded in
``ParseResult.errors`` and processing continues.
"""

import dataclasses
import logging
import os
import time
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Collection, List, Optional, Set

from core.structured_logging import (
    PHASE_COMPOUNDS,
    PHASE_INDEX,
    PHASE_VALIDATE,
    phase_scope,
)
from extraction.builders import build_entity
from extraction.config import (
    COMPOUND_DEF,
    COMPOUND_DOC_ROOT,
    COMPOUND_ENTITY_KINDS,
    INDEX_FILE_NAME,
    MEMBER_ONLY_COMPOUNDS,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    XML_EXTENSION,
)
from extraction.errors import CompoundStructureError, ExtractionError
from extraction.index import CompoundInfo, parse_index
from extraction.models import DoxygenEntity, ParseError, ParseMetadata, ParseResult
from extraction.reader import list_xml_files, read_xml_file, validate_doxygen_dir
from extraction.schema import DefinitionNode, decode_definition

logger = logging.getLogger(__name__)


@dataclass
class ParseOptions:
    """Options controlling which entities a parse keeps.

    Attributes:
        entity_types: Entity kinds to keep; ``None`` or empty keeps all.
        include_private: Keep entities with private visibility.
        include_descriptions: Keep brief/detailed descriptions.
        max_files: Cap on the number of compound documents processed.
    """

    entity_types: Optional[Collection[str]] = None
    include_private: bool = False
    include_descriptions: bool = True
    max_files: Optional[int] = None


@dataclass
class _ParseSession:
    options: ParseOptions
    entities: List[DoxygenEntity] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)
    seen_ids: Set[str] = field(default_factory=set)

    def record(
        self,
        file: str,
        message: str,
        severity: str,
        entity_id: Optional[str] = None,
    ) -> None:
        log = logger.error if severity == SEVERITY_ERROR else logger.warning
        log("%s: %s", file, message)
        self.errors.append(
            ParseError(file=file, message=message, severity=severity, entity_id=entity_id)
        )


def filter_compounds(
    compounds: List[CompoundInfo],
    entity_types: Optional[Collection[str]] = None,
) -> List[CompoundInfo]:
    """Keep compounds that can contribute one of ``entity_types``.

    Without a filter every compound is kept, including kinds no builder
    supports (they are reported later as compound errors).
    """
    if not entity_types:
        return list(compounds)
    wanted = set(entity_types)
    return [
        c for c in compounds if COMPOUND_ENTITY_KINDS.get(c.kind, set()) & wanted
    ]


def should_include_entity(entity: DoxygenEntity, options: ParseOptions) -> bool:
    """Apply the kind and visibility inclusion rules to one entity."""
    if options.entity_types and entity.kind not in options.entity_types:
        return False
    if not options.include_private and entity.visibility == "private":
        return False
    return True


def decode_compound_document(text: str, source: str) -> DefinitionNode:
    """Parse a compound document and decode its ``compounddef``.

    Raises:
        CompoundStructureError: If the text is not XML or has no
            ``doxygen/compounddef``.
        SchemaError: If the ``compounddef`` itself cannot be decoded.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise CompoundStructureError(f"Invalid XML: {e}", path=source) from e

    if root.tag != COMPOUND_DOC_ROOT:
        raise CompoundStructureError(
            f"Invalid compound structure: expected <{COMPOUND_DOC_ROOT}> root, "
            f"found <{root.tag}>",
            path=source,
        )
    compound_def = root.find(COMPOUND_DEF)
    if compound_def is None:
        raise CompoundStructureError(
            f"Invalid compound structure: no <{COMPOUND_DEF}>", path=source
        )
    return decode_definition(compound_def)


def _add_entity(session: _ParseSession, entity: DoxygenEntity, file_name: str) -> None:
    options = session.options
    if not should_include_entity(entity, options):
        return
    if entity.id in session.seen_ids:
        session.record(
            file_name,
            f"Duplicate entity id {entity.id} ({entity.qualified_name}) skipped",
            SEVERITY_WARNING,
            entity_id=entity.id,
        )
        return
    if not options.include_descriptions:
        entity = dataclasses.replace(
            entity, brief_description=None, detailed_description=None
        )
    session.seen_ids.add(entity.id)
    session.entities.append(entity)


def _parse_compound(xml_dir: str, compound: CompoundInfo, session: _ParseSession) -> int:
    """Extract a compound and its members; return the number of entities kept."""
    file_name = f"{compound.refid}{XML_EXTENSION}"
    node = decode_compound_document(
        read_xml_file(os.path.join(xml_dir, file_name)), file_name
    )

    container: Optional[DoxygenEntity] = None
    if node.kind not in MEMBER_ONLY_COMPOUNDS:
        container = build_entity(node)

    members: List[DoxygenEntity] = []
    for rejected in node.iter_rejected():
        session.record(
            file_name,
            f"Failed to parse member: {rejected.message}",
            SEVERITY_WARNING,
            entity_id=rejected.id or None,
        )
    for member_node in node.iter_members():
        try:
            members.append(build_entity(member_node, parent=container))
        except ExtractionError as e:
            session.record(
                file_name,
                f"Failed to parse member: {e}",
                SEVERITY_WARNING,
                entity_id=member_node.id or None,
            )

    before = len(session.entities)
    if container is not None:
        _add_entity(session, container, file_name)
    for member in members:
        _add_entity(session, member, file_name)
    return len(session.entities) - before


def parse_doxygen_dir(
    xml_dir: str,
    options: Optional[ParseOptions] = None,
) -> ParseResult:
    """Extract every entity of a Doxygen XML output directory.

    Compound documents are processed sequentially in index order. A compound
    that fails as a whole is recorded with severity ``error``; a member that
    fails is recorded with severity ``warning``.

    Args:
        xml_dir: Doxygen XML output directory (contains ``index.xml``).
        options: Inclusion options; defaults keep all public/protected
            entities with descriptions.

    Returns:
        The parse result with entities, metadata and non-fatal errors.

    Raises:
        DirectoryNotFoundError: If ``xml_dir`` is missing or not a directory.
        InvalidStructureError: If ``index.xml`` is absent.
        FileReadError: If ``index.xml`` cannot be read.
        MalformedIndexError: If ``index.xml`` is not a Doxygen index.

    Example:
        >>> result = parse_doxygen_dir("docs/xml", ParseOptions(entity_types={"class"}))
        >>> [e.qualified_name for e in result.entities]
        ['ns::Widget']
    """
    options = options or ParseOptions()
    started = time.perf_counter()

    with phase_scope(PHASE_VALIDATE):
        xml_dir = validate_doxygen_dir(xml_dir)
        files = list_xml_files(xml_dir)

    with phase_scope(PHASE_INDEX):
        index_path = os.path.join(xml_dir, INDEX_FILE_NAME)
        index = parse_index(read_xml_file(index_path), source=index_path)

    compounds = filter_compounds(index.compounds, options.entity_types)
    if options.max_files is not None:
        compounds = compounds[: max(options.max_files, 0)]
    logger.info("Loading %d of %d compounds", len(compounds), len(index.compounds))

    session = _ParseSession(options=options)
    with phase_scope(PHASE_COMPOUNDS):
        for compound in compounds:
            try:
                kept = _parse_compound(xml_dir, compound, session)
                logger.debug("Compound %s contributed %d entities", compound.refid, kept)
            except ExtractionError as e:
                session.record(
                    f"{compound.refid}{XML_EXTENSION}",
                    f"Failed to parse compound: {e}",
                    SEVERITY_ERROR,
                )
            except Exception as e:
                logger.error(
                    "Unexpected error processing compound %s", compound.refid, exc_info=True
                )
                session.record(
                    f"{compound.refid}{XML_EXTENSION}",
                    f"Failed to parse compound: {e}",
                    SEVERITY_ERROR,
                )

    parse_time_ms = (time.perf_counter() - started) * 1000.0
    metadata = ParseMetadata(
        doxygen_version=index.version,
        generated_at=datetime.now(timezone.utc),
        total_files=len(files),
        total_entities=len(session.entities),
        parse_time_ms=parse_time_ms,
        from_cache=False,
    )
    logger.info(
        "Parsed %d entities from %d files in %.2fms (%d errors)",
        metadata.total_entities,
        metadata.total_files,
        parse_time_ms,
        len(session.errors),
    )
    return ParseResult(
        entities=tuple(session.entities),
        metadata=metadata,
        errors=tuple(session.errors),
    )
