"""
Layer 1: Extraction Engine

Doxygen XML reader and entity extractor.
Turns a Doxygen XML output directory into a flat list of immutable
class, function, namespace and enum entities.
"""

from extraction.models import (
    BaseClass,
    ClassEntity,
    DoxygenEntity,
    Entity,
    EnumEntity,
    EnumValue,
    FunctionEntity,
    MemberReference,
    NamespaceEntity,
    Parameter,
    ParseError,
    ParseMetadata,
    ParseResult,
    TemplateParam,
)
from extraction.errors import (
    CompoundStructureError,
    DirectoryNotFoundError,
    ExtractionError,
    FileReadError,
    InvalidStructureError,
    MalformedIndexError,
    SchemaError,
    UnsupportedKindError,
)
from extraction.reader import list_xml_files, read_xml_file, validate_doxygen_dir
from extraction.index import CompoundInfo, DoxygenIndex, parse_index
from extraction.schema import DefinitionNode, decode_definition, flatten_text
from extraction.builders import BUILDERS, build_base, build_entity, get_builder
from extraction.extractor import (
    ParseOptions,
    filter_compounds,
    parse_doxygen_dir,
    should_include_entity,
)

__all__ = [
    # Data models
    "BaseClass",
    "ClassEntity",
    "DoxygenEntity",
    "Entity",
    "EnumEntity",
    "EnumValue",
    "FunctionEntity",
    "MemberReference",
    "NamespaceEntity",
    "Parameter",
    "ParseError",
    "ParseMetadata",
    "ParseResult",
    "TemplateParam",
    # Errors
    "CompoundStructureError",
    "DirectoryNotFoundError",
    "ExtractionError",
    "FileReadError",
    "InvalidStructureError",
    "MalformedIndexError",
    "SchemaError",
    "UnsupportedKindError",
    # Low-level reading and decoding
    "list_xml_files",
    "read_xml_file",
    "validate_doxygen_dir",
    "CompoundInfo",
    "DoxygenIndex",
    "parse_index",
    "DefinitionNode",
    "decode_definition",
    "flatten_text",
    # Builders
    "BUILDERS",
    "build_base",
    "build_entity",
    "get_builder",
    # High-level orchestration
    "ParseOptions",
    "filter_compounds",
    "parse_doxygen_dir",
    "should_include_entity",
]
