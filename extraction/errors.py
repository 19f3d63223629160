"""
Exception hierarchy for Doxygen XML extraction.

Directory- and index-level failures are fatal and abort a parse. Compound,
schema and kind failures are recoverable: the orchestrator records them as
``ParseError`` entries and moves on.
"""

from typing import Optional


class ExtractionError(Exception):
    """Base class for all extraction failures."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class DirectoryNotFoundError(ExtractionError):
    """The XML directory does not exist or is not a directory."""


class FileReadError(ExtractionError):
    """An XML document could not be read from disk."""


class InvalidStructureError(ExtractionError):
    """The directory is not a Doxygen XML output directory."""


class MalformedIndexError(ExtractionError):
    """``index.xml`` is not XML or lacks the ``doxygenindex`` root."""


class CompoundStructureError(ExtractionError):
    """A compound document is not XML or lacks a ``compounddef``."""


class SchemaError(ExtractionError):
    """An XML element is missing data its decoder requires."""


class UnsupportedKindError(ExtractionError):
    """No entity builder exists for a kind discriminator."""

    def __init__(self, kind: Optional[str]):
        super().__init__(f"Unsupported entity kind: {kind}")
        self.kind = kind
