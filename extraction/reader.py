"""
Discovery and reading of Doxygen XML documents.

Every failure here is fatal to a parse and is raised as an
``ExtractionError`` subclass carrying the offending path.
"""

import logging
import os
from typing import List

from extraction.config import INDEX_FILE_NAME, XML_EXTENSION
from extraction.errors import (
    DirectoryNotFoundError,
    FileReadError,
    InvalidStructureError,
)

logger = logging.getLogger(__name__)


def list_xml_files(xml_dir: str) -> List[str]:
    """List the XML documents of a Doxygen output directory.

    Args:
        xml_dir: Directory produced by Doxygen with ``GENERATE_XML=YES``.

    Returns:
        Sorted absolute paths of every ``*.xml`` file directly in ``xml_dir``.

    Raises:
        DirectoryNotFoundError: If ``xml_dir`` is missing or not a directory.

    Example:
        >>> files = list_xml_files("docs/xml")
        >>> any(f.endswith("index.xml") for f in files)
        True
    """
    xml_dir = os.path.abspath(xml_dir)
    if not os.path.isdir(xml_dir):
        raise DirectoryNotFoundError(
            f"XML directory not found or not a directory: {xml_dir}",
            path=xml_dir,
        )

    try:
        entries = os.listdir(xml_dir)
    except OSError as e:
        raise DirectoryNotFoundError(
            f"Cannot list XML directory {xml_dir}: {e}", path=xml_dir
        ) from e

    xml_files = sorted(
        os.path.join(xml_dir, entry)
        for entry in entries
        if entry.endswith(XML_EXTENSION)
        and os.path.isfile(os.path.join(xml_dir, entry))
    )
    logger.info("Found %d XML files in %s", len(xml_files), xml_dir)
    return xml_files


def read_xml_file(file_path: str) -> str:
    """Read an XML document as UTF-8 text.

    Raises:
        FileReadError: If the file is missing, unreadable or not UTF-8.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Error reading XML file %s: %s", file_path, e)
        raise FileReadError(f"Cannot read XML file {file_path}: {e}", path=file_path) from e


def validate_doxygen_dir(xml_dir: str) -> str:
    """Check that ``xml_dir`` looks like Doxygen XML output.

    Returns:
        The absolute directory path.

    Raises:
        DirectoryNotFoundError: If ``xml_dir`` is missing or not a directory.
        InvalidStructureError: If ``index.xml`` is absent.
    """
    xml_dir = os.path.abspath(xml_dir)
    if not os.path.isdir(xml_dir):
        raise DirectoryNotFoundError(
            f"XML directory not found or not a directory: {xml_dir}",
            path=xml_dir,
        )

    index_path = os.path.join(xml_dir, INDEX_FILE_NAME)
    if not os.path.isfile(index_path):
        raise InvalidStructureError(
            f"{INDEX_FILE_NAME} not found in {xml_dir} - not a Doxygen XML directory",
            path=xml_dir,
        )
    return xml_dir
