"""
Interpretation of the Doxygen ``index.xml`` document.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import List

from extraction.config import INDEX_ROOT
from extraction.errors import MalformedIndexError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompoundInfo:
    """One compound listed in the index.

    Attributes:
        refid: Reference id; the compound document is ``<refid>.xml``.
        kind: Compound kind (class, struct, namespace, file, ...).
        name: Compound display name, usually fully qualified.
    """

    refid: str
    kind: str
    name: str


@dataclass(frozen=True)
class DoxygenIndex:
    version: str
    compounds: List[CompoundInfo]


def parse_index(text: str, source: str = "index.xml") -> DoxygenIndex:
    """Parse the index document into its version tag and compound list.

    Compound order follows the document. Compounds without a ``refid``
    cannot be resolved to a document and are skipped.

    Args:
        text: Raw XML text of ``index.xml``.
        source: Path used in error messages.

    Returns:
        The interpreted index.

    Raises:
        MalformedIndexError: If the text is not XML or its root element is
            not ``doxygenindex``.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise MalformedIndexError(f"Invalid XML in {source}: {e}", path=source) from e

    if root.tag != INDEX_ROOT:
        raise MalformedIndexError(
            f"Invalid index structure in {source}: expected <{INDEX_ROOT}> root, "
            f"found <{root.tag}>",
            path=source,
        )

    compounds: List[CompoundInfo] = []
    for element in root.findall("compound"):
        refid = element.get("refid")
        if not refid:
            logger.warning("Skipping index compound without refid in %s", source)
            continue
        compounds.append(
            CompoundInfo(
                refid=refid,
                kind=element.get("kind", ""),
                name=(element.findtext("name") or "").strip(),
            )
        )

    version = root.get("version") or "unknown"
    logger.info("Index lists %d compounds (Doxygen %s)", len(compounds), version)
    return DoxygenIndex(version=version, compounds=compounds)
