"""
Repository Documents — the synthesized p2 XML files and their XML helpers.

Every document is UTF-8, starts with the XML declaration followed by a
repository-type processing instruction, and carries one <repository> root.
Container elements record their child count in a "size" attribute.
"""

from __future__ import annotations

import io
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, Iterable, Optional, Tuple

logger = logging.getLogger("repobrowser.p2.documents")

XML_MIME_TYPE = "text/xml"

CONTENT_XML = "content.xml"
ARTIFACTS_XML = "artifacts.xml"
COMPOSITE_CONTENT_XML = "compositeContent.xml"
COMPOSITE_ARTIFACTS_XML = "compositeArtifacts.xml"


@dataclass(frozen=True)
class RepositoryDocument:
    """
    An immutable generated document.

    Usable directly as File content: open() returns a fresh stream each time.
    """

    name: str
    content: bytes = field(repr=False)
    last_modified: int = 0

    @property
    def mime_type(self) -> str:
        return XML_MIME_TYPE

    @property
    def size(self) -> int:
        return len(self.content)

    def open(self) -> BinaryIO:
        return io.BytesIO(self.content)

    def text(self) -> str:
        return self.content.decode("utf-8")

    def parse(self) -> ET.Element:
        """Parse the document back into its <repository> element."""
        return ET.fromstring(self.content)


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------

def new_repository(name: str, repo_type: str, version: str) -> ET.Element:
    return ET.Element("repository", {"name": name, "type": repo_type, "version": version})


def sized(parent: ET.Element, tag: str, attrib: Optional[Dict[str, str]] = None) -> ET.Element:
    """Add a container child whose size attribute comes first."""
    element = ET.SubElement(parent, tag, {"size": "0"})
    if attrib:
        element.attrib.update(attrib)
    return element


def close_size(element: ET.Element) -> ET.Element:
    """Set the size attribute to the number of children present."""
    element.set("size", str(len(element)))
    return element


def add_properties(parent: ET.Element, properties: Iterable[Tuple[str, str]]) -> ET.Element:
    """Add a <properties> block of name/value <property> children."""
    block = sized(parent, "properties")
    for name, value in properties:
        ET.SubElement(block, "property", {"name": name, "value": value})
    return close_size(block)


def text_element(parent: ET.Element, tag: str, text: str, attrib: Optional[Dict[str, str]] = None) -> ET.Element:
    element = ET.SubElement(parent, tag, attrib or {})
    element.text = text
    return element


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def serialize(
    root: ET.Element,
    instruction: str,
    instruction_version: str,
    name: str,
    last_modified: int = 0,
) -> RepositoryDocument:
    """Render a repository element behind its declaration and processing instruction."""
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    text = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<?{instruction} version='{instruction_version}'?>\n"
        f"{body}\n"
    )
    document = RepositoryDocument(name=name, content=text.encode("utf-8"), last_modified=last_modified)
    logger.debug(f"Serialized {name}: {document.size} bytes")
    return document
