"""
Composite Site Metadata Generator — compositeContent.xml and compositeArtifacts.xml.

Every given filesystem is searched at unbounded depth for content.jar /
content.xml (resp. artifacts.jar / artifacts.xml). The parent folder of each
match becomes one <child location="..."> of the composite repository.
"""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional, Sequence, Tuple

from repobrowser.engine.logging import log, log_document_generated
from repobrowser.p2.documents import (
    COMPOSITE_ARTIFACTS_XML,
    COMPOSITE_CONTENT_XML,
    RepositoryDocument,
    add_properties,
    close_size,
    new_repository,
    serialize,
    sized,
)

if TYPE_CHECKING:
    from repobrowser.fs.base import Filesystem

logger = logging.getLogger("repobrowser.p2.composite")

COMPOSITE_METADATA_REPOSITORY = "org.eclipse.equinox.internal.p2.metadata.repository.CompositeMetadataRepository"
COMPOSITE_ARTIFACT_REPOSITORY = "org.eclipse.equinox.internal.p2.artifact.repository.CompositeArtifactRepository"

CONTENT_FILE_NAMES = ("content.jar", "content.xml")
ARTIFACTS_FILE_NAMES = ("artifacts.jar", "artifacts.xml")

REPOSITORY_NAME_KEY = "appName"


def discover_children(
    filesystems: Iterable["Filesystem"],
    file_names: Sequence[str],
) -> List[Tuple[str, int]]:
    """
    Locate child repositories.

    Per filesystem, all matches of the first file name come before all
    matches of the second. Returns (location, folder last_modified) pairs.
    """
    children: List[Tuple[str, int]] = []
    for filesystem in filesystems:
        root = filesystem.root()
        for file_name in file_names:
            for match in filesystem.find_files(root, file_name):
                folder = match.parent()
                if folder is None:
                    continue
                children.append((folder.path, folder.last_modified))
    return children


def _build(
    children: List[Tuple[str, int]],
    name: str,
    repo_type: str,
    instruction: str,
    file_name: str,
    properties: List[Tuple[str, str]],
) -> Tuple[RepositoryDocument, int]:
    root = new_repository(name, repo_type, "1.0.0")
    add_properties(root, properties)
    block = sized(root, "children")
    for location, _ in children:
        ET.SubElement(block, "child", {"location": location})
    close_size(block)
    last_modified = max((modified for _, modified in children), default=0)
    return serialize(root, instruction, "1.0.0", file_name, last_modified), len(block)


def build_composite_documents(
    filesystems: Sequence["Filesystem"],
    translate: Callable[[str], str],
    request_id: Optional[str] = None,
) -> Tuple[RepositoryDocument, RepositoryDocument]:
    """Build (compositeContent.xml, compositeArtifacts.xml) over the given filesystems."""
    started = time.perf_counter()
    name = translate(REPOSITORY_NAME_KEY)

    content, content_count = _build(
        discover_children(filesystems, CONTENT_FILE_NAMES),
        name,
        COMPOSITE_METADATA_REPOSITORY,
        "compositeMetadataRepository",
        COMPOSITE_CONTENT_XML,
        [("p2.atomic.composite.loading", "true")],
    )
    artifacts, artifacts_count = _build(
        discover_children(filesystems, ARTIFACTS_FILE_NAMES),
        name,
        COMPOSITE_ARTIFACT_REPOSITORY,
        "compositeArtifactRepository",
        COMPOSITE_ARTIFACTS_XML,
        [],
    )

    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    logger.info(f"Composite documents generated over {len(filesystems)} filesystems in {duration_ms}ms")
    for document, count in ((content, content_count), (artifacts, artifacts_count)):
        log(log_document_generated(
            document=document.name,
            request_id=request_id,
            duration_ms=duration_ms,
            size_bytes=document.size,
            entry_count=count,
        ))
    return content, artifacts
