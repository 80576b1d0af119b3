"""
In-Memory Source — synthetic trees of documents held in memory.

Folders are created implicitly when a file is added below them. File
content is any FileContent; RepositoryDocuments can be added directly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from repobrowser.fs.base import Filesystem, FilesystemProvider
from repobrowser.fs.resources import (
    File,
    FileContent,
    Folder,
    Resource,
    join_path,
    parent_path,
    split_path,
)

if TYPE_CHECKING:
    from repobrowser.engine.context import RequestContext
    from repobrowser.p2.documents import RepositoryDocument

logger = logging.getLogger("repobrowser.fs.memory")


class MemoryFilesystem(Filesystem):
    """
    A read-only tree built up front.

    Usage:
        fs = MemoryFilesystem("docs")
        fs.add_file("site/content.xml", BytesContent(b"<repository/>"))
        fs.list_entries("site")  # → [<File(docs:'site/content.xml')>]
    """

    def __init__(self, name: str = "memory", last_modified: int = 0):
        super().__init__(name)
        self._folders: Dict[str, int] = {"": last_modified}
        self._files: Dict[str, File] = {}

    # ── Building ──

    def add_folder(self, path: str, last_modified: int = 0) -> Folder:
        segments = split_path(path)
        current = ""
        for segment in segments:
            current = join_path(current, segment)
            if current not in self._folders:
                self._folders[current] = last_modified
        return Folder(self, current, self._folders[current])

    def add_file(self, path: str, content: FileContent, last_modified: int = 0) -> File:
        normalized = "/".join(split_path(path))
        self.add_folder(parent_path(normalized), last_modified)
        file = File(self, normalized, content, last_modified)
        self._files[normalized] = file
        return file

    def add_document(self, document: "RepositoryDocument", folder: str = "") -> File:
        return self.add_file(join_path("/".join(split_path(folder)), document.name),
                             document, document.last_modified)

    # ── Filesystem ──

    def list_entries(self, path: str) -> List[Resource]:
        normalized = "/".join(split_path(path))
        entries: List[Resource] = [
            Folder(self, folder_path, modified)
            for folder_path, modified in self._folders.items()
            if folder_path and parent_path(folder_path) == normalized
        ]
        entries.extend(
            file for file_path, file in self._files.items()
            if parent_path(file_path) == normalized
        )
        return entries

    def folder_exists(self, path: str) -> bool:
        return "/".join(split_path(path)) in self._folders

    def folder_last_modified(self, path: str) -> int:
        return self._folders.get("/".join(split_path(path)), 0)

    def get_file(self, path: str) -> Optional[File]:
        return self._files.get("/".join(split_path(path)))


class MemoryFilesystemProvider(FilesystemProvider):
    """Provides pre-built in-memory filesystems."""

    name = "memory"

    def __init__(self, *filesystems: MemoryFilesystem):
        self._filesystems = list(filesystems)

    def add(self, filesystem: MemoryFilesystem) -> None:
        self._filesystems.append(filesystem)

    def get_filesystems(self, context: "RequestContext") -> Iterable[Filesystem]:
        return list(self._filesystems)
