"""
Filesystem & Provider SPI — abstract bases every source implements.

A Filesystem is a read-only, closable handle over one source. Subclasses
implement list_entries() and folder_exists(); lookup, recursive search and
the write guards are shared here.

A FilesystemProvider produces zero or more filesystems per request context.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Iterable, List, Optional

from repobrowser.engine.errors import UnsupportedOperationError
from repobrowser.fs.resources import File, Folder, Resource, split_path

if TYPE_CHECKING:
    from repobrowser.engine.context import RequestContext

logger = logging.getLogger("repobrowser.fs.base")


class Filesystem(ABC):
    """Read-only virtual filesystem."""

    def __init__(self, name: str):
        self.name = name
        self._closed = False

    # ── Backend hooks ──

    @abstractmethod
    def list_entries(self, path: str) -> List[Resource]:
        """Direct children of the folder at path, in no particular order."""

    @abstractmethod
    def folder_exists(self, path: str) -> bool:
        """Whether a folder exists at a non-root path."""

    def folder_last_modified(self, path: str) -> int:
        """Last modification time of a folder in epoch milliseconds."""
        return 0

    def _do_close(self) -> None:
        """Release backend handles. Called at most once."""

    # ── Shared contract ──

    def root(self) -> Folder:
        return Folder(self, "", self.folder_last_modified(""))

    def resolve_folder(self, path: str) -> Optional[Folder]:
        """A Folder handle for path, or None if no such folder exists."""
        normalized = "/".join(split_path(path))
        if normalized == "":
            return self.root()
        if not self.folder_exists(normalized):
            return None
        return Folder(self, normalized, self.folder_last_modified(normalized))

    def find_resource(self, folder: Folder, name: str, recursive: bool = False) -> Optional[Resource]:
        """
        Find a child named name below folder.

        Non-recursive lookups consider direct children only; recursive lookups
        search depth-first and return the first match.
        """
        entries = self.list_entries(folder.path)
        for entry in entries:
            if entry.name == name:
                return entry
        if recursive:
            for entry in entries:
                if entry.is_folder:
                    found = self.find_resource(entry, name, recursive=True)
                    if found is not None:
                        return found
        return None

    def find_files(self, folder: Folder, name: str) -> List[File]:
        """Every file named name at any depth below folder."""
        result: List[File] = []
        for entry in self.list_entries(folder.path):
            if entry.is_folder:
                result.extend(self.find_files(entry, name))
            elif entry.name == name:
                result.append(entry)
        return result

    def is_readonly(self) -> bool:
        return True

    def close(self) -> None:
        """Release native handles. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._do_close()
        logger.debug(f"Closed filesystem: {self.name}")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "Filesystem":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Write operations (always refused) ──

    def _refuse(self, operation: str, path: str) -> None:
        raise UnsupportedOperationError(
            f"Filesystem '{self.name}' is read-only",
            operation=operation,
            path=path,
            filesystem=self.name,
        )

    def create_file(self, path: str) -> File:
        self._refuse("create_file", path)

    def create_folder(self, path: str) -> Folder:
        self._refuse("create_folder", path)

    def delete(self, path: str) -> None:
        self._refuse("delete", path)

    def rename(self, path: str, new_name: str) -> str:
        self._refuse("rename", path)

    def open_for_write(self, path: str, append: bool = False):
        self._refuse("open_for_write", path)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"


class FilesystemProvider(ABC):
    """Factory producing filesystems for one request context."""

    name: str = "provider"

    @abstractmethod
    def get_filesystems(self, context: "RequestContext") -> Iterable[Filesystem]:
        """
        Enumerate this provider's filesystems.

        Implementations rethrow backend-specific errors as BackendError.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name}')>"
