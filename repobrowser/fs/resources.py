"""
Resource Model — the {Folder, File} tagged union every filesystem produces.

A resource is identified by (owning filesystem, relative path). Paths use "/"
regardless of backend and never start with a separator; the root is "".

Backend-specific state of a File lives in its *content* object (FileContent).
A content object may also implement MimeTypeProvider.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, BinaryIO, List, Optional, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    from repobrowser.fs.base import Filesystem

logger = logging.getLogger("repobrowser.fs.resources")

SEPARATOR = "/"
DEFAULT_MIME_TYPE = "application/octet-stream"


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

@runtime_checkable
class FileContent(Protocol):
    """Byte content behind a File."""

    @property
    def size(self) -> int: ...

    def open(self) -> BinaryIO: ...


@runtime_checkable
class MimeTypeProvider(Protocol):
    """Optional capability: content that knows its own MIME type."""

    @property
    def mime_type(self) -> str: ...


class BytesContent:
    """Repeatable in-memory content."""

    def __init__(self, data: bytes):
        self._data = data

    @property
    def size(self) -> int:
        return len(self._data)

    def open(self) -> BinaryIO:
        return io.BytesIO(self._data)


class TypedBytesContent(BytesContent):
    """In-memory content that reports a MIME type."""

    def __init__(self, data: bytes, mime_type: str):
        super().__init__(data)
        self._mime_type = mime_type

    @property
    def mime_type(self) -> str:
        return self._mime_type


class TempFileStream(io.FileIO):
    """
    Read stream over a disposable temporary file.

    The file is deleted when the stream is closed, or as soon as a read
    reaches end of stream.
    """

    def __init__(self, path: str):
        super().__init__(path, "rb")
        self._temp_path = path

    def read(self, size: int = -1) -> bytes:
        data = super().read(size)
        if not data and size != 0:
            self.close()
        return data

    def readinto(self, buffer) -> Optional[int]:
        count = super().readinto(buffer)
        if count == 0 and len(buffer):
            self.close()
        return count

    def readline(self, size: Optional[int] = -1) -> bytes:
        line = super().readline(size)
        if not line and size != 0:
            self.close()
        return line

    def close(self) -> None:
        try:
            super().close()
        finally:
            try:
                os.unlink(self._temp_path)
            except FileNotFoundError:
                pass

    @property
    def temp_path(self) -> str:
        return self._temp_path


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------

def join_path(parent: str, name: str) -> str:
    """Join a relative parent path and a child name."""
    return f"{parent}{SEPARATOR}{name}" if parent else name


def split_path(path: str) -> List[str]:
    """Split a path into its non-empty segments."""
    return [segment for segment in path.split(SEPARATOR) if segment]


def parent_path(path: str) -> str:
    """Path of the containing folder ("" for top-level entries)."""
    segments = split_path(path)
    return SEPARATOR.join(segments[:-1])


@dataclass(frozen=True)
class Folder:
    """A folder handle. Existence is checked against the backend on demand."""

    filesystem: "Filesystem"
    path: str
    last_modified: int = field(default=0, compare=False)

    is_folder = True

    @property
    def name(self) -> str:
        return self.path.rsplit(SEPARATOR, 1)[-1]

    def exists(self) -> bool:
        return self.path == "" or self.filesystem.folder_exists(self.path)

    def parent(self) -> Optional["Folder"]:
        if self.path == "":
            return None
        return self.filesystem.resolve_folder(parent_path(self.path))

    def list_entries(self) -> List["Resource"]:
        return self.filesystem.list_entries(self.path)

    def find_resource(self, name: str, recursive: bool = False) -> Optional["Resource"]:
        return self.filesystem.find_resource(self, name, recursive)

    def __repr__(self) -> str:
        return f"<Folder({self.filesystem.name}:{self.path!r})>"


@dataclass(frozen=True)
class File:
    """A file handle with size, modification time and openable content."""

    filesystem: "Filesystem"
    path: str
    content: FileContent = field(compare=False)
    last_modified: int = field(default=0, compare=False)

    is_folder = False

    @property
    def name(self) -> str:
        return self.path.rsplit(SEPARATOR, 1)[-1]

    @property
    def size(self) -> int:
        return self.content.size

    @property
    def mime_type(self) -> Optional[str]:
        """The content's own MIME type, or None if it does not provide one."""
        if isinstance(self.content, MimeTypeProvider):
            return self.content.mime_type
        return None

    def exists(self) -> bool:
        return True

    def parent(self) -> Optional[Folder]:
        return self.filesystem.resolve_folder(parent_path(self.path))

    def open(self) -> BinaryIO:
        return self.content.open()

    def read_bytes(self) -> bytes:
        with self.open() as stream:
            return stream.read()

    def __repr__(self) -> str:
        return f"<File({self.filesystem.name}:{self.path!r})>"


Resource = Union[Folder, File]


def resource_sort_key(resource: Resource):
    """Folders before files, then case-insensitive name."""
    return (0 if resource.is_folder else 1, resource.name.lower())


def guess_mime_type(file: File) -> str:
    """MIME type from the content capability, else by file name."""
    if file.mime_type:
        return file.mime_type
    guessed, _ = mimetypes.guess_type(file.name)
    return guessed or DEFAULT_MIME_TYPE
