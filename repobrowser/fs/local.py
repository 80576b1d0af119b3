"""
Local Directory Source — a directory tree on disk exposed as a filesystem.

Every looked-up path is resolved (symlinks included) and must stay below the
base directory; an escape raises AccessError and is written to the security
log. Listed entries whose symlink target lies outside the base are skipped.
"." and ".." segments are collapsed. A missing base directory lists as empty.
"""

from __future__ import annotations

import logging
import os
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO, Iterable, List, Optional, Union

from repobrowser.engine.errors import AccessError, BackendError
from repobrowser.engine.logging import log, log_security_event
from repobrowser.fs.base import Filesystem, FilesystemProvider
from repobrowser.fs.resources import File, Folder, Resource, join_path, split_path

if TYPE_CHECKING:
    from repobrowser.engine.context import RequestContext

logger = logging.getLogger("repobrowser.fs.local")


def _mtime_ms(stat: os.stat_result) -> int:
    return int(stat.st_mtime * 1000)


def _normalize(relative: str) -> str:
    """Collapse "." and ".." segments; "" for the base directory itself."""
    normalized = posixpath.normpath("/".join(split_path(relative)) or ".")
    return "" if normalized == "." else normalized


class LocalFileContent:
    """Content of a file on disk. Reopens the file on every open()."""

    def __init__(self, path: Path):
        self._path = path

    @property
    def size(self) -> int:
        try:
            return self._path.stat().st_size
        except OSError as e:
            raise BackendError(f"Cannot stat {self._path}: {e}", path=str(self._path)) from e

    def open(self) -> BinaryIO:
        try:
            return open(self._path, "rb")
        except OSError as e:
            raise BackendError(f"Cannot open {self._path}: {e}", path=str(self._path)) from e

    @property
    def path(self) -> Path:
        return self._path


class LocalFilesystem(Filesystem):
    """Read-only view of a base directory."""

    def __init__(self, base_dir: Union[str, Path], name: str = "local"):
        super().__init__(name)
        self._base = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base

    def _inside_base(self, path: Path) -> bool:
        try:
            path.resolve().relative_to(self._base.resolve())
        except ValueError:
            return False
        return True

    def _report_escape(self, relative: str) -> None:
        log(log_security_event(
            event="path_traversal_blocked",
            filesystem=self.name,
            path=relative,
            base_dir=str(self._base.resolve()),
        ))

    def _locate(self, relative: str) -> Path:
        """
        Absolute path of a relative path, guarded against escapes.

        Raises:
            AccessError: If the resolved path is outside the base directory.
        """
        candidate = self._base.joinpath(*split_path(relative))
        if not self._inside_base(candidate):
            logger.warning(f"Path escapes base directory of '{self.name}': {relative!r}")
            self._report_escape(relative)
            raise AccessError(
                f"Path '{relative}' escapes the base directory",
                path=relative,
                filesystem=self.name,
                base_dir=str(self._base.resolve()),
            )
        return candidate

    def _to_resource(self, relative: str, entry: Path) -> Optional[Resource]:
        try:
            stat = entry.stat()
        except OSError as e:
            logger.debug(f"Skipping unreadable entry {entry}: {e}")
            return None
        if entry.is_dir():
            return Folder(self, relative, _mtime_ms(stat))
        return File(self, relative, LocalFileContent(entry), _mtime_ms(stat))

    def list_entries(self, path: str) -> List[Resource]:
        target = self._locate(path)
        if not target.is_dir():
            return []
        prefix = _normalize(path)
        entries: List[Resource] = []
        try:
            with os.scandir(target) as it:
                for dir_entry in it:
                    relative = join_path(prefix, dir_entry.name)
                    entry = Path(dir_entry.path)
                    if not self._inside_base(entry):
                        # symlink pointing outside the base
                        logger.debug(f"Skipping entry outside base directory: {relative!r}")
                        self._report_escape(relative)
                        continue
                    resource = self._to_resource(relative, entry)
                    if resource is not None:
                        entries.append(resource)
        except OSError as e:
            raise BackendError(
                f"Cannot list {target}: {e}", path=path, filesystem=self.name
            ) from e
        return entries

    def folder_exists(self, path: str) -> bool:
        return self._locate(path).is_dir()

    def folder_last_modified(self, path: str) -> int:
        target = self._locate(path)
        try:
            return _mtime_ms(target.stat())
        except OSError:
            return 0

    def find_resource(self, folder: Folder, name: str, recursive: bool = False) -> Optional[Resource]:
        if recursive:
            return super().find_resource(folder, name, recursive=True)
        relative = join_path(folder.path, name)
        target = self._locate(relative)
        if not target.exists():
            return None
        normalized = _normalize(relative)
        if normalized == "":
            return self.root()
        return self._to_resource(normalized, target)

    def __repr__(self) -> str:
        return f"<LocalFilesystem(name='{self.name}', base_dir='{self._base}')>"


class LocalFilesystemProvider(FilesystemProvider):
    """Provides one LocalFilesystem over the configured repository directory."""

    name = "local"

    def __init__(self, base_dir: Union[str, Path]):
        self.base_dir = Path(base_dir)

    def get_filesystems(self, context: "RequestContext") -> Iterable[Filesystem]:
        if not self.base_dir.is_dir():
            logger.info(f"Repository directory does not exist: {self.base_dir}")
        return [LocalFilesystem(self.base_dir)]
