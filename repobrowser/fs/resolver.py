"""
Path Resolver — walk a "/"-separated path through one filesystem.

A path that does not resolve yields None; nothing is raised for it.
AccessError from a guarded filesystem propagates.
"""

from __future__ import annotations

from typing import Optional

from repobrowser.fs.base import Filesystem
from repobrowser.fs.resources import Resource, split_path


def resolve(filesystem: Filesystem, path: str) -> Optional[Resource]:
    """
    Resolve path against filesystem.

    Empty segments are dropped; no segments yields the root folder. Every
    non-terminal segment must be a folder, otherwise the result is None.
    """
    segments = split_path(path)
    current = filesystem.root()
    if not segments:
        return current

    for segment in segments[:-1]:
        found = filesystem.find_resource(current, segment, recursive=False)
        if found is None or not found.is_folder:
            return None
        current = found

    return filesystem.find_resource(current, segments[-1], recursive=False)
