"""
Virtual filesystem aggregation: resources, sources, path resolution and the
registry that merges them.
"""

from repobrowser.fs.base import Filesystem, FilesystemProvider
from repobrowser.fs.registry import FilesystemRegistry, build_registry
from repobrowser.fs.resolver import resolve
from repobrowser.fs.resources import File, Folder, Resource, resource_sort_key

__all__ = [
    "File",
    "Filesystem",
    "FilesystemProvider",
    "FilesystemRegistry",
    "Folder",
    "Resource",
    "build_registry",
    "resolve",
    "resource_sort_key",
]
