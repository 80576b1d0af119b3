"""
Composite Site Source — the aggregate root's compositeContent.xml and
compositeArtifacts.xml.

Both documents are computed from every other filesystem of the registry and
memoized in the request context.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, List, Tuple

from repobrowser.fs.base import Filesystem, FilesystemProvider
from repobrowser.fs.resources import File, Resource, split_path
from repobrowser.p2.composite import build_composite_documents
from repobrowser.p2.documents import RepositoryDocument

if TYPE_CHECKING:
    from repobrowser.engine.context import RequestContext
    from repobrowser.engine.translation import TranslationSet
    from repobrowser.fs.registry import FilesystemRegistry

logger = logging.getLogger("repobrowser.fs.composite")

COMPOSITE_CACHE_KEY = "repobrowser.composite.documents"


class CompositeSiteFilesystem(Filesystem):
    """Root-level composite repository documents over all other sources."""

    def __init__(
        self,
        registry: "FilesystemRegistry",
        context: "RequestContext",
        translate: Callable[[str], str],
        name: str = "composite",
    ):
        super().__init__(name)
        self._registry = registry
        self._context = context
        self._translate = translate

    def documents(self) -> Tuple[RepositoryDocument, RepositoryDocument]:
        def compute() -> Tuple[RepositoryDocument, RepositoryDocument]:
            sources = [
                fs for fs in self._registry.get_filesystems(self._context)
                if not isinstance(fs, CompositeSiteFilesystem)
            ]
            return build_composite_documents(sources, self._translate, self._context.request_id)

        return self._context.memoize(COMPOSITE_CACHE_KEY, compute)

    def list_entries(self, path: str) -> List[Resource]:
        if split_path(path):
            return []
        return [File(self, doc.name, doc, doc.last_modified) for doc in self.documents()]

    def folder_exists(self, path: str) -> bool:
        return not split_path(path)


class CompositeSiteProvider(FilesystemProvider):
    """Provides exactly one CompositeSiteFilesystem."""

    name = "composite"

    def __init__(self, registry: "FilesystemRegistry", translator: "TranslationSet"):
        self._registry = registry
        self._translator = translator

    def get_filesystems(self, context: "RequestContext") -> Iterable[Filesystem]:
        translate = self._translator.for_language(context.preferred_language)
        return [CompositeSiteFilesystem(self._registry, context, translate)]
