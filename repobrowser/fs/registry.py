"""
Filesystem Registry — aggregates every provider's filesystems per request.

Providers run in registration order, once per RequestContext; their
concatenated output is memoized in the context and every filesystem is
closed when the context exits. A failing provider aborts the whole pass.

Usage:
    registry = build_registry(get_config(), translator)
    with RequestContext() as ctx:
        for resource in registry.merged_listing(ctx, "sites"):
            print(resource.name)
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List, Optional

from repobrowser.engine.config import BrowserConfig, resolve_base_dir
from repobrowser.engine.errors import BackendError, RepoBrowserError
from repobrowser.engine.logging import log, log_provider_pass
from repobrowser.fs.base import Filesystem, FilesystemProvider
from repobrowser.fs.resolver import resolve
from repobrowser.fs.resources import Resource, resource_sort_key

if TYPE_CHECKING:
    from repobrowser.engine.context import RequestContext
    from repobrowser.engine.translation import TranslationSet

logger = logging.getLogger("repobrowser.fs.registry")

FILESYSTEMS_CACHE_KEY = "repobrowser.registry.filesystems"


class FilesystemRegistry:
    """Ordered set of providers plus the per-context aggregation."""

    def __init__(self):
        self._providers: List[FilesystemProvider] = []

    def register(self, provider: FilesystemProvider) -> None:
        self._providers.append(provider)
        logger.debug(f"Registered provider: {provider.name}")

    @property
    def providers(self) -> List[FilesystemProvider]:
        return list(self._providers)

    # ── Aggregation ──

    def get_filesystems(self, context: "RequestContext") -> List[Filesystem]:
        """Every filesystem of every provider, computed once per context."""
        return context.memoize(FILESYSTEMS_CACHE_KEY, lambda: self._enumerate(context))

    def _enumerate(self, context: "RequestContext") -> List[Filesystem]:
        result: List[Filesystem] = []
        for provider in self._providers:
            started = time.perf_counter()
            count = 0
            try:
                for filesystem in provider.get_filesystems(context):
                    context.register_closable(filesystem)
                    result.append(filesystem)
                    count += 1
            except RepoBrowserError as e:
                self._record(provider, context, count, started, str(e))
                raise
            except Exception as e:
                self._record(provider, context, count, started, str(e))
                raise BackendError(
                    f"Provider '{provider.name}' failed: {e}",
                    provider=provider.name,
                    request_id=context.request_id,
                ) from e
            self._record(provider, context, count, started)
        return result

    def _record(
        self,
        provider: FilesystemProvider,
        context: "RequestContext",
        count: int,
        started: float,
        error: Optional[str] = None,
    ) -> None:
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        if error:
            logger.error(f"Provider '{provider.name}' failed after {duration_ms}ms: {error}")
        else:
            logger.debug(f"Provider '{provider.name}' produced {count} filesystems in {duration_ms}ms")
        log(log_provider_pass(
            provider=provider.name,
            request_id=context.request_id,
            filesystem_count=count,
            duration_ms=duration_ms,
            success=error is None,
            error=error,
        ))

    def merged_listing(self, context: "RequestContext", path: str) -> List[Resource]:
        """
        Entries of path across all filesystems, folders first then by name.

        Same-named entries from different sources are all kept.
        """
        entries: List[Resource] = []
        for filesystem in self.get_filesystems(context):
            resource = resolve(filesystem, path)
            if resource is not None and resource.is_folder:
                entries.extend(resource.list_entries())
        entries.sort(key=resource_sort_key)
        return entries

    def find_resource(self, context: "RequestContext", path: str) -> Optional[Resource]:
        """The first resolution of path in registry order."""
        for filesystem in self.get_filesystems(context):
            resource = resolve(filesystem, path)
            if resource is not None:
                return resource
        return None

    def __repr__(self) -> str:
        return f"<FilesystemRegistry(providers={[p.name for p in self._providers]})>"


def build_registry(config: BrowserConfig, translator: "TranslationSet") -> FilesystemRegistry:
    """Build a registry from the configured provider list, in order."""
    from repobrowser.db.session import init_store
    from repobrowser.fs.composite import CompositeSiteProvider
    from repobrowser.fs.local import LocalFilesystemProvider
    from repobrowser.fs.memory import MemoryFilesystemProvider
    from repobrowser.fs.updatesite import UpdateSiteStoreProvider

    registry = FilesystemRegistry()
    for name in config.providers:
        if name == "local":
            registry.register(LocalFilesystemProvider(resolve_base_dir(config)))
        elif name == "memory":
            registry.register(MemoryFilesystemProvider())
        elif name == "update_sites":
            if not config.update_sites.enabled:
                logger.info("Update site store disabled")
                continue
            factory = init_store(config.update_sites.url, create_tables=True, echo=config.update_sites.echo)
            registry.register(UpdateSiteStoreProvider(factory, config.update_sites.temp_dir))
        elif name == "composite":
            registry.register(CompositeSiteProvider(registry, translator))
    logger.info(f"Registry built with providers: {[p.name for p in registry.providers]}")
    return registry
