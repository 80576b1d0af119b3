"""
Repository Browser Request Context — Per-request memoization and scoped cleanup.

One RequestContext is created at the start of a request (or CLI invocation)
and passed explicitly to the registry and the generators. It owns:

1. A cache mapping keys to lazily computed values (filesystem lists,
   composite documents). Never shared between contexts.
2. An ExitStack of scoped resources (filesystems, store sessions) released
   in reverse order of acquisition when the context exits, on every path.

Usage:
    from repobrowser.engine.context import RequestContext

    with RequestContext(preferred_language="de") as ctx:
        entries = registry.merged_listing(ctx, "sites/foo")
"""

from __future__ import annotations

import logging
import uuid
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TypeVar

logger = logging.getLogger("repobrowser.engine.context")

T = TypeVar("T")


@dataclass
class RequestContext:
    """
    Explicit per-request state. Single-threaded; not safe to share.
    """

    request_id: str = field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")
    preferred_language: str = "en"

    _cache: Dict[str, Any] = field(default_factory=dict, repr=False)
    _resources: ExitStack = field(default_factory=ExitStack, repr=False)
    _closed: bool = field(default=False, repr=False)

    def memoize(self, key: str, factory: Callable[[], T]) -> T:
        """
        Return the cached value for key, computing it with factory on first access.

        A factory that raises caches nothing; the next access retries.
        """
        if key not in self._cache:
            self._cache[key] = factory()
        return self._cache[key]

    def cached(self, key: str) -> Optional[Any]:
        """Return a cached value without computing it."""
        return self._cache.get(key)

    def is_cached(self, key: str) -> bool:
        return key in self._cache

    def register_closable(self, resource: T) -> T:
        """Schedule resource.close() for context exit. Returns the resource."""
        self._resources.callback(resource.close)
        return resource

    def enter(self, manager: Any) -> Any:
        """Enter a context manager now and exit it with this context."""
        return self._resources.enter_context(manager)

    def close(self) -> None:
        """Release every registered resource (LIFO) and drop the cache. Idempotent."""
        if self._closed:
            return
        self._closed = True
        try:
            self._resources.close()
        finally:
            self._cache.clear()
            logger.debug(f"Request context closed: {self.request_id}")

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "RequestContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for logging."""
        return {
            "request_id": self.request_id,
            "preferred_language": self.preferred_language,
            "cached_keys": sorted(self._cache.keys()),
        }
