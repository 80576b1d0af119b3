"""Repository Browser Engine — errors, configuration, request context, logging, translations."""

from repobrowser.engine.context import RequestContext  # noqa: F401
from repobrowser.engine.errors import (  # noqa: F401
    AccessError,
    BackendError,
    ConfigurationError,
    RepoBrowserError,
    UnsupportedOperationError,
)

__all__ = [
    "RequestContext",
    "RepoBrowserError",
    "AccessError",
    "UnsupportedOperationError",
    "BackendError",
    "ConfigurationError",
]
