"""
Repository Browser Error Hierarchy — Structured exceptions for every failure
the aggregation layer and the p2 generators can raise.

All errors carry request_id for end-to-end tracing, plus the path and
filesystem they concern when known. Serializable for the structured log.

NotFound is deliberately absent: a path that resolves to nothing is a normal
negative result and is returned as None.

Hierarchy:
    RepoBrowserError
    ├── AccessError               — Resolved path escapes its declared root
    ├── UnsupportedOperationError — Write attempt on a read-only filesystem
    ├── BackendError              — Provider, store query or binary extraction failed
    └── ConfigurationError        — Unknown record kind, missing manifest header, bad config
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class RepoBrowserError(Exception):
    """
    Base error for all repository browser failures.
    All context is serializable to JSON.
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.request_id: Optional[str] = context.get("request_id")
        self.path: Optional[str] = context.get("path")
        self.filesystem: Optional[str] = context.get("filesystem")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "request_id": self.request_id,
            "path": self.path,
            "filesystem": self.filesystem,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("request_id", "path", "filesystem")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.filesystem:
            parts.append(f"filesystem={self.filesystem}")
        if self.path is not None:
            parts.append(f"path={self.path}")
        if self.request_id:
            parts.append(f"request_id={self.request_id}")
        return " | ".join(parts)


class AccessError(RepoBrowserError):
    """
    A resolved path escapes the base directory of its filesystem.
    Logged to the security log.
    """

    def __init__(self, message: str, **context: Any):
        self.base_dir: Optional[str] = context.get("base_dir")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["base_dir"] = self.base_dir
        return d


class UnsupportedOperationError(RepoBrowserError):
    """Write attempt (create, delete, rename, write stream) on a read-only filesystem."""

    def __init__(self, message: str, **context: Any):
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)


class BackendError(RepoBrowserError):
    """Failure inside a provider, a store query, or a binary extraction."""

    def __init__(self, message: str, **context: Any):
        self.provider: Optional[str] = context.get("provider")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["provider"] = self.provider
        return d


class ConfigurationError(RepoBrowserError):
    """
    Invalid configuration — an unknown record kind, a mandatory manifest
    header missing, or an invalid repobrowser.yaml.
    """

    def __init__(self, message: str, **context: Any):
        self.record_kind: Optional[str] = context.get("record_kind")
        self.header: Optional[str] = context.get("header")
        super().__init__(message, **context)
