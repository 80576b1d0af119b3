"""
Repository Browser Logging — Structured JSON file-based logging.

Implements:
- FileLogger: Per-object-type, per-category log files (daily rotation)
- Log entry builders for provider passes, generated documents and security events
- A module-level logger installed by init_logging()

Layout: {log_dir}/{object_type}/{category}/{YYYY-MM-DD}.jsonl
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger("repobrowser.engine.logging")

# Valid object types and their permitted categories
OBJECT_TYPE_CATEGORIES = {
    "providers": ["execution", "performance"],
    "filesystems": ["execution", "security"],
    "generators": ["execution", "performance"],
}


class LogEntry:
    """A structured log entry destined for a specific file."""

    __slots__ = ("object_type", "category", "data")

    def __init__(self, object_type: str, category: str, data: Dict[str, Any]):
        if category not in OBJECT_TYPE_CATEGORIES.get(object_type, ()):
            raise ValueError(f"Invalid log target: {object_type}/{category}")
        self.object_type = object_type
        self.category = category
        self.data = data

    def to_json(self) -> str:
        return json.dumps(self.data, default=str, separators=(",", ":"))


class FileLogger:
    """
    Writes structured JSON log entries to per-object-type, per-category files.
    Files rotate daily.
    """

    def __init__(self, log_dir: str = "logs"):
        self._log_dir = Path(log_dir)
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create the full directory tree for all object types and categories."""
        for obj_type, categories in OBJECT_TYPE_CATEGORIES.items():
            for cat in categories:
                (self._log_dir / obj_type / cat).mkdir(parents=True, exist_ok=True)

    def write(self, entry: LogEntry) -> None:
        """Write a single log entry to the appropriate file."""
        file_path = self._resolve_path(entry.object_type, entry.category)
        with open(file_path, "a", encoding="utf-8") as f:
            f.write(entry.to_json())
            f.write("\n")

    def write_batch(self, entries: List[LogEntry]) -> None:
        """Write a batch of log entries, grouping by file path."""
        grouped: Dict[Path, List[LogEntry]] = defaultdict(list)
        for entry in entries:
            grouped[self._resolve_path(entry.object_type, entry.category)].append(entry)

        for file_path, batch in grouped.items():
            with open(file_path, "a", encoding="utf-8") as f:
                for entry in batch:
                    f.write(entry.to_json())
                    f.write("\n")

    def read(self, object_type: str, category: str, day: Optional[date] = None) -> List[Dict[str, Any]]:
        """Read back all entries of one day (defaults to today)."""
        day = day or date.today()
        path = self._log_dir / object_type / category / f"{day.isoformat()}.jsonl"
        if not path.exists():
            return []
        entries: List[Dict[str, Any]] = []
        with open(path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(json.loads(line))
                except json.JSONDecodeError:
                    continue
        return entries

    def _resolve_path(self, object_type: str, category: str) -> Path:
        """Resolve the log file path for today's date."""
        today = date.today().isoformat()
        return self._log_dir / object_type / category / f"{today}.jsonl"

    @property
    def log_dir(self) -> Path:
        return self._log_dir


# ---------------------------------------------------------------------------
# Log Entry Builders
# ---------------------------------------------------------------------------

def _base_entry(
    event: str,
    level: str,
    request_id: Optional[str] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Build a base log entry with common fields."""
    entry: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    if request_id:
        entry["request_id"] = request_id
    entry.update(extra)
    return entry


def log_provider_pass(
    provider: str,
    request_id: str,
    filesystem_count: int,
    duration_ms: float,
    success: bool,
    error: Optional[str] = None,
) -> LogEntry:
    """Build a provider enumeration log entry."""
    data = _base_entry(
        event="provider_enumerated",
        level="INFO" if success else "ERROR",
        request_id=request_id,
        provider=provider,
        filesystem_count=filesystem_count,
        duration_ms=duration_ms,
        success=success,
    )
    if error:
        data["error"] = error
    return LogEntry("providers", "execution", data)


def log_document_generated(
    document: str,
    request_id: Optional[str],
    duration_ms: float,
    size_bytes: int,
    source: Optional[str] = None,
    entry_count: Optional[int] = None,
) -> LogEntry:
    """Build a generator performance log entry."""
    data = _base_entry(
        event="document_generated",
        level="INFO",
        request_id=request_id,
        document=document,
        duration_ms=duration_ms,
        size_bytes=size_bytes,
    )
    if source:
        data["source"] = source
    if entry_count is not None:
        data["entry_count"] = entry_count
    return LogEntry("generators", "performance", data)


def log_security_event(
    event: str,
    filesystem: str,
    path: str,
    base_dir: Optional[str] = None,
    request_id: Optional[str] = None,
) -> LogEntry:
    """Build a security log entry (e.g. a traversal attempt)."""
    data = _base_entry(
        event=event,
        level="WARNING",
        request_id=request_id,
        filesystem=filesystem,
        path=path,
    )
    if base_dir:
        data["base_dir"] = base_dir
    return LogEntry("filesystems", "security", data)


# ---------------------------------------------------------------------------
# Convenience: Global File Logger
# ---------------------------------------------------------------------------

_file_logger: Optional[FileLogger] = None


def init_logging(log_dir: str = "logs", level: str = "INFO") -> FileLogger:
    """Configure stdlib logging and install the global structured file logger."""
    global _file_logger
    logging.getLogger("repobrowser").setLevel(getattr(logging, level.upper(), logging.INFO))
    _file_logger = FileLogger(log_dir=log_dir)
    return _file_logger


def get_file_logger() -> Optional[FileLogger]:
    """Get the global file logger."""
    return _file_logger


def log(entry: LogEntry) -> bool:
    """Write a log entry through the global file logger."""
    if _file_logger is None:
        logger.debug(f"File logger not initialized, entry dropped: {entry.data.get('event')}")
        return False
    try:
        _file_logger.write(entry)
    except OSError as e:
        logger.warning(f"Failed to write log entry: {e}")
        return False
    return True


def shutdown_logging() -> None:
    """Uninstall the global file logger."""
    global _file_logger
    _file_logger = None
