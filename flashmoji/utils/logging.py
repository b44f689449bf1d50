"""
Logging for Flashmoji.

Every log call goes to stdlib logging and to an in-memory buffer that the
``/api/logs`` endpoints read. Queue code tags its entries with ``job_id``
and ``entry_id`` keyword arguments; the buffer lifts those two out of the
metadata so a single job's history can be pulled back out:

    queue_logger.warning("Attempt 1 failed", job_id=job.id, entry_id=42, error="...")
    get_log_buffer().get_job_trail(job.id)
"""

import logging
from collections import deque
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Dict, List, Optional


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogEntry:
    """One buffered log line, with the job it concerns if any."""

    __slots__ = ("timestamp", "level", "message", "source", "job_id", "entry_id", "metadata")

    def __init__(
        self,
        level: LogLevel,
        message: str,
        source: str = "system",
        metadata: Optional[Dict[str, Any]] = None
    ):
        metadata = dict(metadata or {})
        self.timestamp = datetime.now(timezone.utc)
        self.level = level
        self.message = message
        self.source = source
        self.job_id: Optional[str] = metadata.pop("job_id", None)
        self.entry_id: Optional[int] = metadata.pop("entry_id", None)
        self.metadata = metadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "message": self.message,
            "source": self.source,
            "job_id": self.job_id,
            "entry_id": self.entry_id,
            "metadata": self.metadata,
        }


class LogBuffer:
    """
    Bounded, thread-safe ring of recent log entries.

    The error and warning counters keep counting after old entries fall
    off the ring.
    """

    def __init__(self, max_size: int = 1000):
        self._buffer: deque = deque(maxlen=max_size)
        self._lock = Lock()
        self._error_count = 0
        self._warning_count = 0

    def add(self, entry: LogEntry):
        with self._lock:
            self._buffer.append(entry)
            if entry.level == LogLevel.ERROR:
                self._error_count += 1
            elif entry.level == LogLevel.WARNING:
                self._warning_count += 1

    def _snapshot(self) -> List[LogEntry]:
        with self._lock:
            return list(self._buffer)

    def get_recent(
        self,
        limit: int = 100,
        level: Optional[LogLevel] = None,
        source: Optional[str] = None,
        job_id: Optional[str] = None,
        entry_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Newest entries first, narrowed by any of the given filters."""
        entries = [
            e for e in reversed(self._snapshot())
            if (level is None or e.level == level)
            and (source is None or e.source == source)
            and (job_id is None or e.job_id == job_id)
            and (entry_id is None or e.entry_id == entry_id)
        ]
        return [e.to_dict() for e in entries[:limit]]

    def get_errors(self, limit: int = 50) -> List[Dict[str, Any]]:
        return self.get_recent(limit=limit, level=LogLevel.ERROR)

    def get_job_trail(self, job_id: str) -> List[Dict[str, Any]]:
        """Everything logged for one job, oldest first."""
        return [e.to_dict() for e in self._snapshot() if e.job_id == job_id]

    def get_stats(self) -> Dict[str, Any]:
        entries = self._snapshot()
        by_level: Dict[str, int] = {}
        for entry in entries:
            by_level[entry.level.value] = by_level.get(entry.level.value, 0) + 1

        return {
            "total": len(entries),
            "by_level": by_level,
            "failing_jobs": len({
                e.job_id for e in entries
                if e.level == LogLevel.ERROR and e.job_id is not None
            }),
            "error_count": self._error_count,
            "warning_count": self._warning_count,
        }


# Global log buffer instance
_log_buffer = LogBuffer()


def get_log_buffer() -> LogBuffer:
    return _log_buffer


class AppLogger:
    """
    Logs to ``flashmoji.<source>`` and to the global buffer.

    Keyword arguments are structured metadata:

        queue_logger.info("Job queued", job_id=job.id, entry_id=42)
    """

    def __init__(self, source: str):
        self.source = source
        self._logger = logging.getLogger(f"flashmoji.{source}")

    def _log(self, level: LogLevel, message: str, metadata: Dict[str, Any]):
        _log_buffer.add(LogEntry(level, message, self.source, metadata))

        extra_msg = f" | {metadata}" if metadata else ""
        self._logger.log(getattr(logging, level.name), f"{message}{extra_msg}")

    def debug(self, message: str, **metadata):
        self._log(LogLevel.DEBUG, message, metadata)

    def info(self, message: str, **metadata):
        self._log(LogLevel.INFO, message, metadata)

    def warning(self, message: str, **metadata):
        self._log(LogLevel.WARNING, message, metadata)

    def error(self, message: str, **metadata):
        self._log(LogLevel.ERROR, message, metadata)


def get_logger(source: str) -> AppLogger:
    return AppLogger(source)


def configure_logging(level: str = "INFO"):
    """Attach a stream handler to the flashmoji logger hierarchy."""
    root = logging.getLogger("flashmoji")
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


queue_logger = AppLogger("image_queue")
generation_logger = AppLogger("generation")
storage_logger = AppLogger("storage")
database_logger = AppLogger("database")
api_logger = AppLogger("api")
