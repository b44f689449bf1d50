"""
Data types travelling through the image generation queue.
"""

import secrets
import time
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class JobStatus(str, Enum):
    """Status values for queued image jobs"""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


def new_job_id(entry_id: int) -> str:
    """queue-<epoch ms>-<entry id>-<random>; unique for the process lifetime."""
    return f"queue-{int(time.time() * 1000)}-{entry_id}-{secrets.token_hex(4)}"


class ImageJob:
    """
    One queued image generation request.

    ``word`` and ``prompt`` are fixed at enqueue time. Status, retries,
    provider handle and last error are only changed by the queue.
    """

    __slots__ = (
        "id", "entry_id", "_word", "_prompt", "status",
        "retries", "provider_handle", "last_error", "created_at",
    )

    def __init__(self, entry_id: int, word: str, prompt: str, job_id: Optional[str] = None):
        self.id = job_id or new_job_id(entry_id)
        self.entry_id = entry_id
        self._word = word
        self._prompt = prompt
        self.status = JobStatus.PENDING
        self.retries = 0
        self.provider_handle: Optional[str] = None
        self.last_error: Optional[str] = None
        self.created_at = datetime.now(timezone.utc)

    @property
    def word(self) -> str:
        return self._word

    @property
    def prompt(self) -> str:
        return self._prompt

    def summary(self) -> "JobSummary":
        return JobSummary(
            id=self.id,
            entry_id=self.entry_id,
            word=self.word,
            status=self.status,
            retries=self.retries,
            created_at=self.created_at.isoformat(),
            provider_handle=self.provider_handle,
            last_error=self.last_error,
        )

    def __repr__(self) -> str:
        return (
            f"ImageJob(id={self.id!r}, entry_id={self.entry_id}, "
            f"word={self.word!r}, status={self.status.value}, retries={self.retries})"
        )


@dataclass(frozen=True)
class JobSummary:
    """Read-only view of a job for status pages."""
    id: str
    entry_id: int
    word: str
    status: JobStatus
    retries: int
    created_at: str
    provider_handle: Optional[str] = None
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class JobResult:
    """Payload delivered to completion subscribers."""
    image_url: str
    original_url: str
    provider_handle: Optional[str]
    generated_at: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QueueStatus:
    """
    Queue snapshot.

    ``total``, ``pending`` and ``processing`` describe the jobs currently
    held. ``completed`` and ``errors`` count terminal outcomes since the
    queue was created, because terminal jobs leave the queue immediately.
    """
    total: int
    pending: int
    processing: int
    completed: int
    errors: int
    is_processing: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
