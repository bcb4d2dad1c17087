"""
Upload Models - typed data structures for the retry queue and worker.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from file_uploader.models import UploadConfig


class WorkerState(str, Enum):
    """
    State of the upload worker.

    STOPPED -> IDLE <-> WAITING -> ATTEMPTING -> IDLE/WAITING -> ... -> STOPPED
    """

    IDLE = "Idle"  # Queue empty, waiting for an enqueue
    WAITING = "Waiting"  # Head task not due yet
    ATTEMPTING = "Attempting"  # Upload in progress
    STOPPED = "Stopped"  # Not started, or shut down


class DueStatus(str, Enum):
    READY = "ready"
    NOT_YET = "not_yet"
    EMPTY = "empty"


@dataclass(order=True)
class UploadTask:
    """
    One queued upload of a single file.

    Ordering is by next_attempt only; sequence keeps heap entries comparable
    and carries no ordering promise between equal due-times.
    """

    next_attempt: float
    sequence: int
    path: str = field(compare=False)
    config: UploadConfig = field(compare=False)
    attempts: int = field(default=0, compare=False)
    enqueued_at: datetime = field(default_factory=datetime.now, compare=False)
    last_error: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        return (
            f"UploadTask(path={self.path}, "
            f"url={self.config.upload_url}, "
            f"attempts={self.attempts})"
        )


@dataclass
class PopResult:
    """Outcome of RetryQueue.pop_due()."""

    status: DueStatus
    task: Optional[UploadTask] = None
    wait_seconds: Optional[float] = None


@dataclass
class UploadResult:
    """Outcome of a single upload attempt."""

    success: bool
    file_path: str
    status_code: Optional[int] = None
    error_message: Optional[str] = None
    duration_seconds: float = 0.0

    def __str__(self) -> str:
        status = "SUCCESS" if self.success else "FAILED"
        code = f", http={self.status_code}" if self.status_code is not None else ""
        return f"UploadResult({status}, {self.file_path}{code}, time={self.duration_seconds:.2f}s)"
