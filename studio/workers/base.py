"""
Worker Base Types
Job/queue status enums and the worker error taxonomy.
"""

from enum import Enum
from typing import Optional


class JobStatus(str, Enum):
    """Generation job status enumeration."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.CANCELLED)


class StopReason(str, Enum):
    """
    Why the scheduler is halted.

    A single value, so "paused" and "error" can never be active together.
    """
    NONE = "none"
    PAUSED = "paused"
    ERROR = "error"


class WorkerException(Exception):
    """Base exception for worker errors; every one fails the job and halts the queue."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


class ConfigError(WorkerException):
    """Required configuration (API credential) is missing."""


class GenerationError(WorkerException):
    """The external image API failed, timed out, or returned no image."""


def error_message(error: BaseException) -> str:
    """Human-readable message for a job failure."""
    message = str(error).strip()
    return message or type(error).__name__


# Export all
__all__ = [
    "JobStatus",
    "StopReason",
    "WorkerException",
    "ConfigError",
    "GenerationError",
    "error_message",
]
