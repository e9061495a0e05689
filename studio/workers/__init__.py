# Workers package - in-process generation scheduler

from studio.workers.base import (
    JobStatus,
    StopReason,
    WorkerException,
    ConfigError,
    GenerationError,
)
from studio.workers.queue import QueueState
from studio.workers.timing import BatchTimer, BatchTiming
from studio.workers.runner import JobRunner
from studio.workers.scheduler import Scheduler

__all__ = [
    # Base
    "JobStatus",
    "StopReason",
    "WorkerException",
    "ConfigError",
    "GenerationError",
    # Queue
    "QueueState",
    "BatchTimer",
    "BatchTiming",
    "JobRunner",
    "Scheduler",
]
