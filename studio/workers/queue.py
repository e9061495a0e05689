"""
Queue State
In-memory, process-lifetime state of the generation queue.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Optional

from studio.workers.base import StopReason


@dataclass
class QueueState:
    """
    Pending job ids plus the drain/halt flags.

    stopped_job_id is only set while halted, and only when a specific job
    caused the halt (errors). A pause has no stopped job.
    """
    pending: Deque[int] = field(default_factory=deque)
    processing: bool = False
    stop_reason: StopReason = StopReason.NONE
    stopped_job_id: Optional[int] = None

    @property
    def halted(self) -> bool:
        return self.stop_reason != StopReason.NONE

    def push(self, job_id: int):
        self.pending.append(job_id)

    def push_front(self, job_id: int):
        self.pending.appendleft(job_id)

    def pop(self) -> int:
        return self.pending.popleft()

    def remove(self, job_id: int) -> bool:
        """Drop a waiting job id. Returns False if it was not waiting."""
        try:
            self.pending.remove(job_id)
        except ValueError:
            return False
        return True

    def halt(self, reason: StopReason, job_id: Optional[int] = None):
        self.stop_reason = reason
        self.stopped_job_id = job_id

    def clear_halt(self):
        self.stop_reason = StopReason.NONE
        self.stopped_job_id = None

    def status(self) -> Dict[str, Any]:
        return {
            "processing": self.processing,
            "queue_length": len(self.pending),
            "queued_job_ids": list(self.pending),
            "stop_reason": self.stop_reason.value,
            "stopped_job_id": self.stopped_job_id,
        }
