"""
Batch Timing
Tracks throughput across one continuous drain run for progress/ETA display.
Lives in memory only; a restart simply starts a new batch.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BatchTiming:
    """Counters for the current batch."""
    total_images: int
    started_at: datetime = field(default_factory=_utcnow)
    completed_images: int = 0
    total_generation_ms: float = 0.0
    active: bool = True

    @property
    def avg_image_duration_ms(self) -> Optional[int]:
        if self.completed_images <= 0:
            return None
        return round(self.total_generation_ms / self.completed_images)

    @property
    def remaining_images(self) -> int:
        return max(self.total_images - self.completed_images, 0)


class BatchTimer:
    """
    Owns the optional BatchTiming of a scheduler.

    `active` is driven by the drain loop lifecycle: a fresh drain starts an
    active batch, halting (pause/error) keeps it active so the next drain
    resumes it, and emptying the queue finishes it. Finished counters stay
    readable until the next batch starts or a cancel resets them.
    """

    def __init__(self, clock=_utcnow):
        self._clock = clock
        self.timing: Optional[BatchTiming] = None

    @property
    def active(self) -> bool:
        return self.timing is not None and self.timing.active

    def start(self, total_images: int) -> BatchTiming:
        """Start a fresh batch."""
        self.timing = BatchTiming(total_images=max(total_images, 0), started_at=self._clock())
        logger.debug(f"[Batch] Started: {self.timing.total_images} images")
        return self.timing

    def resume_or_start(self, initial_total: int) -> bool:
        """
        Keep an interrupted batch, or start a new one.

        Returns:
            True if the existing batch was resumed
        """
        if self.active:
            logger.debug(
                f"[Batch] Resuming: {self.timing.completed_images}/{self.timing.total_images}"
            )
            return True
        self.start(initial_total)
        return False

    def add_images(self, count: int):
        """Grow an active batch (job enqueued mid-run)."""
        if self.active and count > 0:
            self.timing.total_images += count

    def remove_images(self, count: int):
        """Shrink the batch (failed job dismissed), floored at zero."""
        if self.timing is not None and count > 0:
            self.timing.total_images = max(self.timing.total_images - count, 0)

    def record_image(self, duration_ms: float):
        """Account one produced image and its API latency."""
        if self.timing is None:
            return
        self.timing.completed_images += 1
        self.timing.total_generation_ms += duration_ms

    def finish(self):
        """Mark the batch done, keeping its counters for a final status read."""
        if self.timing is not None:
            self.timing.active = False

    def reset(self):
        """Drop the batch entirely."""
        self.timing = None

    def snapshot(self) -> Optional[Dict[str, Any]]:
        """Derived, read-only view of the batch, or None with no batch."""
        timing = self.timing
        if timing is None:
            return None

        avg = timing.avg_image_duration_ms
        remaining = timing.remaining_images
        elapsed_ms = int((self._clock() - timing.started_at).total_seconds() * 1000)

        return {
            "started_at": timing.started_at,
            "total_images": timing.total_images,
            "completed_images": timing.completed_images,
            "total_generation_ms": round(timing.total_generation_ms),
            "avg_image_duration_ms": avg,
            "elapsed_ms": max(elapsed_ms, 0),
            "remaining_images": remaining,
            "estimated_remaining_ms": avg * remaining if avg is not None else None,
            "active": timing.active,
        }
