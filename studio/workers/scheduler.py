"""
Generation Scheduler
Owns the pending-job queue and the single drain loop, and exposes the
control surface (enqueue / cancel / pause / resume / dismiss / status).

Runs on the asyncio event loop of the API process. All state changes
happen between suspension points of the one drain task, so the
`processing` flag is the only mutual exclusion needed.
"""

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

from studio.core.config import settings
from studio.workers.base import JobStatus, StopReason, error_message
from studio.workers.queue import QueueState
from studio.workers.runner import JobRunner
from studio.workers.timing import BatchTimer

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Sequences generation jobs one at a time, one image at a time.

    Features:
    - FIFO queue, with paused and resumed-after-error jobs reinserted at the front
    - Cooperative pause and cancellation at per-image checkpoints
    - Error halt: a failed job blocks the queue until resumed or dismissed
    - Batch progress / ETA across one continuous drain run
    """

    def __init__(
        self,
        job_store,
        settings_store,
        generator,
        storage,
        generation_timeout: float = settings.JOB_TIMEOUT_GENERATION,
        sleep=asyncio.sleep,
    ):
        self.job_store = job_store
        self.state = QueueState()
        self.timer = BatchTimer()
        self.runner = JobRunner(
            job_store=job_store,
            settings_store=settings_store,
            generator=generator,
            storage=storage,
            state=self.state,
            timer=self.timer,
            generation_timeout=generation_timeout,
            sleep=sleep,
        )
        self._drain_task: Optional[asyncio.Task] = None

    # ---------------- Control surface ----------------

    def enqueue_job(self, job_id: int):
        """Append a job to the queue and make sure a drain loop is running."""
        job = self.job_store.get(job_id)
        if job is None:
            logger.warning(f"[Queue] Cannot enqueue unknown job {job_id}")
            return
        if JobStatus(job.status).is_terminal:
            logger.warning(f"[Queue] Job {job_id} is {job.status}, not enqueueing")
            return
        if job_id in self.state.pending:
            logger.debug(f"[Queue] Job {job_id} already queued")
            return
        if job.status == JobStatus.RUNNING:
            logger.debug(f"[Queue] Job {job_id} is running, not enqueueing")
            return

        self.state.push(job_id)
        if self.timer.active:
            self.timer.add_images(job.remaining_count)
        logger.info(f"[Queue] Enqueued job {job_id} (queue length: {len(self.state.pending)})")

        self._ensure_draining()

    def cancel_pending_jobs(self, job_ids: Iterable[int]):
        """
        Cancel jobs whether waiting or running.

        Waiting jobs leave the queue; a running job notices the cancelled
        status at its next per-image checkpoint. Any cancel clears the halt
        and drops batch accounting, so the next drain starts a fresh batch.
        """
        for job_id in job_ids:
            removed = self.state.remove(job_id)
            job = self.job_store.get(job_id)
            if job is None:
                logger.warning(f"[Queue] Cannot cancel unknown job {job_id}")
                continue
            if job.status == JobStatus.COMPLETED:
                logger.info(f"[Queue] Job {job_id} already completed, not cancelling")
                continue
            self.job_store.set_status(job_id, JobStatus.CANCELLED)
            logger.info(f"[Queue] Cancelled job {job_id} ({'queued' if removed else job.status})")

        self.state.clear_halt()
        self.timer.reset()

        if self.state.pending:
            self._ensure_draining()

    def pause_queue(self):
        """Request a pause; takes effect at the next per-image checkpoint."""
        if self.state.stop_reason == StopReason.ERROR:
            logger.info("[Queue] Already halted on error, pause ignored")
            return
        self.state.halt(StopReason.PAUSED)
        logger.info("[Queue] Pause requested")

    def resume_queue(self):
        """Clear a pause or error halt; a failed halted job runs next."""
        stopped = self.state.stopped_job_id
        if self.state.stop_reason == StopReason.ERROR and stopped is not None:
            self.job_store.reset_for_retry(stopped)
            self.state.push_front(stopped)
            logger.info(f"[Queue] Resuming failed job {stopped} at the front of the queue")

        self.state.clear_halt()

        if self.state.pending:
            self._ensure_draining()

    def dismiss_error(self):
        """Skip the halted failed job (it stays failed) and keep draining."""
        if self.state.stop_reason != StopReason.ERROR:
            logger.debug("[Queue] No error to dismiss")
            return

        stopped = self.state.stopped_job_id
        if stopped is not None:
            self.timer.remove_images(self._remaining_images(stopped))
            logger.info(f"[Queue] Dismissed failed job {stopped}")

        self.state.clear_halt()

        if self.state.pending:
            self._ensure_draining()
        elif not self.state.processing:
            self.timer.finish()

    def get_queue_status(self) -> Dict[str, Any]:
        """Read-only queue snapshot."""
        return self.state.status()

    def get_batch_timing(self) -> Optional[Dict[str, Any]]:
        """Derived batch snapshot, or None when no batch exists."""
        return self.timer.snapshot()

    # ---------------- Drain loop ----------------

    def _ensure_draining(self):
        """Start a drain task unless one is already active."""
        if self.state.processing:
            return
        # Claim the flag before the task runs so a second call in the same tick is a no-op
        self.state.processing = True
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def process_queue(self):
        """Drain the queue in the current task (no-op if already draining)."""
        if self.state.processing:
            return
        self.state.processing = True
        await self._drain()

    async def _drain(self):
        try:
            try:
                initial_total = sum(self._remaining_images(job_id) for job_id in self.state.pending)
            except Exception as e:
                # No single job to blame: halt with the queue intact
                logger.exception(f"[Queue] Could not size batch: {e}")
                self.state.halt(StopReason.ERROR)
                return

            if self.timer.resume_or_start(initial_total):
                logger.info("[Queue] Resuming interrupted batch")
            else:
                logger.info(
                    f"[Queue] Starting batch: {len(self.state.pending)} jobs, {initial_total} images"
                )

            while self.state.pending and not self.state.halted:
                job_id = self.state.pop()
                try:
                    await self.runner.process_job(job_id)
                except Exception as e:
                    # Store failures outside the runner's own failure path
                    logger.exception(f"[Queue] Job {job_id} crashed: {e}")
                    self._fail_crashed(job_id, e)

            if self.state.halted:
                logger.info(
                    f"[Queue] Halted ({self.state.stop_reason.value}), "
                    f"{len(self.state.pending)} jobs waiting"
                )
            else:
                self.timer.finish()
                logger.info("[Queue] Queue drained")
        finally:
            self.state.processing = False

    async def wait_idle(self):
        """Wait for the current drain task, if any, to finish."""
        task = self._drain_task
        while task is not None and not task.done():
            await asyncio.shield(task)
            task = self._drain_task

    async def shutdown(self):
        """Stop draining on application shutdown; job rows are rebuilt on restart."""
        task = self._drain_task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            logger.info("[Queue] Drain task cancelled on shutdown")

    # ---------------- Restart rebuild ----------------

    def restore_from_store(self) -> List[int]:
        """
        Re-enqueue unfinished jobs after a restart.

        Jobs left `running` by a previous process go back to `pending`;
        every pending job is then enqueued in id order.
        """
        interrupted = self.job_store.requeue_interrupted()
        if interrupted:
            logger.info(f"[Queue] Reset {interrupted} interrupted jobs to pending")

        job_ids = self.job_store.list_pending_ids()
        for job_id in job_ids:
            self.enqueue_job(job_id)
        return job_ids

    # ---------------- Helpers ----------------

    def _fail_crashed(self, job_id: int, error: Exception):
        """Halt on a job whose failure escaped the runner; mark it failed if the store allows."""
        try:
            self.job_store.set_status(job_id, JobStatus.FAILED, error_message=error_message(error))
        except Exception:
            logger.exception(f"[Queue] Could not mark job {job_id} failed")
        self.state.halt(StopReason.ERROR, job_id)

    def _remaining_images(self, job_id: int) -> int:
        job = self.job_store.get(job_id)
        if job is None:
            return 0
        return job.remaining_count
