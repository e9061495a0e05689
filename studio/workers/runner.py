"""
Job Runner
Executes one generation job image by image until it completes, pauses,
is cancelled, or fails.
"""

import asyncio
import logging
import time
from typing import Any, Dict, Optional

from studio.core.config import settings
from studio.workers.base import (
    ConfigError,
    GenerationError,
    JobStatus,
    StopReason,
    error_message,
)
from studio.workers.queue import QueueState
from studio.workers.timing import BatchTimer

logger = logging.getLogger(__name__)

API_KEY_SETTING = "nai_api_key"
DELAY_SETTING = "generation_delay"


class JobRunner:
    """
    Runs a single job against the image API.

    Pause and cancellation are cooperative: both are checked before every
    image, never while a generation call is in flight. Any exception turns
    the job into `failed` and halts the whole queue until a human resumes
    or dismisses it.
    """

    TASK_NAME = "image_generation"

    def __init__(
        self,
        job_store,
        settings_store,
        generator,
        storage,
        state: QueueState,
        timer: BatchTimer,
        generation_timeout: float = settings.JOB_TIMEOUT_GENERATION,
        sleep=asyncio.sleep,
    ):
        self.job_store = job_store
        self.settings_store = settings_store
        self.generator = generator
        self.storage = storage
        self.state = state
        self.timer = timer
        self.generation_timeout = generation_timeout
        self._sleep = sleep

    async def process_job(self, job_id: int):
        """Process one job from its current completed_count onwards."""
        job = self.job_store.get(job_id)
        if job is None:
            logger.warning(f"[Runner] Job {job_id} not found, skipping")
            return
        if job.status == JobStatus.CANCELLED:
            logger.info(f"[Runner] Job {job_id} was cancelled before start, skipping")
            return

        start = time.perf_counter()
        try:
            api_key = self.settings_store.get(API_KEY_SETTING)
            if not api_key:
                raise ConfigError("No API key configured")
            delay_ms = self._generation_delay_ms()

            self.job_store.set_status(job_id, JobStatus.RUNNING)

            total = job.total_count or 0
            start_index = job.completed_count or 0
            logger.info(
                f"[START] {self.TASK_NAME} | Job {job_id} | images {start_index + 1}..{total}"
            )

            for index in range(start_index, total):
                if self.state.stop_reason == StopReason.PAUSED:
                    self.job_store.set_status(job_id, JobStatus.PENDING)
                    self.state.push_front(job_id)
                    logger.info(f"[PAUSED] Job {job_id} at {index}/{total}, requeued at front")
                    return

                if self.job_store.get_status(job_id) == JobStatus.CANCELLED:
                    logger.info(f"[CANCELLED] Job {job_id} at {index}/{total}")
                    return

                image, duration_ms = await self._generate(api_key, job)
                stored = await self.storage.save(
                    image.image_data,
                    project_id=job.project_id,
                    job_id=job_id,
                    seed=image.seed,
                )
                self.job_store.insert_result(
                    job_id,
                    file_path=stored.file_path,
                    thumbnail_path=stored.thumbnail_path,
                    seed=image.seed,
                    metadata=self._result_metadata(job),
                )
                self.job_store.set_completed_count(job_id, index + 1)
                self.timer.record_image(duration_ms)
                logger.debug(f"[Runner] Job {job_id}: image {index + 1}/{total} saved (seed {image.seed})")

                if index < total - 1 and delay_ms > 0:
                    await self._sleep(delay_ms / 1000)

            # Cancelled while the last image was in flight
            if self.job_store.get_status(job_id) == JobStatus.CANCELLED:
                logger.info(f"[CANCELLED] Job {job_id} after its last image")
                return

            self.job_store.set_status(job_id, JobStatus.COMPLETED)
            duration = time.perf_counter() - start
            logger.info(f"[COMPLETE] {self.TASK_NAME} | Job {job_id} | Duration: {duration:.2f}s")

        except Exception as e:
            if self.job_store.get_status(job_id) == JobStatus.CANCELLED:
                logger.info(f"[CANCELLED] Job {job_id} failed after cancellation: {error_message(e)}")
                return
            self._fail(job_id, e, time.perf_counter() - start)

    async def _generate(self, api_key: str, job):
        """One bounded generation call; returns the image and its latency in ms."""
        t0 = time.perf_counter()
        try:
            image = await asyncio.wait_for(
                self.generator.generate(api_key, job.resolved_prompts, job.resolved_parameters),
                timeout=self.generation_timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationError(
                f"Image generation timed out after {self.generation_timeout:g}s"
            ) from e
        return image, (time.perf_counter() - t0) * 1000

    def _generation_delay_ms(self) -> int:
        raw: Optional[str] = self.settings_store.get(DELAY_SETTING)
        if raw is None:
            return settings.DEFAULT_GENERATION_DELAY_MS
        try:
            return int(float(raw))
        except (ValueError, OverflowError):
            logger.warning(f"[Runner] Ignoring invalid {DELAY_SETTING} value: {raw!r}")
            return 0

    @staticmethod
    def _result_metadata(job) -> Dict[str, Any]:
        return {
            "prompts": job.resolved_prompts,
            "parameters": job.resolved_parameters,
        }

    def _fail(self, job_id: int, error: Exception, duration: float):
        message = error_message(error)
        self.job_store.set_status(job_id, JobStatus.FAILED, error_message=message)
        self.state.halt(StopReason.ERROR, job_id)
        logger.error(
            f"[ERROR] {self.TASK_NAME} | Job {job_id} | Duration: {duration:.2f}s | Error: {message}",
            exc_info=not isinstance(error, (ConfigError, GenerationError)),
        )
