"""
Queue API Routes
Pause / resume / dismiss controls and live queue + batch status.
"""

from typing import Optional
from fastapi import APIRouter, Depends

from studio.api.deps import get_scheduler
from studio.schemas.job import BatchTimingResponse, QueueStatusResponse
from studio.workers.scheduler import Scheduler

router = APIRouter()


@router.get("", response_model=QueueStatusResponse)
async def get_queue_status(scheduler: Scheduler = Depends(get_scheduler)):
    return scheduler.get_queue_status()


@router.get("/timing", response_model=Optional[BatchTimingResponse])
async def get_batch_timing(scheduler: Scheduler = Depends(get_scheduler)):
    """Progress/ETA of the current batch; null when no batch exists."""
    return scheduler.get_batch_timing()


@router.post("/pause", response_model=QueueStatusResponse)
async def pause_queue(scheduler: Scheduler = Depends(get_scheduler)):
    """Pause before the next image of the running job."""
    scheduler.pause_queue()
    return scheduler.get_queue_status()


@router.post("/resume", response_model=QueueStatusResponse)
async def resume_queue(scheduler: Scheduler = Depends(get_scheduler)):
    """Resume after a pause, or retry the job the queue halted on."""
    scheduler.resume_queue()
    return scheduler.get_queue_status()


@router.post("/dismiss", response_model=QueueStatusResponse)
async def dismiss_error(scheduler: Scheduler = Depends(get_scheduler)):
    """Leave the halted job failed and continue with the rest."""
    scheduler.dismiss_error()
    return scheduler.get_queue_status()
