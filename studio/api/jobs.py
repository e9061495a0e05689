"""
Jobs API Routes
Job creation, listing, and cancellation.
"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status

from studio.api.deps import get_job_store, get_scheduler
from studio.schemas.job import (
    ActiveJobsResponse,
    CancelJobsRequest,
    CreateJobsRequest,
    GeneratedImageResponse,
    JobResponse,
    QuickJobRequest,
)
from studio.services.job_store import JobStore
from studio.workers.base import JobStatus
from studio.workers.scheduler import Scheduler

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=List[JobResponse], status_code=status.HTTP_202_ACCEPTED)
async def create_jobs(
    request: CreateJobsRequest,
    job_store: JobStore = Depends(get_job_store),
    scheduler: Scheduler = Depends(get_scheduler),
):
    """Create one job per scene and enqueue them in order."""
    jobs = []
    for scene in request.scenes:
        job = job_store.create(
            resolved_prompts=scene.prompts.model_dump(),
            resolved_parameters=request.parameters,
            total_count=request.count_per_scene,
            project_id=request.project_id,
            scene_id=scene.scene_id,
            source_scene_id=scene.source_scene_id,
        )
        scheduler.enqueue_job(job.id)
        jobs.append(job)

    logger.info(
        f"[API] Created {len(jobs)} jobs for project {request.project_id} "
        f"({request.count_per_scene} images each)"
    )
    return jobs


@router.post("/quick", response_model=JobResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_quick_job(
    request: QuickJobRequest,
    job_store: JobStore = Depends(get_job_store),
    scheduler: Scheduler = Depends(get_scheduler),
):
    """Create a project-less job from raw prompts."""
    job = job_store.create(
        resolved_prompts=request.prompts.model_dump(),
        resolved_parameters=request.parameters,
        total_count=request.count,
    )
    scheduler.enqueue_job(job.id)
    logger.info(f"[API] Quick job {job.id} created ({request.count} images)")
    return job


@router.get("", response_model=List[JobResponse])
async def list_jobs(
    project_id: Optional[int] = None,
    job_status: Optional[JobStatus] = None,
    limit: int = 100,
    offset: int = 0,
    job_store: JobStore = Depends(get_job_store),
):
    """List jobs with optional filters, newest first."""
    return job_store.list_jobs(status=job_status, project_id=project_id, limit=limit, offset=offset)


@router.get("/active", response_model=ActiveJobsResponse)
async def list_active_jobs(
    job_store: JobStore = Depends(get_job_store),
    scheduler: Scheduler = Depends(get_scheduler),
):
    """Pending and running jobs, plus the job the queue is halted on."""
    queue_status = scheduler.get_queue_status()
    jobs = job_store.list_active(include_job_id=queue_status["stopped_job_id"])
    return {
        "jobs": jobs,
        "queue_status": queue_status,
        "batch_timing": scheduler.get_batch_timing(),
    }


@router.post("/cancel")
async def cancel_jobs(
    request: CancelJobsRequest,
    scheduler: Scheduler = Depends(get_scheduler),
):
    """Cancel queued or running jobs."""
    scheduler.cancel_pending_jobs(request.job_ids)
    return {"success": True}


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    job_store: JobStore = Depends(get_job_store),
):
    """Get job status and progress."""
    job = job_store.get(job_id)

    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found"
        )

    return job


@router.get("/{job_id}/images", response_model=List[GeneratedImageResponse])
async def list_job_images(
    job_id: int,
    job_store: JobStore = Depends(get_job_store),
):
    """Images produced so far by a job."""
    if not job_store.get(job_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found"
        )
    return job_store.list_images(job_id)
