"""
Job Schemas
Pydantic models for job and queue API requests and responses.
"""

from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field

from studio.workers.base import JobStatus, StopReason


class CharacterPrompt(BaseModel):
    """Per-character prompt pair."""
    name: str = ""
    prompt: str = ""
    negative: str = ""


class ResolvedPrompts(BaseModel):
    """Prompts after placeholder substitution."""
    general_prompt: str = ""
    negative_prompt: str = ""
    character_prompts: List[CharacterPrompt] = []


class SceneJobRequest(BaseModel):
    """One scene's worth of images."""
    scene_id: Optional[int] = None
    source_scene_id: Optional[int] = None
    prompts: ResolvedPrompts


class CreateJobsRequest(BaseModel):
    """Schema for creating one job per scene of a project."""
    project_id: int
    scenes: List[SceneJobRequest] = Field(..., min_length=1)
    count_per_scene: int = Field(1, ge=1, le=1000)
    parameters: Dict[str, Any] = {}


class QuickJobRequest(BaseModel):
    """Schema for a project-less generation job."""
    prompts: ResolvedPrompts
    parameters: Dict[str, Any] = {}
    count: int = Field(1, ge=1, le=1000)


class CancelJobsRequest(BaseModel):
    job_ids: List[int] = Field(..., min_length=1)


class JobResponse(BaseModel):
    """Schema for job response."""
    id: int
    project_id: Optional[int]
    scene_id: Optional[int]
    source_scene_id: Optional[int]
    resolved_prompts: Dict[str, Any] = {}
    resolved_parameters: Dict[str, Any] = {}
    total_count: int
    completed_count: int
    status: JobStatus
    error_message: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GeneratedImageResponse(BaseModel):
    id: int
    job_id: int
    project_id: Optional[int]
    scene_id: Optional[int]
    file_path: str
    thumbnail_path: Optional[str]
    seed: Optional[int]
    image_metadata: Dict[str, Any] = {}
    created_at: datetime

    class Config:
        from_attributes = True


class QueueStatusResponse(BaseModel):
    processing: bool
    queue_length: int
    queued_job_ids: List[int]
    stop_reason: StopReason
    stopped_job_id: Optional[int]


class BatchTimingResponse(BaseModel):
    started_at: datetime
    total_images: int
    completed_images: int
    total_generation_ms: int
    avg_image_duration_ms: Optional[int]
    elapsed_ms: int
    remaining_images: int
    estimated_remaining_ms: Optional[int]
    active: bool


class ActiveJobsResponse(BaseModel):
    """Pending/running jobs plus the halted job, with queue and batch state."""
    jobs: List[JobResponse]
    queue_status: QueueStatusResponse
    batch_timing: Optional[BatchTimingResponse]
