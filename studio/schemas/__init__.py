# Pydantic schemas package
from studio.schemas.job import (
    CharacterPrompt, ResolvedPrompts, SceneJobRequest, CreateJobsRequest, QuickJobRequest,
    CancelJobsRequest, JobResponse, GeneratedImageResponse, QueueStatusResponse,
    BatchTimingResponse, ActiveJobsResponse,
)
from studio.schemas.setting import SettingUpdate, SettingResponse

__all__ = [
    "CharacterPrompt", "ResolvedPrompts", "SceneJobRequest", "CreateJobsRequest", "QuickJobRequest",
    "CancelJobsRequest", "JobResponse", "GeneratedImageResponse", "QueueStatusResponse",
    "BatchTimingResponse", "ActiveJobsResponse",
    "SettingUpdate", "SettingResponse",
]
