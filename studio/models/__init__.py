# Database models package
from studio.models.job import GenerationJob, GeneratedImage
from studio.models.setting import Setting

__all__ = [
    "GenerationJob",
    "GeneratedImage",
    "Setting",
]
