# Services package - persistence and external integrations
from studio.services.job_store import JobStore
from studio.services.settings_store import SettingsStore
from studio.services.nai_image import NovelAIImageService, GeneratedImageData
from studio.services.storage import StorageService, StoredImage

__all__ = [
    "JobStore",
    "SettingsStore",
    "NovelAIImageService",
    "GeneratedImageData",
    "StorageService",
    "StoredImage",
]
