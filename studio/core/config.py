"""
Application Configuration
Loads settings from environment variables.
"""

from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App
    APP_NAME: str = "Scene Studio API"
    DEBUG: bool = False

    # Database - SQLite by default, any SQLAlchemy URL works
    DATABASE_URL: str = "sqlite:///./data/studio.db"

    # Image Generation (NovelAI)
    NAI_API_URL: str = "https://image.novelai.net/ai/generate-image"
    NAI_MODEL: str = "nai-diffusion-4-full"

    # Local storage
    IMAGES_DIR: str = "./data/images"
    THUMBNAILS_DIR: str = "./data/thumbnails"
    THUMBNAIL_SIZE: int = 300

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Worker settings
    JOB_TIMEOUT_GENERATION: int = 120  # seconds per generation call
    DEFAULT_GENERATION_DELAY_MS: int = 500
    RESUME_PENDING_ON_STARTUP: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = True
    LOG_DIR: str = "./data/logs"
    LOG_FILE_NAME: str = "app.log"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024
    LOG_BACKUP_COUNT: int = 4

    @field_validator('NAI_API_URL', 'DATABASE_URL', mode='before')
    @classmethod
    def strip_urls(cls, v):
        """Strip whitespace and newlines from URLs loaded from secrets."""
        if isinstance(v, str):
            return v.strip()
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
