"""
Storage Service
Saves generated images to the local filesystem and derives thumbnails.
"""

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image

from studio.core.config import settings

logger = logging.getLogger(__name__)

QUICK_FOLDER = "quick"  # project-less jobs


@dataclass
class StoredImage:
    file_path: str
    thumbnail_path: str


class StorageService:
    """Service for image file storage operations."""

    def __init__(
        self,
        images_dir: str = settings.IMAGES_DIR,
        thumbnails_dir: str = settings.THUMBNAILS_DIR,
        thumbnail_size: int = settings.THUMBNAIL_SIZE,
    ):
        self.images_path = Path(images_dir)
        self.thumbnails_path = Path(thumbnails_dir)
        self.thumbnail_size = thumbnail_size

    def _paths(self, project_id: Optional[int], job_id: int, seed: int):
        folder = str(project_id) if project_id is not None else QUICK_FOLDER
        filename = f"{job_id}_{seed}_{int(time.time() * 1000)}.png"
        return self.images_path / folder / filename, self.thumbnails_path / folder / filename

    async def save(
        self,
        image_data: bytes,
        project_id: Optional[int],
        job_id: int,
        seed: int,
    ) -> StoredImage:
        """Write image bytes and its thumbnail; return both paths."""
        file_path, thumbnail_path = self._paths(project_id, job_id, seed)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "wb") as f:
            f.write(image_data)

        await self.derive_thumbnail(file_path, thumbnail_path)
        logger.debug(f"[Storage] Saved {file_path} ({len(image_data)} bytes)")
        return StoredImage(file_path=str(file_path), thumbnail_path=str(thumbnail_path))

    async def derive_thumbnail(self, source_path, thumbnail_path) -> str:
        """Fit the image inside thumbnail_size x thumbnail_size (never enlarged), as PNG."""
        thumbnail_path = Path(thumbnail_path)
        thumbnail_path.parent.mkdir(parents=True, exist_ok=True)

        with Image.open(source_path) as img:
            img.thumbnail((self.thumbnail_size, self.thumbnail_size))
            img.save(thumbnail_path, format="PNG")

        return str(thumbnail_path)

