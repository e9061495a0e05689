"""Test configuration."""

import asyncio
import os
import tempfile
from collections.abc import Generator
from typing import Any, Callable, Dict, List, Optional, Set

import pytest

# Point settings at throwaway locations before studio modules are imported
_TEST_DATA_DIR = tempfile.mkdtemp(prefix="studio-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_DATA_DIR}/studio.db")
os.environ.setdefault("IMAGES_DIR", os.path.join(_TEST_DATA_DIR, "images"))
os.environ.setdefault("THUMBNAILS_DIR", os.path.join(_TEST_DATA_DIR, "thumbnails"))
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("RESUME_PENDING_ON_STARTUP", "false")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from studio.core.database import Base  # noqa: E402
from studio.core.logging import configure_logging  # noqa: E402
import studio.models  # noqa: E402,F401
from studio.services.job_store import JobStore  # noqa: E402
from studio.services.nai_image import GeneratedImageData  # noqa: E402
from studio.services.settings_store import SettingsStore  # noqa: E402
from studio.services.storage import StoredImage  # noqa: E402
from studio.workers.base import GenerationError  # noqa: E402
from studio.workers.scheduler import Scheduler  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Configure logging for the test environment."""
    configure_logging(testing=True)


class FakeGenerator:
    """
    Stand-in for the image API.

    Records every call; `fail_on` holds 0-based call numbers that raise,
    `hooks` maps call numbers to callbacks run while the call is in flight.
    """

    def __init__(
        self,
        latency: float = 0.0,
        fail_on: Optional[Set[int]] = None,
        hooks: Optional[Dict[int, Callable[[], Any]]] = None,
    ):
        self.latency = latency
        self.fail_on = fail_on or set()
        self.hooks = hooks or {}
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, api_key, prompts, parameters) -> GeneratedImageData:
        call = len(self.calls)
        self.calls.append({"api_key": api_key, "prompts": prompts, "parameters": parameters})
        hook = self.hooks.get(call)
        if hook is not None:
            hook()
        if self.latency:
            await asyncio.sleep(self.latency)
        if call in self.fail_on:
            raise GenerationError(f"boom on call {call}")
        return GeneratedImageData(image_data=b"\x89PNG fake", seed=1000 + call)

    @property
    def prompts_called(self) -> List[str]:
        return [c["prompts"]["general_prompt"] for c in self.calls]


class FakeStorage:
    """Records saves without touching the filesystem; `fail_on` holds 0-based save attempts that raise."""

    def __init__(self, fail_on: Optional[Set[int]] = None):
        self.fail_on = fail_on or set()
        self.attempts = 0
        self.saved = []

    async def save(self, image_data, project_id, job_id, seed) -> StoredImage:
        attempt = self.attempts
        self.attempts += 1
        if attempt in self.fail_on:
            raise OSError(f"disk full on save {attempt}")
        self.saved.append({"job_id": job_id, "seed": seed, "project_id": project_id})
        name = f"{job_id}_{seed}.png"
        return StoredImage(file_path=f"images/{name}", thumbnail_path=f"thumbnails/{name}")


@pytest.fixture
def session_factory() -> Generator[sessionmaker, None, None]:
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def job_store(session_factory) -> JobStore:
    return JobStore(session_factory=session_factory)


@pytest.fixture
def settings_store(session_factory) -> SettingsStore:
    store = SettingsStore(session_factory=session_factory)
    store.set("nai_api_key", "test-key")
    store.set("generation_delay", "0")
    return store


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def scheduler(job_store, settings_store, generator, storage) -> Scheduler:
    return Scheduler(
        job_store=job_store,
        settings_store=settings_store,
        generator=generator,
        storage=storage,
        generation_timeout=2.0,
    )


@pytest.fixture
def make_job(job_store) -> Callable[..., int]:
    """Create a pending job and return its id."""

    def _make(name: str = "job", total_count: int = 1, project_id: Optional[int] = 1) -> int:
        job = job_store.create(
            resolved_prompts={"general_prompt": name, "negative_prompt": "", "character_prompts": []},
            resolved_parameters={"steps": 28},
            total_count=total_count,
            project_id=project_id,
            scene_id=7,
        )
        return job.id

    return _make
