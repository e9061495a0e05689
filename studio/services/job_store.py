"""
Job Store
Durable record of generation jobs, their progress, and produced images.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy.orm import Session

from studio.core.database import SessionLocal
from studio.models.job import GenerationJob, GeneratedImage
from studio.workers.base import JobStatus

logger = logging.getLogger(__name__)


class JobStore:
    """
    Session-per-call access to the jobs tables.

    Returned rows are detached snapshots; mutate through the store methods.
    """

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @staticmethod
    def _query_job(db: Session, job_id: int) -> Optional[GenerationJob]:
        return db.query(GenerationJob).filter(GenerationJob.id == job_id).first()

    # ---------------- Core CRUD ----------------

    def create(
        self,
        resolved_prompts: Dict[str, Any],
        resolved_parameters: Dict[str, Any],
        total_count: int,
        project_id: Optional[int] = None,
        scene_id: Optional[int] = None,
        source_scene_id: Optional[int] = None,
    ) -> GenerationJob:
        """Insert a new pending job."""
        with self._session() as db:
            job = GenerationJob(
                project_id=project_id,
                scene_id=scene_id,
                source_scene_id=source_scene_id,
                resolved_prompts=resolved_prompts,
                resolved_parameters=resolved_parameters,
                total_count=total_count,
                completed_count=0,
                status=JobStatus.PENDING.value,
            )
            db.add(job)
            db.commit()
            db.refresh(job)
            logger.debug(f"[JobStore] Created job {job.id} ({total_count} images)")
            return job

    def get(self, job_id: int) -> Optional[GenerationJob]:
        with self._session() as db:
            return self._query_job(db, job_id)

    def get_status(self, job_id: int) -> Optional[str]:
        with self._session() as db:
            row = (
                db.query(GenerationJob.status)
                .filter(GenerationJob.id == job_id)
                .first()
            )
            return row[0] if row else None

    # ---------------- Status / progress ----------------

    def set_status(self, job_id: int, status: JobStatus, error_message: Optional[str] = None):
        """Set status; error_message is only kept for failed jobs."""
        status = JobStatus(status)
        with self._session() as db:
            job = self._query_job(db, job_id)
            if job is None:
                logger.warning(f"[JobStore] set_status on missing job {job_id}")
                return
            job.status = status.value
            job.error_message = error_message if status == JobStatus.FAILED else None
            job.updated_at = datetime.utcnow()
            db.commit()

    def set_completed_count(self, job_id: int, completed_count: int):
        """Record progress. completed_count never decreases."""
        with self._session() as db:
            job = self._query_job(db, job_id)
            if job is None:
                return
            job.completed_count = max(job.completed_count or 0, completed_count)
            job.updated_at = datetime.utcnow()
            db.commit()

    def insert_result(
        self,
        job_id: int,
        file_path: str,
        thumbnail_path: Optional[str],
        seed: Optional[int],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> GeneratedImage:
        """Record one produced image for a job."""
        with self._session() as db:
            job = self._query_job(db, job_id)
            if job is None:
                raise LookupError(f"Job {job_id} not found")
            image = GeneratedImage(
                job_id=job_id,
                project_id=job.project_id,
                scene_id=job.scene_id,
                source_scene_id=job.source_scene_id,
                file_path=file_path,
                thumbnail_path=thumbnail_path,
                seed=seed,
                image_metadata=metadata or {},
            )
            db.add(image)
            db.commit()
            db.refresh(image)
            return image

    def reset_for_retry(self, job_id: int):
        """Failed -> pending, keeping completed_count."""
        self.set_status(job_id, JobStatus.PENDING)

    # ---------------- Restart rebuild ----------------

    def requeue_interrupted(self) -> int:
        """Jobs left running by a dead process go back to pending."""
        with self._session() as db:
            count = (
                db.query(GenerationJob)
                .filter(GenerationJob.status == JobStatus.RUNNING.value)
                .update(
                    {"status": JobStatus.PENDING.value, "updated_at": datetime.utcnow()},
                    synchronize_session=False,
                )
            )
            db.commit()
            return count

    def list_pending_ids(self) -> List[int]:
        with self._session() as db:
            rows = (
                db.query(GenerationJob.id)
                .filter(GenerationJob.status == JobStatus.PENDING.value)
                .order_by(GenerationJob.id.asc())
                .all()
            )
            return [row[0] for row in rows]

    # ---------------- Listing ----------------

    def list_jobs(
        self,
        status: Optional[JobStatus] = None,
        project_id: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[GenerationJob]:
        with self._session() as db:
            query = db.query(GenerationJob)
            if status:
                query = query.filter(GenerationJob.status == JobStatus(status).value)
            if project_id is not None:
                query = query.filter(GenerationJob.project_id == project_id)
            return (
                query.order_by(GenerationJob.created_at.desc(), GenerationJob.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )

    def list_active(self, include_job_id: Optional[int] = None) -> List[GenerationJob]:
        """Pending/running jobs, plus one extra job (the halted one) first if given."""
        with self._session() as db:
            jobs = (
                db.query(GenerationJob)
                .filter(
                    GenerationJob.status.in_(
                        [JobStatus.PENDING.value, JobStatus.RUNNING.value]
                    )
                )
                .order_by(GenerationJob.id.asc())
                .all()
            )
            if include_job_id is not None and all(j.id != include_job_id for j in jobs):
                extra = self._query_job(db, include_job_id)
                if extra is not None:
                    jobs.insert(0, extra)
            return jobs

    def list_images(self, job_id: int) -> List[GeneratedImage]:
        with self._session() as db:
            return (
                db.query(GeneratedImage)
                .filter(GeneratedImage.job_id == job_id)
                .order_by(GeneratedImage.id.asc())
                .all()
            )
