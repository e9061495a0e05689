"""
Generation Job Models
Database models for generation jobs and the images they produce.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from studio.core.database import Base


class GenerationJob(Base):
    """Generation job model: one prompt/parameter set, total_count images."""

    __tablename__ = "generation_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # Project-less ("quick") jobs leave these empty
    project_id = Column(Integer, nullable=True, index=True)
    scene_id = Column(Integer, nullable=True, index=True)
    source_scene_id = Column(Integer, nullable=True)

    # Request
    resolved_prompts = Column(JSON, nullable=False)
    resolved_parameters = Column(JSON, nullable=False)

    # Progress
    total_count = Column(Integer, default=1, nullable=False)
    completed_count = Column(Integer, default=0, nullable=False)

    # Status: pending, running, completed, failed, cancelled
    status = Column(String, default="pending", index=True)
    error_message = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    images = relationship(
        "GeneratedImage",
        back_populates="job",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def remaining_count(self) -> int:
        """Images still to produce (never negative)."""
        return max((self.total_count or 0) - (self.completed_count or 0), 0)


class GeneratedImage(Base):
    """One persisted image produced by a generation job."""

    __tablename__ = "generated_images"

    id = Column(Integer, primary_key=True, autoincrement=True)
    job_id = Column(
        Integer,
        ForeignKey("generation_jobs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    project_id = Column(Integer, nullable=True, index=True)
    scene_id = Column(Integer, nullable=True, index=True)
    source_scene_id = Column(Integer, nullable=True)

    file_path = Column(String, nullable=False)
    thumbnail_path = Column(String, nullable=True)
    seed = Column(Integer, nullable=True)
    image_metadata = Column(JSON, default=dict)  # prompts + parameters used

    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("GenerationJob", back_populates="images")
