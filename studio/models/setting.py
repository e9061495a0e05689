"""
Setting Model
Key/value settings (API credential, generation delay, ...).
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from studio.core.database import Base


class Setting(Base):
    """A single key/value setting row."""

    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
