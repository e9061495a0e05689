"""
Settings Store
Key/value settings persisted in the database.
"""

import logging
from datetime import datetime
from typing import Dict, Optional

from studio.core.database import SessionLocal
from studio.models.setting import Setting

logger = logging.getLogger(__name__)


class SettingsStore:
    """Read and write `settings` rows."""

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        """Value for key, or None when unset."""
        db = self._session_factory()
        try:
            row = db.query(Setting).filter(Setting.key == key).first()
            return row.value if row else None
        finally:
            db.close()

    def set(self, key: str, value: str):
        """Insert or update a setting."""
        db = self._session_factory()
        try:
            row = db.query(Setting).filter(Setting.key == key).first()
            if row is None:
                db.add(Setting(key=key, value=value))
            else:
                row.value = value
                row.updated_at = datetime.utcnow()
            db.commit()
            logger.info(f"[Settings] Updated {key}")
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def all(self) -> Dict[str, str]:
        db = self._session_factory()
        try:
            return {row.key: row.value for row in db.query(Setting).order_by(Setting.key).all()}
        finally:
            db.close()
