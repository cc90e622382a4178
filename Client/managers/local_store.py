"""
MusicSync Client - Local Store

Persistent key-value store for application state, backed by SQLite
through SQLAlchemy. Exposes only get/set/remove so any key-value backend
can stand in for it.

Author: MusicSync Project
"""

import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from models import Base, KeyValue

# Configure logging
logger = logging.getLogger(__name__)


class LocalStore:
    """
    Local key-value persistence.

    Responsibilities:
    - Create the SQLite database and key_value table on first use
    - Get, set and remove string values by key
    """

    def __init__(self, db_path: str = "data/musicsync.db"):
        """
        Initialize local store.

        Args:
            db_path: Path to SQLite database file, or ":memory:"
        """
        self.db_path = db_path

        if db_path != ":memory:":
            # Ensure database directory exists
            db_dir = Path(db_path).parent
            if db_dir and str(db_dir) != '.':
                db_dir.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(f"sqlite:///{db_path}", echo=False)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)
        logger.debug(f"Local store ready at {db_path}")

    def get(self, key: str) -> Optional[str]:
        """
        Get stored value.

        Args:
            key: Storage key

        Returns:
            Stored string or None if the key is absent
        """
        session = self.SessionLocal()
        try:
            row = session.get(KeyValue, key)
            return row.value if row else None
        finally:
            session.close()

    def set(self, key: str, value: str):
        """
        Store value, replacing any previous value.

        Args:
            key: Storage key
            value: String value to store
        """
        session = self.SessionLocal()
        try:
            session.merge(KeyValue(key=key, value=value))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def remove(self, key: str):
        """
        Remove a key. Removing an absent key is not an error.

        Args:
            key: Storage key
        """
        session = self.SessionLocal()
        try:
            session.query(KeyValue).filter(KeyValue.key == key).delete()
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        """Release database connections."""
        self.engine.dispose()
