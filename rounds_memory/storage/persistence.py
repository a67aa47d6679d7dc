"""
Memory Persistence

The memory store only needs a load/save contract over a serialized snapshot.
Two collaborators are provided: an in-memory one (tests, ephemeral use) and a
SQLAlchemy-backed one keeping one row per patient key.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from rounds_memory.models.snapshot import MemorySnapshot
from rounds_memory.schemas.memory import SNAPSHOT_VERSION

logger = logging.getLogger(__name__)


@runtime_checkable
class MemoryPersistence(Protocol):
    """Get/set contract over one serialized memory snapshot."""

    def load(self) -> Optional[str]:
        """Return the stored snapshot, or None if nothing was saved."""
        ...

    def save(self, payload: str) -> bool:
        """Store the snapshot; return False on failure."""
        ...


class InMemoryPersistence:
    """Keeps the snapshot in process memory."""

    def __init__(self, payload: Optional[str] = None):
        self.payload = payload
        self.save_count = 0

    def load(self) -> Optional[str]:
        return self.payload

    def save(self, payload: str) -> bool:
        self.payload = payload
        self.save_count += 1
        return True


class SqlMemoryPersistence:
    """Stores the snapshot in the memory_snapshots table under a patient key."""

    def __init__(self, session_factory: sessionmaker[Session], patient_key: str):
        self.session_factory = session_factory
        self.patient_key = patient_key

    def load(self) -> Optional[str]:
        try:
            with self.session_factory() as db:
                row = db.get(MemorySnapshot, self.patient_key)
                return row.payload if row else None
        except SQLAlchemyError as e:
            logger.error(f"Failed to load memory snapshot for {self.patient_key}: {e}")
            return None

    def save(self, payload: str) -> bool:
        try:
            with self.session_factory() as db:
                row = db.get(MemorySnapshot, self.patient_key)
                if row is None:
                    row = MemorySnapshot(
                        patient_key=self.patient_key,
                        version=SNAPSHOT_VERSION,
                        payload=payload,
                    )
                    db.add(row)
                else:
                    row.version = SNAPSHOT_VERSION
                    row.payload = payload
                db.commit()
            return True
        except SQLAlchemyError as e:
            logger.error(f"Failed to save memory snapshot for {self.patient_key}: {e}")
            return False
