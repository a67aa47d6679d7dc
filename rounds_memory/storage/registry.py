"""
Memory Store Registry

Owns one MemoryStore per patient key for the lifetime of the service. Stores
are created lazily on first use and restored from their SQL snapshot.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from rounds_memory.config import MemoryLimits
from rounds_memory.memory.normalizer import TermNormalizer
from rounds_memory.memory.store import MemoryStore
from rounds_memory.storage.persistence import SqlMemoryPersistence

logger = logging.getLogger(__name__)


class MemoryStoreRegistry:
    """Lazily created, SQL-backed stores keyed by patient."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        limits: Optional[MemoryLimits] = None,
        normalizer: Optional[TermNormalizer] = None,
    ):
        self.session_factory = session_factory
        self.limits = limits
        self.normalizer = normalizer or TermNormalizer()
        self._stores: dict[str, MemoryStore] = {}

    def get(self, patient_key: str) -> MemoryStore:
        store = self._stores.get(patient_key)
        if store is None:
            logger.info(f"Opening memory store for {patient_key}")
            store = MemoryStore(
                persistence=SqlMemoryPersistence(self.session_factory, patient_key),
                limits=self.limits,
                normalizer=self.normalizer,
            )
            self._stores[patient_key] = store
        return store

    def __contains__(self, patient_key: str) -> bool:
        return patient_key in self._stores

    def __len__(self) -> int:
        return len(self._stores)
