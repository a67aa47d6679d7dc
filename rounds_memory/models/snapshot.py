"""
Memory Snapshot Model

One row per patient key holding the serialized PatientMemory snapshot.
The engine treats the payload as opaque JSON; the schema version is kept
alongside so old rows can be recognized without decoding them.
"""

from sqlalchemy import String, Text, Integer
from sqlalchemy.orm import Mapped, mapped_column

from rounds_memory.models.base import Base, TimestampMixin


class MemorySnapshot(Base, TimestampMixin):
    """Persisted patient memory snapshot."""

    __tablename__ = "memory_snapshots"

    patient_key: Mapped[str] = mapped_column(String(255), primary_key=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<MemorySnapshot {self.patient_key} (v{self.version})>"
