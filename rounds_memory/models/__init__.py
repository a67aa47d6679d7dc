from rounds_memory.models.base import Base, TimestampMixin
from rounds_memory.models.snapshot import MemorySnapshot

__all__ = [
    "Base",
    "TimestampMixin",
    "MemorySnapshot",
]
