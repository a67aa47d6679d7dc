from rounds_memory.storage.persistence import (
    MemoryPersistence,
    InMemoryPersistence,
    SqlMemoryPersistence,
)

__all__ = [
    "MemoryPersistence",
    "InMemoryPersistence",
    "SqlMemoryPersistence",
]
