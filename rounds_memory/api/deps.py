from fastapi import Depends, Path, Request

from rounds_memory.memory.context import ContextBuilder
from rounds_memory.memory.store import MemoryStore
from rounds_memory.storage.registry import MemoryStoreRegistry


def get_registry(request: Request) -> MemoryStoreRegistry:
    return request.app.state.registry


def get_context_builder(request: Request) -> ContextBuilder:
    return request.app.state.context_builder


def get_store(
    patient_key: str = Path(min_length=1, max_length=255),
    registry: MemoryStoreRegistry = Depends(get_registry),
) -> MemoryStore:
    """Store for the patient in the path; unknown patients start empty."""
    return registry.get(patient_key)
