from fastapi import APIRouter

from rounds_memory.api.memory import router as memory_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(memory_router)
