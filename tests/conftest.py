import pytest
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from rounds_memory.config import MemoryLimits, Settings
from rounds_memory.main import create_app
from rounds_memory.memory.normalizer import TermNormalizer
from rounds_memory.memory.store import MemoryStore
from rounds_memory.storage.persistence import InMemoryPersistence


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime = datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def normalizer() -> TermNormalizer:
    return TermNormalizer()


@pytest.fixture
def persistence() -> InMemoryPersistence:
    return InMemoryPersistence()


@pytest.fixture
def limits() -> MemoryLimits:
    return MemoryLimits(
        max_sessions=5,
        max_facts=5,
        max_vital_readings=4,
        max_questions=3,
        max_concerns=6,
        max_emotional_notes=2,
    )


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def store(persistence: InMemoryPersistence, limits: MemoryLimits, clock: StepClock) -> MemoryStore:
    """Fresh in-memory store with small caps."""
    return MemoryStore(persistence=persistence, limits=limits, clock=clock)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'rounds_memory_test.db'}"


@pytest.fixture(scope="function")
async def app(database_url: str) -> AsyncGenerator[FastAPI, None]:
    """App backed by a temporary SQLite file, with lifespan running."""
    application = create_app(Settings(database_url=database_url))

    # ASGITransport does not send lifespan events
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture(scope="function")
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
