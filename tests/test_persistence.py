"""
Tests for SQL Snapshot Persistence

Memory saved through SQLAlchemy reloads into an identical entity model.
"""

import pytest

from rounds_memory.database import build_engine, build_session_factory, init_db
from rounds_memory.memory.store import MemoryStore
from rounds_memory.models.snapshot import MemorySnapshot
from rounds_memory.schemas.memory import SNAPSHOT_VERSION, PatientProfile, SessionMemory
from rounds_memory.storage.persistence import (
    InMemoryPersistence,
    MemoryPersistence,
    SqlMemoryPersistence,
)
from rounds_memory.storage.registry import MemoryStoreRegistry


@pytest.fixture
def session_factory(database_url: str):
    engine = build_engine(database_url)
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


class TestSqlMemoryPersistence:

    def test_implements_protocol(self, session_factory):
        assert isinstance(SqlMemoryPersistence(session_factory, "p1"), MemoryPersistence)
        assert isinstance(InMemoryPersistence(), MemoryPersistence)

    def test_load_missing_patient(self, session_factory):
        assert SqlMemoryPersistence(session_factory, "nobody").load() is None

    def test_save_inserts_then_updates(self, session_factory):
        persistence = SqlMemoryPersistence(session_factory, "p1")
        assert persistence.save('{"facts": ["a"]}') is True
        assert persistence.save('{"facts": ["b"]}') is True
        assert persistence.load() == '{"facts": ["b"]}'

        with session_factory() as db:
            row = db.get(MemorySnapshot, "p1")
            assert row.version == SNAPSHOT_VERSION

    def test_patients_are_isolated(self, session_factory):
        SqlMemoryPersistence(session_factory, "p1").save('{"facts": ["one"]}')
        SqlMemoryPersistence(session_factory, "p2").save('{"facts": ["two"]}')
        assert SqlMemoryPersistence(session_factory, "p1").load() == '{"facts": ["one"]}'

    def test_database_errors_are_reported_not_raised(self, database_url: str):
        # Tables never created
        engine = build_engine(database_url)
        persistence = SqlMemoryPersistence(build_session_factory(engine), "p1")
        assert persistence.load() is None
        assert persistence.save("{}") is False
        engine.dispose()


class TestRoundTrip:

    def test_store_round_trip(self, session_factory, limits):
        store = MemoryStore(persistence=SqlMemoryPersistence(session_factory, "p1"), limits=limits)
        store.set_profile(PatientProfile(patient_name="Sam", diagnosis="Double lung transplant"))
        for day in range(1, limits.max_sessions + 3):
            store.add_session(SessionMemory(day_number=day, key_points=[f"day {day}"]))
        for value in [1.0, 1.3, 1.6]:
            store.track_vital("Creatinine", value, unit="mg/dL")
        store.add_fact("Transplant on Feb 27")
        store.add_pattern("Tired after PT")
        store.add_concern("fever")
        store.add_concern("fever")
        store.record_question("When is the bronch?")
        store.add_emotional_note("Tired but hopeful")
        store.set_preference("tone", "plain")
        store.set_condition("Stable")

        restored = MemoryStore(persistence=SqlMemoryPersistence(session_factory, "p1"), limits=limits)

        assert restored.memory == store.memory
        assert restored.memory.baseline_evicted is True
        assert [r.value for r in restored.memory.vitals["creatinine"].readings] == [1.0, 1.3, 1.6]


class TestMemoryStoreRegistry:

    def test_same_store_per_patient(self, session_factory, limits):
        registry = MemoryStoreRegistry(session_factory, limits=limits)
        assert registry.get("p1") is registry.get("p1")
        assert registry.get("p1") is not registry.get("p2")
        assert len(registry) == 2
        assert "p1" in registry

    def test_store_reloads_from_database(self, session_factory, limits):
        MemoryStoreRegistry(session_factory, limits=limits).get("p1").add_fact("remembered")
        fresh = MemoryStoreRegistry(session_factory, limits=limits)
        assert fresh.get("p1").memory.facts == ["remembered"]
