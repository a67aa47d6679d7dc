"""
Tests for Session Recording

An analyzed session extraction lands in every part of memory it touches,
with a single save.
"""

import pytest

from rounds_memory.memory.recorder import SessionRecorder, parse_measurement
from rounds_memory.memory.store import MemoryStore
from rounds_memory.schemas.extraction import SessionExtraction
from rounds_memory.storage.persistence import InMemoryPersistence


class TestParseMeasurement:

    @pytest.mark.parametrize("text,expected", [
        ("1.2 mg/dL", (1.2, "mg/dL", "1.2")),
        ("1.0", (1.0, None, "1.0")),
        ("  2 L ", (2.0, "L", "2")),
        ("95%", (95.0, "%", "95")),
        ("-1.5", (-1.5, None, "-1.5")),
    ])
    def test_numeric_values(self, text, expected):
        assert parse_measurement(text) == expected

    @pytest.mark.parametrize("text", [None, "", "120/80", "120 / 80", "stable", "about 2 L"])
    def test_non_measurements(self, text):
        assert parse_measurement(text) is None


class TestSessionExtraction:

    def test_blank_items_are_dropped(self):
        extraction = SessionExtraction(
            key_points=["  Stable  ", "", "   "],
            medical_values={"Creatinine": " 1.1 ", " ": "2", "HR": "  "},
        )
        assert extraction.key_points == ["Stable"]
        assert extraction.medical_values == {"Creatinine": "1.1"}

    def test_is_empty(self):
        assert SessionExtraction().is_empty is True
        assert SessionExtraction(facts=["  "]).is_empty is True
        assert SessionExtraction(current_condition="Stable").is_empty is False
        assert SessionExtraction(emotional_notes=["Exhausted"]).is_empty is False


class TestSessionRecorder:

    def test_records_everything_with_one_save(self, store: MemoryStore, persistence: InMemoryPersistence):
        extraction = SessionExtraction(
            day_number=3,
            key_points=["Extubated this morning"],
            medical_values={"Creatinine": "1.2 mg/dL", "Blood pressure": "120/80", "O2 flow": "2 L"},
            facts=["Double lung transplant on Feb 27"],
            concerns=["BAL results", "bronch", "fever"],
            patterns=["Better in the mornings"],
            next_steps=["Bronch Friday"],
            questions_asked=["When is the next bronch?"],
            medications=["Tacrolimus"],
            care_team=["Dr. Patel"],
            emotional_notes=["Anxious about the bronch results", "  "],
            current_condition="Stable on 2L nasal cannula",
        )

        session = SessionRecorder(store).record(extraction)

        assert persistence.save_count == 1
        memory = store.memory
        assert memory.sessions == [session]
        assert session.day_number == 3
        assert session.concerns == ["bronchoscopy", "fever"]
        assert session.medical_values["Blood pressure"] == "120/80"
        assert memory.facts == ["Double lung transplant on Feb 27"]
        assert memory.patterns == ["Better in the mornings"]
        assert memory.concerns == ["bronchoscopy", "fever"]
        assert memory.questions == ["When is the next bronch?"]
        assert memory.profile.medications == ["Tacrolimus"]
        assert memory.profile.care_team == ["Dr. Patel"]
        assert memory.emotional_notes == ["Anxious about the bronch results"]
        assert memory.current_condition == "Stable on 2L nasal cannula"

        assert sorted(memory.vitals) == ["creatinine", "supplemental_oxygen"]
        creatinine = memory.vitals["creatinine"].readings[0]
        assert (creatinine.value, creatinine.unit, creatinine.raw) == (1.2, "mg/dL", "1.2")

    def test_concern_repeats_across_sessions(self, store: MemoryStore):
        recorder = SessionRecorder(store)
        recorder.record(SessionExtraction(concerns=["fever"]))
        recorder.record(SessionExtraction(concerns=["Fever", "fever"]))
        assert store.memory.concerns == ["fever", "fever"]

    def test_empty_extraction_is_noop(self, store: MemoryStore, persistence: InMemoryPersistence):
        assert SessionRecorder(store).record(SessionExtraction(key_points=["  "])) is None
        assert store.memory.sessions == []
        assert persistence.save_count == 0

    def test_first_session_becomes_baseline(self, store: MemoryStore):
        recorder = SessionRecorder(store)
        first = recorder.record(SessionExtraction(day_number=1, key_points=["Admitted"]))
        recorder.record(SessionExtraction(day_number=2, key_points=["Stable"]))
        assert store.memory.baseline_session == first
