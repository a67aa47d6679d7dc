"""
Session Recorder

Applies one analyzed rounds transcript (a SessionExtraction) to a patient's
memory store: the session itself, plus the facts, concerns, vitals and
profile details it surfaced.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Optional

from rounds_memory.memory.normalizer import TermNormalizer
from rounds_memory.memory.store import MemoryStore
from rounds_memory.schemas.extraction import SessionExtraction
from rounds_memory.schemas.memory import SessionMemory

logger = logging.getLogger(__name__)

_LEADING_NUMBER = re.compile(r"^\s*([-+]?\d+(?:\.\d+)?)\s*(.*?)\s*$")


def parse_measurement(text: Optional[str]) -> Optional[tuple[float, Optional[str], str]]:
    """
    Split a reported value like "1.2 mg/dL" into (1.2, "mg/dL", "1.2").

    Ratios such as blood pressure ("120/80") and values that do not start with
    a number are not measurements and return None.
    """
    if not text:
        return None
    match = _LEADING_NUMBER.match(text)
    if match is None:
        return None
    number, unit = match.groups()
    if unit.startswith("/"):
        return None
    return float(number), unit or None, number


class SessionRecorder:
    """Writes extracted session content into a MemoryStore."""

    def __init__(self, store: MemoryStore, normalizer: Optional[TermNormalizer] = None):
        self.store = store
        self.normalizer = normalizer or store.normalizer

    def record(
        self,
        extraction: SessionExtraction,
        date: Optional[datetime] = None,
    ) -> Optional[SessionMemory]:
        """
        Record one session and everything learned in it.

        All writes are persisted once, at the end.

        Returns:
            The stored session, or None if the extraction had no content
        """
        if extraction.is_empty:
            logger.debug("Skipping empty session extraction")
            return None

        session = SessionMemory(
            date=date or datetime.now(timezone.utc),
            day_number=extraction.day_number,
            key_points=extraction.key_points,
            medical_values=extraction.medical_values,
            concerns=self.normalizer.normalize_unique(extraction.concerns),
            next_steps=extraction.next_steps,
            questions_asked=extraction.questions_asked,
        )

        with self.store.batch():
            self.store.add_session(session)

            for fact in extraction.facts:
                self.store.add_fact(fact)
            for pattern in extraction.patterns:
                self.store.add_pattern(pattern)
            # At most one occurrence per concern per session
            for concern in session.concerns:
                self.store.add_concern(concern)

            vitals = 0
            for name, value in extraction.medical_values.items():
                measurement = parse_measurement(value)
                if measurement is None:
                    continue
                number, unit, raw = measurement
                if self.store.track_vital(name, number, unit=unit, raw=raw) is not None:
                    vitals += 1

            for question in extraction.questions_asked:
                self.store.record_question(question)
            for medication in extraction.medications:
                self.store.add_medication(medication)
            for member in extraction.care_team:
                self.store.add_care_team_member(member)
            for note in extraction.emotional_notes:
                self.store.add_emotional_note(note)
            if extraction.current_condition:
                self.store.set_condition(extraction.current_condition)

        logger.info(
            f"Recorded session {session.id}: {len(session.key_points)} key points, "
            f"{vitals} vitals, {len(session.concerns)} concerns"
        )
        return session
