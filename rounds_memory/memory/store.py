"""
Patient Memory Store

Owns the longitudinal memory of one patient: sessions, facts, patterns,
concerns, vitals, questions, caregiver emotional notes, preferences and the
onboarding profile.

Every mutator updates memory first and then hands the whole snapshot to the
persistence collaborator. Persistence is best effort: a failed save is logged
and the in-memory state stays authoritative. Malformed input (blank text,
non-finite numbers, duplicate ids) is ignored rather than rejected.
"""

import logging
import math
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, Optional

from pydantic import ValidationError

from rounds_memory.config import MemoryLimits, get_settings
from rounds_memory.memory.normalizer import TermNormalizer
from rounds_memory.schemas.memory import (
    SNAPSHOT_VERSION,
    PatientMemory,
    PatientProfile,
    SessionMemory,
    VitalReading,
    VitalSeries,
)
from rounds_memory.storage.persistence import InMemoryPersistence, MemoryPersistence

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _append_bounded(items: list, item, cap: Optional[int]) -> int:
    """Append and evict oldest entries beyond cap. Returns number evicted."""
    items.append(item)
    if cap is None or len(items) <= cap:
        return 0
    overflow = len(items) - cap
    del items[:overflow]
    return overflow


def _clean(text: Optional[str]) -> str:
    return text.strip() if text else ""


class MemoryStore:
    """Bounded, append-only memory of one patient."""

    def __init__(
        self,
        persistence: Optional[MemoryPersistence] = None,
        limits: Optional[MemoryLimits] = None,
        normalizer: Optional[TermNormalizer] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.persistence = persistence if persistence is not None else InMemoryPersistence()
        self.limits = limits or get_settings().memory_limits
        self.normalizer = normalizer or TermNormalizer()
        self.clock = clock
        self._batch_depth = 0
        self._dirty = False
        self.memory = self._load()

    # ==========================================================================
    # Loading / saving
    # ==========================================================================

    def _load(self) -> PatientMemory:
        """Restore the persisted snapshot, falling back to an empty memory."""
        try:
            payload = self.persistence.load()
        except Exception as e:
            logger.error(f"Memory load failed, starting empty: {e}")
            return PatientMemory()

        if not payload:
            logger.info("No saved memory found")
            return PatientMemory()

        try:
            memory = PatientMemory.model_validate_json(payload)
        except (ValidationError, ValueError) as e:
            logger.warning(f"Failed to decode saved memory, starting empty: {e}")
            return PatientMemory()

        if memory.version > SNAPSHOT_VERSION:
            logger.warning(
                f"Saved memory has newer version {memory.version} "
                f"(supported: {SNAPSHOT_VERSION}), starting empty"
            )
            return PatientMemory()

        logger.info(
            f"Loaded memory: {len(memory.sessions)} sessions, "
            f"{len(memory.facts)} facts, {len(memory.vitals)} vitals"
        )
        return memory

    def _changed(self, touch: bool = True) -> None:
        if touch:
            self.memory.updated_at = self.clock()
        if self._batch_depth:
            self._dirty = True
            return
        self._persist()

    def _persist(self) -> bool:
        payload = self.memory.model_dump_json()
        try:
            saved = self.persistence.save(payload)
        except Exception as e:
            logger.error(f"Memory save failed, keeping in-memory state: {e}")
            return False
        if not saved:
            logger.warning("Memory save reported failure, keeping in-memory state")
        return bool(saved)

    @contextmanager
    def batch(self) -> Iterator["MemoryStore"]:
        """Group mutations so they are persisted once, when the scope exits."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._persist()

    # ==========================================================================
    # Sessions
    # ==========================================================================

    def add_session(self, session: SessionMemory) -> bool:
        """Append a session; the first one ever becomes the pinned baseline."""
        if any(s.id == session.id for s in self.memory.sessions):
            logger.debug(f"Session {session.id} already recorded")
            return False

        if self.memory.baseline_session is None:
            self.memory.baseline_session = session

        evicted = _append_bounded(self.memory.sessions, session, self.limits.max_sessions)
        if evicted:
            logger.info(f"Evicted {evicted} oldest session(s) from memory")

        self._changed()
        return True

    def context_sessions(self) -> list[SessionMemory]:
        return self.memory.context_sessions()

    # ==========================================================================
    # Facts, patterns, concerns, questions
    # ==========================================================================

    def add_fact(self, text: Optional[str]) -> bool:
        fact = _clean(text)
        if not fact or fact in self.memory.facts:
            return False
        _append_bounded(self.memory.facts, fact, self.limits.max_facts)
        self._changed()
        return True

    def add_pattern(self, text: Optional[str]) -> bool:
        pattern = _clean(text)
        if not pattern or pattern in self.memory.patterns:
            return False
        self.memory.patterns.append(pattern)
        self._changed()
        return True

    def add_concern(self, text: Optional[str]) -> bool:
        """Record one concern occurrence. Repeats are kept for recurrence counting."""
        concern = self.normalizer.normalize(text)
        if not concern:
            return False
        _append_bounded(self.memory.concerns, concern, self.limits.max_concerns)
        self._changed()
        return True

    def record_question(self, text: Optional[str]) -> bool:
        question = _clean(text)
        if not question:
            return False
        _append_bounded(self.memory.questions, question, self.limits.max_questions)
        self._changed()
        return True

    def add_emotional_note(self, text: Optional[str]) -> bool:
        """Note how the caregiver is coping, kept verbatim and deduplicated."""
        note = _clean(text)
        if not note or note in self.memory.emotional_notes:
            return False
        _append_bounded(self.memory.emotional_notes, note, self.limits.max_emotional_notes)
        self._changed()
        return True

    # ==========================================================================
    # Vitals
    # ==========================================================================

    def track_vital(
        self,
        name: Optional[str],
        value: float,
        unit: Optional[str] = None,
        raw: Optional[str] = None,
    ) -> Optional[VitalReading]:
        """Append a reading to the series for the canonical form of name."""
        label = _clean(name)
        canonical = self.normalizer.normalize(label)
        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring non-numeric vital value: {name!r}={value!r}")
            return None
        if not canonical or not math.isfinite(number):
            logger.debug(f"Ignoring unusable vital reading: {name!r}={value!r}")
            return None

        reading = VitalReading(
            value=number,
            unit=_clean(unit) or None,
            recorded_at=self.clock(),
            raw=_clean(raw) or None,
        )

        series = self.memory.vitals.get(canonical)
        if series is None:
            series = VitalSeries(name=canonical, label=label)
            self.memory.vitals[canonical] = series
        if series.baseline is None:
            series.baseline = reading

        evicted = _append_bounded(series.readings, reading, self.limits.max_vital_readings)
        if evicted:
            series.evicted_count += evicted
            logger.debug(f"Evicted {evicted} oldest {canonical} reading(s)")

        self._changed()
        return reading

    # ==========================================================================
    # Profile, preferences, condition
    # ==========================================================================

    def set_profile(self, profile: PatientProfile) -> None:
        self.memory.profile = profile
        self._changed()

    def _profile(self) -> PatientProfile:
        if self.memory.profile is None:
            self.memory.profile = PatientProfile()
        return self.memory.profile

    def _add_profile_item(self, items_attr: str, text: Optional[str]) -> bool:
        item = _clean(text)
        if not item:
            return False
        items = getattr(self._profile(), items_attr)
        if item in items:
            return False
        items.append(item)
        self._changed()
        return True

    def add_medication(self, text: Optional[str]) -> bool:
        return self._add_profile_item("medications", text)

    def add_care_team_member(self, text: Optional[str]) -> bool:
        return self._add_profile_item("care_team", text)

    def add_allergy(self, text: Optional[str]) -> bool:
        return self._add_profile_item("allergies", text)

    def set_preference(self, key: Optional[str], value: Optional[str]) -> bool:
        key = _clean(key)
        if not key:
            return False
        self.memory.preferences[key] = _clean(value)
        self._changed()
        return True

    def set_condition(self, text: Optional[str]) -> None:
        self.memory.current_condition = _clean(text) or None
        self._changed()

    # ==========================================================================
    # Snapshot / reset
    # ==========================================================================

    def snapshot(self) -> PatientMemory:
        """Deep copy of the current memory."""
        return self.memory.model_copy(deep=True)

    def reset(self) -> None:
        """Forget everything and return to the empty initial state."""
        self.memory = PatientMemory()
        logger.info("Memory reset")
        # Left unstamped so a reset memory equals a fresh one
        self._changed(touch=False)
