"""
Patient Memory Schemas

Pydantic models for the longitudinal patient memory. Everything the engine
remembers lives under one PatientMemory snapshot, which is what gets
serialized to (and restored from) the persistence collaborator.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime, timezone
from uuid import UUID, uuid4
from typing import Optional
from enum import Enum

from rounds_memory.schemas.extraction import SessionExtraction


SNAPSHOT_VERSION = 1


# =============================================================================
# Enums
# =============================================================================

class TrendSeverity(str, Enum):
    """Severity tag attached to a vital's current trend."""
    CRITICAL = "CRITICAL"
    CONCERNING = "CONCERNING"
    WATCH = "WATCH"
    HIGH_SUPPORT = "HIGH SUPPORT"
    INCREASING = "INCREASING"
    FEVER = "FEVER"
    LOW_GRADE = "LOW-GRADE"
    ELEVATED = "ELEVATED"
    REBOUND = "REBOUND"
    SIGNIFICANT_CHANGE = "SIGNIFICANT CHANGE"


# =============================================================================
# Vitals
# =============================================================================

class VitalReading(BaseModel):
    """A single measurement of a vital or lab value."""
    model_config = ConfigDict(frozen=True)

    value: float
    unit: Optional[str] = None
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    raw: Optional[str] = None  # value text as reported, e.g. "1.0"


class VitalSeries(BaseModel):
    """All readings of one vital, oldest first."""
    name: str  # canonical
    label: str  # first display label seen, e.g. "Creatinine"
    readings: list[VitalReading] = Field(default_factory=list)
    baseline: Optional[VitalReading] = None  # first reading ever, survives eviction
    evicted_count: int = Field(default=0, ge=0)  # readings dropped from the front of the log

    @property
    def baseline_reading(self) -> Optional[VitalReading]:
        if self.baseline is not None:
            return self.baseline
        return self.readings[0] if self.readings else None

    @property
    def baseline_evicted(self) -> bool:
        """True when the pinned baseline no longer heads the reading log."""
        return self.baseline is not None and bool(self.readings) and self.evicted_count > 0


# =============================================================================
# Sessions
# =============================================================================

class SessionMemory(BaseModel):
    """What was learned in one rounds session. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    day_number: Optional[int] = Field(default=None, ge=0)
    key_points: list[str] = Field(default_factory=list)
    medical_values: dict[str, str] = Field(default_factory=dict)
    concerns: list[str] = Field(default_factory=list)
    next_steps: list[str] = Field(default_factory=list)
    questions_asked: list[str] = Field(default_factory=list)

    @property
    def date_formatted(self) -> str:
        return f"{self.date:%b} {self.date.day}, {self.date.year}"


# =============================================================================
# Profile
# =============================================================================

class PatientProfile(BaseModel):
    """Core identity, set at onboarding."""
    caregiver_name: str = ""
    patient_name: str = ""
    relationship: str = ""
    diagnosis: str = ""
    surgery_date: Optional[date] = None
    admission_date: Optional[date] = None
    care_team: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)
    allergies: list[str] = Field(default_factory=list)


# =============================================================================
# Snapshot
# =============================================================================

class PatientMemory(BaseModel):
    """Full memory of one patient; the unit of persistence."""
    version: int = SNAPSHOT_VERSION
    profile: Optional[PatientProfile] = None
    sessions: list[SessionMemory] = Field(default_factory=list)
    baseline_session: Optional[SessionMemory] = None
    facts: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    concerns: list[str] = Field(default_factory=list)
    vitals: dict[str, VitalSeries] = Field(default_factory=dict)
    questions: list[str] = Field(default_factory=list)
    emotional_notes: list[str] = Field(default_factory=list)
    preferences: dict[str, str] = Field(default_factory=dict)
    current_condition: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def baseline_evicted(self) -> bool:
        """True when the pinned baseline session has left the rolling log."""
        if self.baseline_session is None:
            return False
        return all(s.id != self.baseline_session.id for s in self.sessions)

    def context_sessions(self) -> list[SessionMemory]:
        """All sessions, with the pinned baseline restored in front if evicted."""
        sessions = list(self.sessions)
        if self.baseline_evicted:
            sessions.insert(0, self.baseline_session)
        return sessions

    @property
    def is_empty(self) -> bool:
        return (
            self.profile is None
            and not self.sessions
            and self.baseline_session is None
            and not self.facts
            and not self.patterns
            and not self.concerns
            and not self.vitals
            and not self.questions
            and not self.emotional_notes
            and not self.preferences
            and not self.current_condition
        )


# =============================================================================
# API Schemas
# =============================================================================

class TextEntry(BaseModel):
    """A fact, pattern, concern or question as free text."""
    text: str = Field(max_length=2000)


class VitalCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    value: float
    unit: Optional[str] = None


class ConditionUpdate(BaseModel):
    condition: Optional[str] = None


class PreferenceUpdate(BaseModel):
    key: str = Field(min_length=1, max_length=255)
    value: str


class SessionCreate(SessionExtraction):
    """Extraction of one session plus when it happened (defaults to now)."""
    date: Optional[datetime] = None


class MemoryUpdateResult(BaseModel):
    changed: bool


class PatientContext(BaseModel):
    """Context block handed to the model-invocation collaborator."""
    patient_key: str
    context_text: str
    token_count: int
    session_count: int
    generated_at: datetime
