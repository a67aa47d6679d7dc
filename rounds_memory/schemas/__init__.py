from rounds_memory.schemas.memory import (
    SNAPSHOT_VERSION,
    TrendSeverity,
    VitalReading,
    VitalSeries,
    SessionMemory,
    PatientProfile,
    PatientMemory,
    PatientContext,
)
from rounds_memory.schemas.extraction import SessionExtraction

__all__ = [
    "SNAPSHOT_VERSION",
    "TrendSeverity",
    "VitalReading",
    "VitalSeries",
    "SessionMemory",
    "PatientProfile",
    "PatientMemory",
    "PatientContext",
    "SessionExtraction",
]
