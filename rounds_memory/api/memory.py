"""
Longitudinal Memory API Endpoints

Endpoints for recording what was learned in rounds sessions and for
retrieving a patient's memory snapshot and full-history context block.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status

from rounds_memory.api.deps import get_context_builder, get_store
from rounds_memory.memory.context import ContextBuilder
from rounds_memory.memory.recorder import SessionRecorder
from rounds_memory.memory.store import MemoryStore
from rounds_memory.schemas.memory import (
    ConditionUpdate,
    MemoryUpdateResult,
    PatientContext,
    PatientMemory,
    PatientProfile,
    PreferenceUpdate,
    SessionCreate,
    SessionMemory,
    TextEntry,
    VitalCreate,
    VitalReading,
)

router = APIRouter(prefix="/memory", tags=["memory"])


# =============================================================================
# Snapshot / Context
# =============================================================================

@router.get("/patients/{patient_key}", response_model=PatientMemory)
async def get_patient_memory(store: MemoryStore = Depends(get_store)):
    """Get the full memory snapshot for a patient."""
    return store.snapshot()


@router.get("/patients/{patient_key}/context", response_model=PatientContext)
async def get_patient_context(
    patient_key: str,
    store: MemoryStore = Depends(get_store),
    builder: ContextBuilder = Depends(get_context_builder),
):
    """Build the full-history context block for the next model call."""
    memory = store.snapshot()
    context_text = builder.build_from_memory(memory)
    return PatientContext(
        patient_key=patient_key,
        context_text=context_text,
        token_count=builder.estimate_tokens(context_text),
        session_count=len(memory.context_sessions()),
        generated_at=datetime.now(timezone.utc),
    )


@router.delete("/patients/{patient_key}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_patient_memory(store: MemoryStore = Depends(get_store)):
    """Forget everything remembered about a patient."""
    store.reset()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Sessions
# =============================================================================

@router.post(
    "/patients/{patient_key}/sessions",
    response_model=SessionMemory,
    status_code=status.HTTP_201_CREATED,
)
async def record_session(
    session: SessionCreate,
    store: MemoryStore = Depends(get_store),
):
    """Record one analyzed rounds session."""
    recorded = SessionRecorder(store).record(session, date=session.date)
    if recorded is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Session has no content to record",
        )
    return recorded


# =============================================================================
# Facts, patterns, concerns, questions, emotional notes
# =============================================================================

@router.post("/patients/{patient_key}/facts", response_model=MemoryUpdateResult)
async def add_fact(entry: TextEntry, store: MemoryStore = Depends(get_store)):
    return MemoryUpdateResult(changed=store.add_fact(entry.text))


@router.post("/patients/{patient_key}/patterns", response_model=MemoryUpdateResult)
async def add_pattern(entry: TextEntry, store: MemoryStore = Depends(get_store)):
    return MemoryUpdateResult(changed=store.add_pattern(entry.text))


@router.post("/patients/{patient_key}/concerns", response_model=MemoryUpdateResult)
async def add_concern(entry: TextEntry, store: MemoryStore = Depends(get_store)):
    """Record one occurrence of a concern; repeats count toward recurrence."""
    return MemoryUpdateResult(changed=store.add_concern(entry.text))


@router.post("/patients/{patient_key}/questions", response_model=MemoryUpdateResult)
async def record_question(entry: TextEntry, store: MemoryStore = Depends(get_store)):
    return MemoryUpdateResult(changed=store.record_question(entry.text))


@router.post("/patients/{patient_key}/emotional-notes", response_model=MemoryUpdateResult)
async def add_emotional_note(entry: TextEntry, store: MemoryStore = Depends(get_store)):
    return MemoryUpdateResult(changed=store.add_emotional_note(entry.text))


# =============================================================================
# Vitals
# =============================================================================

@router.post(
    "/patients/{patient_key}/vitals",
    response_model=VitalReading,
    status_code=status.HTTP_201_CREATED,
)
async def track_vital(vital: VitalCreate, store: MemoryStore = Depends(get_store)):
    """Append a reading to the vital's series."""
    reading = store.track_vital(vital.name, vital.value, unit=vital.unit)
    if reading is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Vital name or value not usable",
        )
    return reading


# =============================================================================
# Profile, condition, preferences
# =============================================================================

@router.put("/patients/{patient_key}/profile", response_model=PatientProfile)
async def set_profile(profile: PatientProfile, store: MemoryStore = Depends(get_store)):
    store.set_profile(profile)
    return profile


@router.put("/patients/{patient_key}/condition", response_model=MemoryUpdateResult)
async def set_condition(update: ConditionUpdate, store: MemoryStore = Depends(get_store)):
    store.set_condition(update.condition)
    return MemoryUpdateResult(changed=True)


@router.put("/patients/{patient_key}/preferences", response_model=MemoryUpdateResult)
async def set_preference(update: PreferenceUpdate, store: MemoryStore = Depends(get_store)):
    return MemoryUpdateResult(changed=store.set_preference(update.key, update.value))
