"""
Pydantic Models for Session Extraction

Structured output of the external transcript-analysis call. The engine does
not validate clinical content beyond shape; garbage in is stored as-is after
normalization.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional


class SessionExtraction(BaseModel):
    """Everything learned from one analyzed rounds transcript."""

    day_number: Optional[int] = Field(None, ge=0, description="Hospital day, if mentioned")
    key_points: list[str] = Field(default_factory=list, description="Most important takeaways")
    medical_values: dict[str, str] = Field(
        default_factory=dict,
        description="Reported values keyed by name, e.g. {'Creatinine': '1.2 mg/dL'}",
    )
    facts: list[str] = Field(default_factory=list, description="New stable facts learned")
    concerns: list[str] = Field(default_factory=list, description="Concerns raised this session")
    patterns: list[str] = Field(default_factory=list, description="Patterns noticed across days")
    next_steps: list[str] = Field(default_factory=list, description="Plans and decisions")
    questions_asked: list[str] = Field(default_factory=list, description="Questions the caregiver asked")
    medications: list[str] = Field(default_factory=list, description="Medications mentioned")
    care_team: list[str] = Field(default_factory=list, description="Care team members mentioned by name")
    emotional_notes: list[str] = Field(
        default_factory=list,
        description="Notes on the caregiver's emotional state or needs",
    )
    current_condition: Optional[str] = Field(None, description="One-line status of the patient")

    @field_validator(
        "key_points", "facts", "concerns", "patterns", "next_steps",
        "questions_asked", "medications", "care_team", "emotional_notes",
    )
    @classmethod
    def drop_blank_items(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item and item.strip()]

    @field_validator("medical_values")
    @classmethod
    def drop_blank_values(cls, v: dict[str, str]) -> dict[str, str]:
        return {
            key.strip(): value.strip()
            for key, value in v.items()
            if key and key.strip() and value and value.strip()
        }

    @property
    def is_empty(self) -> bool:
        return not (
            self.key_points
            or self.medical_values
            or self.facts
            or self.concerns
            or self.patterns
            or self.next_steps
            or self.questions_asked
            or self.medications
            or self.care_team
            or self.emotional_notes
            or self.current_condition
        )
