"""
Symptom Schemas
Pydantic model for the daily symptom check-in
"""

from typing import Optional, FrozenSet
from datetime import datetime, date
from uuid import UUID, uuid4
from pydantic import BaseModel, Field, ConfigDict, field_validator

from models import SymptomEntryMethod


# Common triggers offered for quick selection
COMMON_TRIGGERS = [
    "Weather Change",
    "Stress",
    "Poor Sleep",
    "Physical Activity",
    "Medication Change",
    "Diet",
    "Hormonal",
    "Travel",
    "Work Pressure",
    "Family Issues"
]

PAIN_DESCRIPTIONS = {1: "Minimal", 2: "Mild", 3: "Moderate", 4: "Severe", 5: "Very Severe"}
FATIGUE_DESCRIPTIONS = {
    1: "Energetic", 2: "Slightly Tired", 3: "Moderately Tired", 4: "Very Tired", 5: "Exhausted"
}
MOOD_DESCRIPTIONS = {1: "Very Low", 2: "Low", 3: "Neutral", 4: "Good", 5: "Very Good"}


def pain_description(level: int) -> str:
    return PAIN_DESCRIPTIONS.get(level, "Unknown")


def fatigue_description(level: int) -> str:
    return FATIGUE_DESCRIPTIONS.get(level, "Unknown")


def mood_description(level: int) -> str:
    return MOOD_DESCRIPTIONS.get(level, "Unknown")


class SymptomEntry(BaseModel):
    """One check-in per calendar day; every level is optional"""
    id: UUID = Field(default_factory=uuid4)
    entry_date: date
    timestamp: datetime = Field(default_factory=datetime.now)

    pain_level: Optional[int] = Field(None, ge=1, le=5)      # 1 = minimal, 5 = severe
    fatigue_level: Optional[int] = Field(None, ge=1, le=5)   # 1 = energetic, 5 = exhausted
    mood_level: Optional[int] = Field(None, ge=1, le=5)      # 1 = very low, 5 = very good

    notes: Optional[str] = None
    triggers: FrozenSet[str] = frozenset()
    entry_method: SymptomEntryMethod = SymptomEntryMethod.MANUAL

    model_config = ConfigDict(from_attributes=True)

    @field_validator("entry_date", mode="before")
    @classmethod
    def _day_granularity(cls, value):
        if isinstance(value, datetime):
            return value.date()
        return value

    @property
    def was_quick_entry(self) -> bool:
        return self.entry_method == SymptomEntryMethod.QUICK_ENTRY

    @property
    def has_any_symptoms(self) -> bool:
        return any(
            level is not None
            for level in (self.pain_level, self.fatigue_level, self.mood_level)
        )
