"""
Schemas Package
Pydantic domain models consumed and produced by the engine
"""

from .medication import Medication, ReminderSlot
from .adherence import AdherenceRecord, SnoozeEvent
from .symptom import (
    SymptomEntry,
    COMMON_TRIGGERS,
    pain_description,
    fatigue_description,
    mood_description
)

__all__ = [
    "Medication",
    "ReminderSlot",
    "AdherenceRecord",
    "SnoozeEvent",
    "SymptomEntry",
    "COMMON_TRIGGERS",
    "pain_description",
    "fatigue_description",
    "mood_description",
]
