"""
Services Module
Application layer composing the engine with persistence
"""

from services.medication_service import MedicationService, medication_service
from services.adherence_service import AdherenceService, OccurrenceLocks, adherence_service
from services.symptom_service import SymptomService, symptom_service


__all__ = [
    # Service classes
    "MedicationService",
    "AdherenceService",
    "OccurrenceLocks",
    "SymptomService",
    # Singleton instances
    "medication_service",
    "adherence_service",
    "symptom_service",
]
