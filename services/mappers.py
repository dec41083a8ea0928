"""
Row Mappers
Conversion between ORM rows and the engine's pydantic schemas
"""

from typing import Optional
from uuid import UUID

import models
from schemas.medication import Medication, ReminderSlot
from schemas.adherence import AdherenceRecord, SnoozeEvent
from schemas.symptom import SymptomEntry


# ==================== MEDICATIONS ====================

def row_to_medication(row: models.Medication) -> Medication:
    return Medication(
        id=UUID(row.id),
        name=row.name,
        dosage=row.dosage,
        instructions=row.instructions or "",
        color=row.color or "blue",
        shape=row.shape or models.MedicationShape.PILL,
        custom_reminder_message=row.custom_reminder_message,
        schedule_type=row.schedule_type,
        reminder_times=[
            ReminderSlot(
                id=UUID(slot.id),
                hour=slot.hour,
                minute=slot.minute,
                is_enabled=slot.is_enabled,
                custom_days=frozenset(slot.custom_days) if slot.custom_days is not None else None
            )
            for slot in row.reminder_slots
        ],
        allow_snooze=row.allow_snooze,
        snooze_intervals=row.snooze_intervals or [],
        is_active=row.is_active,
        created_at=row.created_at,
        last_modified=row.last_modified
    )


def medication_to_row(
    medication: Medication,
    row: Optional[models.Medication] = None
) -> models.Medication:
    """Copy `medication` onto `row` (or a new row), replacing its slots"""
    row = row or models.Medication(id=str(medication.id))
    row.name = medication.name
    row.dosage = medication.dosage
    row.instructions = medication.instructions
    row.color = medication.color
    row.shape = medication.shape
    row.custom_reminder_message = medication.custom_reminder_message
    row.schedule_type = medication.schedule_type
    row.allow_snooze = medication.allow_snooze
    row.snooze_intervals = list(medication.snooze_intervals)
    row.is_active = medication.is_active
    row.created_at = medication.created_at
    row.last_modified = medication.last_modified
    existing = {slot.id: slot for slot in row.reminder_slots}
    slots = []
    for position, slot in enumerate(medication.reminder_times):
        slot_row = existing.get(str(slot.id)) or models.ReminderSlot(id=str(slot.id))
        slot_row.position = position
        slot_row.hour = slot.hour
        slot_row.minute = slot.minute
        slot_row.is_enabled = slot.is_enabled
        slot_row.custom_days = sorted(slot.custom_days) if slot.custom_days is not None else None
        slots.append(slot_row)
    row.reminder_slots = slots
    return row


# ==================== ADHERENCE ====================

def row_to_record(row: models.AdherenceRecord) -> AdherenceRecord:
    return AdherenceRecord(
        id=UUID(row.id),
        medication_id=UUID(row.medication_id),
        scheduled_date=row.scheduled_date,
        scheduled_time=row.scheduled_time,
        status=row.status,
        actual_taken_time=row.actual_taken_time,
        logged_time=row.logged_time,
        delay_reason=row.delay_reason,
        miss_reason=row.miss_reason,
        notes=row.notes,
        snooze_count=row.snooze_count,
        snooze_history=tuple(
            SnoozeEvent(
                id=UUID(event.id),
                timestamp=event.timestamp,
                duration_minutes=event.duration_minutes,
                reason=event.reason
            )
            for event in row.snooze_history
        ),
        entry_method=row.entry_method
    )


def record_to_row(
    record: AdherenceRecord,
    row: Optional[models.AdherenceRecord] = None
) -> models.AdherenceRecord:
    """Copy `record` onto `row` (or a new row); snooze events are only appended"""
    row = row or models.AdherenceRecord(id=str(record.id))
    row.medication_id = str(record.medication_id)
    row.scheduled_date = record.scheduled_date
    row.scheduled_time = record.scheduled_time
    row.status = record.status
    row.actual_taken_time = record.actual_taken_time
    row.logged_time = record.logged_time
    row.delay_reason = record.delay_reason
    row.miss_reason = record.miss_reason
    row.notes = record.notes
    row.snooze_count = record.snooze_count
    row.entry_method = record.entry_method

    stored = {event.id for event in row.snooze_history}
    for position, event in enumerate(record.snooze_history):
        if str(event.id) in stored:
            continue
        row.snooze_history.append(
            models.SnoozeEvent(
                id=str(event.id),
                position=position,
                timestamp=event.timestamp,
                duration_minutes=event.duration_minutes,
                reason=event.reason
            )
        )
    return row


# ==================== SYMPTOMS ====================

def row_to_symptom_entry(row: models.SymptomEntry) -> SymptomEntry:
    return SymptomEntry(
        id=UUID(row.id),
        entry_date=row.entry_date,
        timestamp=row.timestamp,
        pain_level=row.pain_level,
        fatigue_level=row.fatigue_level,
        mood_level=row.mood_level,
        notes=row.notes,
        triggers=frozenset(row.triggers or []),
        entry_method=row.entry_method or models.SymptomEntryMethod.MANUAL
    )


def symptom_entry_to_row(
    entry: SymptomEntry,
    row: Optional[models.SymptomEntry] = None
) -> models.SymptomEntry:
    row = row or models.SymptomEntry(id=str(entry.id))
    row.entry_date = entry.entry_date
    row.timestamp = entry.timestamp
    row.pain_level = entry.pain_level
    row.fatigue_level = entry.fatigue_level
    row.mood_level = entry.mood_level
    row.notes = entry.notes
    row.triggers = sorted(entry.triggers)
    row.entry_method = entry.entry_method
    return row
