"""
Adherence Reconciler Tool
Matches due occurrences to existing adherence records (find-or-create)
"""

import logging
from typing import List, Optional, Iterable
from dataclasses import dataclass
from datetime import datetime, date
from uuid import UUID

from models import AdherenceStatus, LogEntryMethod
from schemas.medication import Medication, ReminderSlot
from schemas.adherence import AdherenceRecord
from tools.clock import Clock, resolve_clock
from tools.schedule_resolver import resolve_due_slots, scheduled_time_for


logger = logging.getLogger(__name__)


@dataclass
class DueOccurrence:
    """A (medication, slot, day) triple together with its record"""
    medication: Medication
    slot: ReminderSlot
    scheduled_time: datetime
    record: AdherenceRecord
    is_new: bool = False  # Placeholder the caller still has to save


def same_minute(first: datetime, second: datetime) -> bool:
    """Equality at minute granularity; seconds and below are ignored"""
    return first.replace(second=0, microsecond=0) == second.replace(second=0, microsecond=0)


def find_record(
    medication_id: UUID,
    scheduled_time: datetime,
    records: Iterable[AdherenceRecord]
) -> Optional[AdherenceRecord]:
    """First record for `medication_id` due at the same minute as `scheduled_time`"""
    for record in records:
        if record.medication_id == medication_id and same_minute(record.scheduled_time, scheduled_time):
            return record
    return None


def new_pending_record(
    medication: Medication,
    slot: ReminderSlot,
    day: date,
    clock: Optional[Clock] = None
) -> AdherenceRecord:
    """Fresh pending placeholder for one occurrence"""
    clock = resolve_clock(clock)
    return AdherenceRecord(
        medication_id=medication.id,
        scheduled_date=day,
        scheduled_time=scheduled_time_for(slot, day),
        status=AdherenceStatus.PENDING,
        logged_time=clock.now(),
        snooze_count=0,
        snooze_history=(),
        entry_method=LogEntryMethod.AUTOMATIC
    )


def reconcile(
    medication: Medication,
    slot: ReminderSlot,
    day: date,
    existing_records: Iterable[AdherenceRecord],
    clock: Optional[Clock] = None
) -> AdherenceRecord:
    """
    Return the record for this occurrence, creating a pending one if absent.

    Pure and idempotent: nothing is stored here. Callers that persist the
    result must serialize concurrent calls for the same occurrence.
    """
    scheduled_time = scheduled_time_for(slot, day)
    existing = find_record(medication.id, scheduled_time, existing_records)
    if existing is not None:
        return existing

    record = new_pending_record(medication, slot, day, clock)
    logger.debug(
        f"Created pending record {record.id} for medication {medication.id} "
        f"at {scheduled_time:%Y-%m-%d %H:%M}"
    )
    return record


def build_daily_agenda(
    medications: Iterable[Medication],
    day: date,
    existing_records: Iterable[AdherenceRecord],
    clock: Optional[Clock] = None
) -> List[DueOccurrence]:
    """
    Every due occurrence on `day` across `medications`, earliest first.

    Occurrences whose record was just created are flagged `is_new` so the
    caller saves each placeholder exactly once.
    """
    records = list(existing_records)
    agenda: List[DueOccurrence] = []
    seen = set()

    for medication in medications:
        for slot in resolve_due_slots(medication, day):
            scheduled_time = scheduled_time_for(slot, day)
            # Two enabled slots at the same minute share one occurrence
            key = (medication.id, scheduled_time)
            if key in seen:
                continue
            seen.add(key)

            existing = find_record(medication.id, scheduled_time, records)
            if existing is not None:
                agenda.append(DueOccurrence(medication, slot, scheduled_time, existing))
                continue

            record = reconcile(medication, slot, day, records, clock)
            agenda.append(DueOccurrence(medication, slot, scheduled_time, record, is_new=True))

    agenda.sort(key=lambda occ: (occ.scheduled_time, occ.medication.name))
    return agenda
