"""
Schedule Resolver Tool
Expands a medication's recurrence rule into the reminder slots due on a day
"""

import logging
from typing import List
from datetime import datetime, date, time

from config import engine_config
from exceptions import InvalidInputError
from models import ScheduleType
from schemas.medication import Medication, ReminderSlot


logger = logging.getLogger(__name__)


def weekday_number(day: date) -> int:
    """Weekday of `day` in the 1-7 encoding where 1 is Sunday and 7 is Saturday"""
    return day.isoweekday() % 7 + 1


def scheduled_time_for(slot: ReminderSlot, day: date) -> datetime:
    """Exact due instant of `slot` on `day`, sub-minute fields zeroed"""
    return datetime.combine(day, time(slot.hour, slot.minute))


def _check_custom_days(medication: Medication, slot: ReminderSlot) -> None:
    bad = sorted(d for d in (slot.custom_days or ()) if not 1 <= d <= 7)
    if bad:
        raise InvalidInputError(
            f"Medication {medication.id} slot {slot.id} has custom days outside 1-7: {bad}"
        )


def is_due_on(medication: Medication, slot: ReminderSlot, day: date) -> bool:
    """Whether an enabled `slot` of `medication` falls on `day`"""
    weekday = weekday_number(day)
    schedule_type = medication.schedule_type

    if schedule_type == ScheduleType.DAILY:
        return True
    if schedule_type == ScheduleType.WEEKDAYS:
        return weekday in engine_config.WEEKDAY_NUMBERS
    if schedule_type == ScheduleType.WEEKENDS:
        return weekday in engine_config.WEEKEND_NUMBERS
    if schedule_type == ScheduleType.CUSTOM:
        _check_custom_days(medication, slot)
        return bool(slot.custom_days) and weekday in slot.custom_days
    if schedule_type == ScheduleType.AS_NEEDED:
        return False
    raise InvalidInputError(f"Unknown schedule type: {schedule_type!r}")


def resolve_due_slots(medication: Medication, day: date) -> List[ReminderSlot]:
    """
    Reminder slots of `medication` due on `day`, earliest first.

    Inactive and as-needed medications are never due. Only enabled
    slots are considered; custom schedules are matched per slot.
    """
    if not medication.is_active:
        logger.debug(f"Medication {medication.id} inactive, nothing due on {day}")
        return []

    due = [
        slot for slot in medication.enabled_slots
        if is_due_on(medication, slot, day)
    ]
    due.sort(key=lambda slot: (slot.hour, slot.minute))

    logger.debug(
        f"Resolved {len(due)} due slot(s) for medication {medication.id} "
        f"({medication.schedule_type.value}) on {day}"
    )
    return due


def validate_medication(medication: Medication) -> None:
    """
    Check the invariants a medication must satisfy before it is saved.

    Raises:
        InvalidInputError: no enabled slot on a scheduled medication, or a
            custom-schedule slot without days, or a day outside 1-7
    """
    for slot in medication.reminder_times:
        _check_custom_days(medication, slot)

    if medication.schedule_type == ScheduleType.AS_NEEDED:
        return

    enabled = medication.enabled_slots
    if not enabled:
        raise InvalidInputError(
            f"Medication '{medication.name}' needs at least one enabled reminder time"
        )

    if medication.schedule_type == ScheduleType.CUSTOM:
        missing = [slot.time_label for slot in medication.reminder_times if not slot.custom_days]
        if missing:
            raise InvalidInputError(
                f"Custom schedule for '{medication.name}' has reminder times "
                f"without days: {', '.join(missing)}"
            )
