"""
Adherence State Machine Tool
Status transitions and derived timing for adherence records

Every transition is legal from every state: patients may correct an
earlier entry at any time (e.g. "Take Now" on a missed dose). Each
operation returns a new record with the same id and leaves the input
untouched.
"""

import logging
from typing import Optional
from datetime import datetime, timedelta

from config import engine_config
from exceptions import InvalidInputError, InconsistentRecordError
from models import AdherenceStatus, DelayReason, MissReason, LogEntryMethod
from schemas.adherence import AdherenceRecord, SnoozeEvent
from tools.clock import Clock, resolve_clock


logger = logging.getLogger(__name__)


def check_consistency(record: AdherenceRecord) -> None:
    """
    Report a record whose fields contradict each other.

    Raises:
        InconsistentRecordError: taken without a taken time, a taken time
            on a record that is not taken, or a snooze count that does not
            match the snooze history
    """
    if record.status == AdherenceStatus.TAKEN and record.actual_taken_time is None:
        raise InconsistentRecordError(record.id, "status is taken but no taken time is set")
    if record.status != AdherenceStatus.TAKEN and record.actual_taken_time is not None:
        raise InconsistentRecordError(
            record.id, f"status is {record.status.value} but a taken time is set"
        )
    if record.snooze_count != len(record.snooze_history):
        raise InconsistentRecordError(
            record.id,
            f"snooze count {record.snooze_count} does not match "
            f"{len(record.snooze_history)} snooze event(s)"
        )


def _log_transition(before: AdherenceRecord, after: AdherenceRecord) -> None:
    logger.debug(
        f"Record {after.id} (medication {after.medication_id}): "
        f"{before.status.value} -> {after.status.value}"
    )


def mark_taken(
    record: AdherenceRecord,
    at: Optional[datetime] = None,
    method: LogEntryMethod = LogEntryMethod.MANUAL,
    notes: Optional[str] = None,
    clock: Optional[Clock] = None
) -> AdherenceRecord:
    """
    Record the dose as taken at `at` (default: now)

    Raises:
        InvalidInputError: `at` and the scheduled time disagree on
            whether they carry a time zone
    """
    check_consistency(record)
    now = resolve_clock(clock).now()
    taken_at = at if at is not None else now
    if (taken_at.tzinfo is None) != (record.scheduled_time.tzinfo is None):
        raise InvalidInputError(
            f"Taken time {taken_at.isoformat()} and scheduled time "
            f"{record.scheduled_time.isoformat()} must both be naive or both be aware"
        )
    update = {
        "status": AdherenceStatus.TAKEN,
        "actual_taken_time": taken_at,
        "logged_time": now,
        "entry_method": method,
    }
    if notes is not None:
        update["notes"] = notes

    updated = record.model_copy(update=update)
    _log_transition(record, updated)
    return updated


def mark_missed(
    record: AdherenceRecord,
    reason: MissReason,
    notes: Optional[str] = None,
    clock: Optional[Clock] = None
) -> AdherenceRecord:
    """Record the dose as missed for `reason`"""
    check_consistency(record)
    if not isinstance(reason, MissReason):
        raise InvalidInputError(f"Unknown miss reason: {reason!r}")

    update = {
        "status": AdherenceStatus.MISSED,
        "miss_reason": reason,
        "actual_taken_time": None,
        "logged_time": resolve_clock(clock).now(),
    }
    if notes is not None:
        update["notes"] = notes

    updated = record.model_copy(update=update)
    _log_transition(record, updated)
    return updated


def add_snooze(
    record: AdherenceRecord,
    duration_minutes: int,
    reason: Optional[DelayReason] = None,
    clock: Optional[Clock] = None
) -> AdherenceRecord:
    """
    Snooze the dose for `duration_minutes` and append to its history.

    Raises:
        InvalidInputError: duration is not a positive whole number of minutes
    """
    check_consistency(record)
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise InvalidInputError(
            f"Snooze duration must be a positive number of minutes, got {duration_minutes!r}"
        )
    if reason is not None and not isinstance(reason, DelayReason):
        raise InvalidInputError(f"Unknown delay reason: {reason!r}")

    now = resolve_clock(clock).now()
    event = SnoozeEvent(timestamp=now, duration_minutes=duration_minutes, reason=reason)

    updated = record.model_copy(update={
        "status": AdherenceStatus.SNOOZED,
        "snooze_history": record.snooze_history + (event,),
        "snooze_count": record.snooze_count + 1,
        "delay_reason": reason,
        "actual_taken_time": None,
        "logged_time": now,
    })
    _log_transition(record, updated)
    return updated


def mark_skipped(
    record: AdherenceRecord,
    notes: Optional[str] = None,
    clock: Optional[Clock] = None
) -> AdherenceRecord:
    """Record the dose as intentionally skipped"""
    check_consistency(record)
    update = {
        "status": AdherenceStatus.SKIPPED,
        "actual_taken_time": None,
        "logged_time": resolve_clock(clock).now(),
    }
    if notes is not None:
        update["notes"] = notes

    updated = record.model_copy(update=update)
    _log_transition(record, updated)
    return updated


def transition(
    record: AdherenceRecord,
    target: AdherenceStatus,
    clock: Optional[Clock] = None,
    **kwargs
) -> AdherenceRecord:
    """
    Dispatch to the operation that moves `record` into `target`.

    Keyword arguments are passed through (`reason`, `notes`, `at`,
    `method`, `duration_minutes`). Pending is never a target.
    """
    if target == AdherenceStatus.TAKEN:
        return mark_taken(record, clock=clock, **kwargs)
    if target == AdherenceStatus.MISSED:
        return mark_missed(record, clock=clock, **kwargs)
    if target == AdherenceStatus.SNOOZED:
        return add_snooze(record, clock=clock, **kwargs)
    if target == AdherenceStatus.SKIPPED:
        return mark_skipped(record, clock=clock, **kwargs)
    if target == AdherenceStatus.PENDING:
        raise InvalidInputError("A record cannot be moved back to pending")
    raise InvalidInputError(f"Unknown adherence status: {target!r}")


# ==================== DERIVED ====================

def is_on_time(record: AdherenceRecord) -> bool:
    """Taken within the on-time window of the scheduled time, early or late"""
    if record.status != AdherenceStatus.TAKEN or record.actual_taken_time is None:
        return False
    difference = abs(record.actual_taken_time - record.scheduled_time)
    return difference <= timedelta(minutes=engine_config.ON_TIME_WINDOW_MINUTES)


def delay_minutes(record: AdherenceRecord) -> int:
    """Whole minutes taken after the scheduled time; 0 if early or not taken"""
    if record.status != AdherenceStatus.TAKEN or record.actual_taken_time is None:
        return 0
    delay = record.actual_taken_time - record.scheduled_time
    return max(0, delay // timedelta(minutes=1))


def snooze_until(record: AdherenceRecord) -> Optional[datetime]:
    """When the latest snooze runs out, for re-scheduling the reminder"""
    if record.status != AdherenceStatus.SNOOZED or not record.snooze_history:
        return None
    last = record.snooze_history[-1]
    return last.timestamp + timedelta(minutes=last.duration_minutes)
