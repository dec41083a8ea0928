"""
Adherence Service
Composes the schedule engine with persistence: today's agenda,
dose logging and adherence statistics
"""

import asyncio
import logging
from typing import Dict, List, Optional, Any, Tuple
from contextlib import asynccontextmanager
from datetime import datetime, date, timedelta
from uuid import UUID
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy import and_

from config import settings
from database import get_db_context
import models
from models import AdherenceStatus, DelayReason, MissReason, LogEntryMethod
from exceptions import EngineError, InvalidInputError, RecordNotFoundError
from schemas.medication import Medication, ReminderSlot
from schemas.adherence import AdherenceRecord
from services.mappers import row_to_record, record_to_row, row_to_medication
from tools.clock import Clock, resolve_clock
from tools.schedule_resolver import scheduled_time_for
from tools.reconciler import DueOccurrence, reconcile, build_daily_agenda
from tools import state_machine
from tools.metrics import adherence_streak, best_streak, daily_summary, adherence_rate


logger = logging.getLogger(__name__)


OccurrenceKey = Tuple[UUID, datetime]


class OccurrenceLocks:
    """
    One asyncio lock per (medication id, scheduled time).

    Serializes find-or-create for a single occurrence so a UI refresh
    and a reminder response cannot both insert a pending record.
    """

    def __init__(self):
        self._locks: Dict[OccurrenceKey, asyncio.Lock] = {}
        self._holders: Dict[OccurrenceKey, int] = {}

    @asynccontextmanager
    async def hold(self, key: OccurrenceKey):
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if self._holders[key] == 0:
                del self._holders[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


class AdherenceService:
    """
    Service for adherence tracking built on the pure engine in `tools`
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = resolve_clock(clock)
        self.locks = OccurrenceLocks()

    # ==================== PERSISTENCE ====================

    def _query_occurrence(
        self,
        session: Session,
        medication_id: UUID,
        scheduled_time: datetime
    ) -> List[AdherenceRecord]:
        minute = scheduled_time.replace(second=0, microsecond=0)
        rows = session.query(models.AdherenceRecord).filter(
            and_(
                models.AdherenceRecord.medication_id == str(medication_id),
                models.AdherenceRecord.scheduled_time >= minute,
                models.AdherenceRecord.scheduled_time < minute + timedelta(minutes=1)
            )
        ).all()
        return [row_to_record(row) for row in rows]

    def _insert_placeholder(self, session: Session, record: AdherenceRecord) -> AdherenceRecord:
        """
        Store a new pending record, or return the one that beat it.

        The unique (medication_id, scheduled_time) constraint turns a lost
        race into an IntegrityError; the winner is then re-read and
        reconciled again, up to RECONCILE_MAX_RETRIES times.
        """
        for attempt in range(1, settings.RECONCILE_MAX_RETRIES + 1):
            try:
                session.add(record_to_row(record))
                session.commit()
                logger.info(
                    f"Stored pending record {record.id} for medication "
                    f"{record.medication_id} at {record.scheduled_time:%Y-%m-%d %H:%M}"
                )
                return record
            except IntegrityError:
                session.rollback()
                logger.warning(
                    f"Pending record for medication {record.medication_id} at "
                    f"{record.scheduled_time:%Y-%m-%d %H:%M} already exists "
                    f"(attempt {attempt}), re-reading"
                )
                existing = self._query_occurrence(session, record.medication_id, record.scheduled_time)
                if existing:
                    return existing[0]

        raise EngineError(
            f"Could not store record for medication {record.medication_id} "
            f"at {record.scheduled_time:%Y-%m-%d %H:%M} after "
            f"{settings.RECONCILE_MAX_RETRIES} attempts"
        )

    def _load_record(self, session: Session, record_id: UUID) -> models.AdherenceRecord:
        row = session.get(models.AdherenceRecord, str(record_id))
        if row is None:
            raise RecordNotFoundError("Adherence record", record_id)
        return row

    def _store(self, session: Session, record: AdherenceRecord) -> AdherenceRecord:
        row = session.get(models.AdherenceRecord, str(record.id))
        row = record_to_row(record, row)
        session.add(row)
        session.commit()
        session.refresh(row)
        return row_to_record(row)

    async def save_record(
        self,
        record: AdherenceRecord,
        db: Optional[Session] = None
    ) -> AdherenceRecord:
        """Insert or update an adherence record"""
        def _save(session: Session) -> AdherenceRecord:
            return self._store(session, record)

        if db:
            return _save(db)

        with get_db_context() as session:
            return _save(session)

    async def get_record(
        self,
        record_id: UUID,
        db: Optional[Session] = None
    ) -> AdherenceRecord:
        """Get adherence record by ID"""
        def _get(session: Session) -> AdherenceRecord:
            return row_to_record(self._load_record(session, record_id))

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def load_adherence_records(
        self,
        start: date,
        end: date,
        medication_id: Optional[UUID] = None,
        db: Optional[Session] = None
    ) -> List[AdherenceRecord]:
        """Records scheduled between `start` and `end` inclusive, earliest first"""
        def _load(session: Session) -> List[AdherenceRecord]:
            query = session.query(models.AdherenceRecord).filter(
                and_(
                    models.AdherenceRecord.scheduled_date >= start,
                    models.AdherenceRecord.scheduled_date <= end
                )
            )
            if medication_id:
                query = query.filter(
                    models.AdherenceRecord.medication_id == str(medication_id)
                )
            rows = query.order_by(models.AdherenceRecord.scheduled_time).all()
            return [row_to_record(row) for row in rows]

        if db:
            return _load(db)

        with get_db_context() as session:
            return _load(session)

    # ==================== RECONCILIATION ====================

    async def find_or_create(
        self,
        medication: Medication,
        slot: ReminderSlot,
        day: date,
        db: Optional[Session] = None
    ) -> AdherenceRecord:
        """
        The stored record for one occurrence, creating the pending
        placeholder exactly once
        """
        scheduled_time = scheduled_time_for(slot, day)

        def _find_or_create(session: Session) -> AdherenceRecord:
            existing = self._query_occurrence(session, medication.id, scheduled_time)
            record = reconcile(medication, slot, day, existing, self.clock)
            if existing and record in existing:
                return record
            return self._insert_placeholder(session, record)

        async with self.locks.hold((medication.id, scheduled_time)):
            if db:
                return _find_or_create(db)

            with get_db_context() as session:
                return _find_or_create(session)

    async def get_today_agenda(
        self,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[DueOccurrence]:
        """
        Every dose due on `day` (default: today) with its stored record

        New pending placeholders are persisted before returning.
        """
        target = day or self.clock.today()

        async def _agenda(session: Session) -> List[DueOccurrence]:
            # Inactive medications are dropped by resolve_due_slots
            rows = session.query(models.Medication).order_by(models.Medication.name).all()
            medications = [row_to_medication(row) for row in rows]

            record_rows = session.query(models.AdherenceRecord).filter(
                models.AdherenceRecord.scheduled_date == target
            ).all()
            records = [row_to_record(row) for row in record_rows]

            agenda = build_daily_agenda(medications, target, records, self.clock)
            for occurrence in agenda:
                if not occurrence.is_new:
                    continue
                async with self.locks.hold((occurrence.medication.id, occurrence.scheduled_time)):
                    stored = self._insert_placeholder(session, occurrence.record)
                occurrence.is_new = stored.id == occurrence.record.id
                occurrence.record = stored

            created = sum(1 for occ in agenda if occ.is_new)
            logger.info(
                f"Agenda for {target}: {len(agenda)} dose(s) due, "
                f"{created} new pending record(s)"
            )
            return agenda

        if db:
            return await _agenda(db)

        with get_db_context() as session:
            return await _agenda(session)

    # ==================== DOSE LOGGING ====================

    async def _apply(
        self,
        record_id: UUID,
        operation,
        db: Optional[Session] = None,
        **kwargs
    ) -> AdherenceRecord:
        def _update(session: Session) -> AdherenceRecord:
            current = row_to_record(self._load_record(session, record_id))
            updated = operation(current, clock=self.clock, **kwargs)
            stored = self._store(session, updated)
            logger.info(
                f"Record {stored.id} for medication {stored.medication_id}: "
                f"{current.status.value} -> {stored.status.value}"
            )
            return stored

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def take_dose(
        self,
        record_id: UUID,
        taken_at: Optional[datetime] = None,
        method: LogEntryMethod = LogEntryMethod.MANUAL,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> AdherenceRecord:
        """Log a taken dose (also used for "Take Now" on a missed dose)"""
        return await self._apply(
            record_id, state_machine.mark_taken, db=db,
            at=taken_at, method=method, notes=notes
        )

    async def miss_dose(
        self,
        record_id: UUID,
        reason: MissReason,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> AdherenceRecord:
        """Log a missed dose"""
        return await self._apply(
            record_id, state_machine.mark_missed, db=db,
            reason=reason, notes=notes
        )

    async def skip_dose(
        self,
        record_id: UUID,
        notes: Optional[str] = None,
        db: Optional[Session] = None
    ) -> AdherenceRecord:
        """Log an intentionally skipped dose"""
        return await self._apply(
            record_id, state_machine.mark_skipped, db=db, notes=notes
        )

    async def snooze_dose(
        self,
        record_id: UUID,
        duration_minutes: int,
        reason: Optional[DelayReason] = None,
        db: Optional[Session] = None
    ) -> Tuple[AdherenceRecord, datetime]:
        """
        Snooze a dose

        Returns:
            The updated record and when the reminder should fire again,
            for the notification layer to schedule

        Raises:
            InvalidInputError: the medication does not offer this duration
                or has snoozing turned off
        """
        def _check_allowed(session: Session) -> None:
            record_row = self._load_record(session, record_id)
            med_row = session.get(models.Medication, record_row.medication_id)
            if med_row is None:
                return
            if not med_row.allow_snooze:
                raise InvalidInputError(f"Snoozing is turned off for {med_row.name}")
            allowed = med_row.snooze_intervals or []
            if allowed and duration_minutes not in allowed:
                raise InvalidInputError(
                    f"Snooze of {duration_minutes!r} minutes is not offered for "
                    f"{med_row.name} (allowed: {', '.join(str(m) for m in allowed)})"
                )

        if db:
            _check_allowed(db)
        else:
            with get_db_context() as session:
                _check_allowed(session)

        record = await self._apply(
            record_id, state_machine.add_snooze, db=db,
            duration_minutes=duration_minutes, reason=reason
        )
        return record, state_machine.snooze_until(record)

    # ==================== STATISTICS ====================

    async def get_streak(
        self,
        as_of: Optional[date] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Current and best streak of days with at least one taken dose"""
        target = as_of or self.clock.today()

        def _streak(session: Session) -> Dict[str, Any]:
            rows = session.query(models.AdherenceRecord).filter(
                and_(
                    models.AdherenceRecord.status == AdherenceStatus.TAKEN,
                    models.AdherenceRecord.scheduled_date <= target
                )
            ).all()
            records = [row_to_record(row) for row in rows]
            return {
                "as_of": target.isoformat(),
                "current_streak": adherence_streak(records, as_of=target),
                "best_streak": best_streak(records)
            }

        if db:
            return _streak(db)

        with get_db_context() as session:
            return _streak(session)

    async def get_daily_summary(
        self,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Status counts for one day"""
        target = day or self.clock.today()
        records = await self.load_adherence_records(target, target, db=db)
        return daily_summary(records, target)

    async def get_adherence_rate(
        self,
        days: int = 30,
        medication_id: Optional[UUID] = None,
        db: Optional[Session] = None
    ) -> Dict[str, Any]:
        """Adherence statistics over the last `days` days including today"""
        end = self.clock.today()
        start = end - timedelta(days=days - 1)
        records = await self.load_adherence_records(start, end, medication_id, db=db)
        return adherence_rate(records, start, end)


# Singleton instance
adherence_service = AdherenceService()
