"""
Symptom Service
Daily symptom check-ins and wellness trends
"""

import logging
from typing import Dict, List, Optional, Any, Iterable
from datetime import date, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import and_

from database import get_db_context
import models
from models import SymptomEntryMethod
from schemas.symptom import SymptomEntry
from services.mappers import row_to_symptom_entry, symptom_entry_to_row
from tools.clock import Clock, resolve_clock
from tools.metrics import wellness, wellness_trend


logger = logging.getLogger(__name__)


class SymptomService:
    """
    Service for symptom tracking; one entry per calendar day
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = resolve_clock(clock)

    async def log_symptoms(
        self,
        day: Optional[date] = None,
        pain_level: Optional[int] = None,
        fatigue_level: Optional[int] = None,
        mood_level: Optional[int] = None,
        notes: Optional[str] = None,
        triggers: Optional[Iterable[str]] = None,
        entry_method: SymptomEntryMethod = SymptomEntryMethod.MANUAL,
        db: Optional[Session] = None
    ) -> SymptomEntry:
        """
        Record the check-in for `day` (default: today)

        A second check-in on the same day replaces the first one's values
        and keeps its id.

        Raises:
            ValueError: a level outside 1-5
        """
        target = day or self.clock.today()

        def _log(session: Session) -> SymptomEntry:
            row = session.query(models.SymptomEntry).filter(
                models.SymptomEntry.entry_date == target
            ).first()

            values = dict(
                entry_date=target,
                timestamp=self.clock.now(),
                pain_level=pain_level,
                fatigue_level=fatigue_level,
                mood_level=mood_level,
                notes=notes,
                triggers=frozenset(triggers or ()),
                entry_method=entry_method
            )
            if row is not None:
                values["id"] = row_to_symptom_entry(row).id
            entry = SymptomEntry(**values)

            row = symptom_entry_to_row(entry, row)
            session.add(row)
            session.commit()
            session.refresh(row)

            score = wellness(entry)
            logger.info(
                f"Symptom check-in for {target}: wellness "
                f"{'n/a' if score is None else f'{score:.2f}'}"
            )
            return row_to_symptom_entry(row)

        if db:
            return _log(db)

        with get_db_context() as session:
            return _log(session)

    async def get_entry_for_day(
        self,
        day: Optional[date] = None,
        db: Optional[Session] = None
    ) -> Optional[SymptomEntry]:
        """The check-in for `day` (default: today), if any"""
        target = day or self.clock.today()

        def _get(session: Session) -> Optional[SymptomEntry]:
            row = session.query(models.SymptomEntry).filter(
                models.SymptomEntry.entry_date == target
            ).first()
            return row_to_symptom_entry(row) if row else None

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_entries(
        self,
        start: date,
        end: date,
        db: Optional[Session] = None
    ) -> List[SymptomEntry]:
        """Check-ins between `start` and `end` inclusive, oldest first"""
        def _get(session: Session) -> List[SymptomEntry]:
            rows = session.query(models.SymptomEntry).filter(
                and_(
                    models.SymptomEntry.entry_date >= start,
                    models.SymptomEntry.entry_date <= end
                )
            ).order_by(models.SymptomEntry.entry_date).all()
            return [row_to_symptom_entry(row) for row in rows]

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_wellness_trend(
        self,
        days: int = 7,
        db: Optional[Session] = None
    ) -> List[Dict[str, Any]]:
        """Per-day wellness over the last `days` days including today"""
        end = self.clock.today()
        start = end - timedelta(days=days - 1)
        entries = await self.get_entries(start, end, db=db)
        return wellness_trend(entries, start, end)


# Singleton instance
symptom_service = SymptomService()
