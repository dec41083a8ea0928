"""
Medication Service
Persistence-facing operations for medications and their reminder slots
"""

import logging
from typing import List, Optional
from uuid import UUID
from sqlalchemy.orm import Session

from database import get_db_context
import models
from exceptions import RecordNotFoundError
from schemas.medication import Medication
from services.mappers import row_to_medication, medication_to_row
from tools.clock import Clock, resolve_clock
from tools.schedule_resolver import validate_medication


logger = logging.getLogger(__name__)


class MedicationService:
    """
    Service for saving and loading medications
    """

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = resolve_clock(clock)

    async def save_medication(
        self,
        medication: Medication,
        db: Optional[Session] = None
    ) -> Medication:
        """
        Validate and insert or update a medication with its slots

        Raises:
            InvalidInputError: the medication breaks a scheduling invariant
        """
        validate_medication(medication)

        def _save(session: Session) -> Medication:
            row = session.get(models.Medication, str(medication.id))
            is_new = row is None
            stamped = medication.model_copy(update={"last_modified": self.clock.now()})
            row = medication_to_row(stamped, row)

            session.add(row)
            session.commit()
            session.refresh(row)

            logger.info(
                f"{'Created' if is_new else 'Updated'} medication {row.id} "
                f"({row.name}, {row.schedule_type.value})"
            )
            return row_to_medication(row)

        if db:
            return _save(db)

        with get_db_context() as session:
            return _save(session)

    async def get_medication(
        self,
        medication_id: UUID,
        db: Optional[Session] = None
    ) -> Medication:
        """Get medication by ID"""
        def _get(session: Session) -> Medication:
            row = session.get(models.Medication, str(medication_id))
            if row is None:
                raise RecordNotFoundError("Medication", medication_id)
            return row_to_medication(row)

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def load_medications(
        self,
        active_only: bool = False,
        db: Optional[Session] = None
    ) -> List[Medication]:
        """Load medications ordered by name"""
        def _load(session: Session) -> List[Medication]:
            query = session.query(models.Medication)
            if active_only:
                query = query.filter(models.Medication.is_active.is_(True))
            rows = query.order_by(models.Medication.name).all()
            return [row_to_medication(row) for row in rows]

        if db:
            return _load(db)

        with get_db_context() as session:
            return _load(session)

    async def deactivate_medication(
        self,
        medication_id: UUID,
        db: Optional[Session] = None
    ) -> Medication:
        """Stop scheduling a medication; its adherence history is kept"""
        def _deactivate(session: Session) -> Medication:
            row = session.get(models.Medication, str(medication_id))
            if row is None:
                raise RecordNotFoundError("Medication", medication_id)

            row.is_active = False
            row.last_modified = self.clock.now()
            session.commit()
            session.refresh(row)

            logger.info(f"Deactivated medication {row.id} ({row.name})")
            return row_to_medication(row)

        if db:
            return _deactivate(db)

        with get_db_context() as session:
            return _deactivate(session)


# Singleton instance
medication_service = MedicationService()
