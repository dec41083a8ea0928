"""
Adherence Schemas
Pydantic models for adherence records and snooze history
"""

from typing import Optional, Tuple
from datetime import datetime, date
from uuid import UUID, uuid4
from pydantic import BaseModel, Field, ConfigDict, field_validator

from models import AdherenceStatus, DelayReason, MissReason, LogEntryMethod


class SnoozeEvent(BaseModel):
    """A single snooze, immutable once created"""
    id: UUID = Field(default_factory=uuid4)
    timestamp: datetime
    duration_minutes: int = Field(..., gt=0)
    reason: Optional[DelayReason] = None

    model_config = ConfigDict(frozen=True, from_attributes=True)


class AdherenceRecord(BaseModel):
    """
    Logged outcome (or pending state) of one due occurrence.

    Records are values: state transitions return a new record carrying
    the same id instead of mutating this one.
    """
    id: UUID = Field(default_factory=uuid4)
    medication_id: UUID
    scheduled_date: date
    scheduled_time: datetime

    status: AdherenceStatus = AdherenceStatus.PENDING
    actual_taken_time: Optional[datetime] = None
    logged_time: datetime

    delay_reason: Optional[DelayReason] = None
    miss_reason: Optional[MissReason] = None
    notes: Optional[str] = None

    snooze_count: int = Field(default=0, ge=0)
    snooze_history: Tuple[SnoozeEvent, ...] = ()

    entry_method: LogEntryMethod = LogEntryMethod.AUTOMATIC

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def _day_granularity(cls, value):
        if isinstance(value, datetime):
            return value.date()
        return value

    @property
    def is_resolved(self) -> bool:
        """True once the patient has acted on the dose"""
        return self.status in (
            AdherenceStatus.TAKEN, AdherenceStatus.MISSED, AdherenceStatus.SKIPPED
        )
