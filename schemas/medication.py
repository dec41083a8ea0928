"""
Medication Schemas
Pydantic models for medications and their reminder slots
"""

from typing import Optional, List, FrozenSet
from datetime import datetime, time
from uuid import UUID, uuid4
from pydantic import BaseModel, Field, ConfigDict, field_validator

from config import engine_config
from models import ScheduleType, MedicationShape


class ReminderSlot(BaseModel):
    """Time-of-day reminder owned by a medication"""
    id: UUID = Field(default_factory=uuid4)
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    is_enabled: bool = True
    custom_days: Optional[FrozenSet[int]] = None  # 1-7, 1=Sunday

    model_config = ConfigDict(from_attributes=True)

    @field_validator("custom_days")
    @classmethod
    def _days_in_range(cls, value: Optional[FrozenSet[int]]) -> Optional[FrozenSet[int]]:
        if value is None:
            return value
        bad = sorted(d for d in value if not 1 <= d <= 7)
        if bad:
            raise ValueError(f"custom day values must be within 1-7, got {bad}")
        return value

    @property
    def time_of_day(self) -> time:
        return time(self.hour, self.minute)

    @property
    def time_label(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


class Medication(BaseModel):
    """Medication with its recurrence configuration"""
    id: UUID = Field(default_factory=uuid4)
    name: str = Field(..., min_length=1, max_length=255)
    dosage: str = Field(..., min_length=1, max_length=100)
    instructions: str = ""

    # Presentation only
    color: str = "blue"
    shape: MedicationShape = MedicationShape.PILL
    custom_reminder_message: Optional[str] = None

    schedule_type: ScheduleType = ScheduleType.DAILY
    reminder_times: List[ReminderSlot] = Field(default_factory=list)
    allow_snooze: bool = True
    snooze_intervals: List[int] = Field(
        default_factory=lambda: list(engine_config.DEFAULT_SNOOZE_INTERVALS)
    )

    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
    last_modified: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("snooze_intervals")
    @classmethod
    def _positive_sorted_intervals(cls, value: List[int]) -> List[int]:
        if any(minutes <= 0 for minutes in value):
            raise ValueError("snooze intervals must be positive minute counts")
        return sorted(set(value))

    @property
    def is_as_needed(self) -> bool:
        return self.schedule_type == ScheduleType.AS_NEEDED

    @property
    def enabled_slots(self) -> List[ReminderSlot]:
        return [slot for slot in self.reminder_times if slot.is_enabled]
