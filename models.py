"""
Database Models
Domain enums and SQLAlchemy ORM models for DoseTrack
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text, Date, Enum, Index, UniqueConstraint, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum as PyEnum

from database import Base
from config import TableNames


# ==================== ENUMS ====================

class ScheduleType(str, PyEnum):
    """How a medication's reminder slots recur"""
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"
    CUSTOM = "custom"          # Per-slot days of week
    AS_NEEDED = "as_needed"    # PRN, never due

    @property
    def display_name(self) -> str:
        return {
            ScheduleType.DAILY: "Every Day",
            ScheduleType.WEEKDAYS: "Weekdays Only",
            ScheduleType.WEEKENDS: "Weekends Only",
            ScheduleType.CUSTOM: "Custom Schedule",
            ScheduleType.AS_NEEDED: "As Needed",
        }[self]


class AdherenceStatus(str, PyEnum):
    """Status of a scheduled medication dose"""
    PENDING = "pending"
    TAKEN = "taken"
    MISSED = "missed"
    SNOOZED = "snoozed"
    SKIPPED = "skipped"        # Intentionally skipped (e.g., doctor's advice)

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class DelayReason(str, PyEnum):
    """Why a dose was snoozed"""
    PAIN = "pain"
    FATIGUE = "fatigue"
    NAUSEA = "nausea"
    FORGOT_AT_HOME = "forgot_at_home"
    IN_MEETING = "in_meeting"
    SLEEPING = "sleeping"
    SIDE_EFFECTS = "side_effects"
    NO_WATER = "no_water"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return {
            DelayReason.PAIN: "Pain flare-up",
            DelayReason.FATIGUE: "Too tired",
            DelayReason.NAUSEA: "Feeling nauseous",
            DelayReason.FORGOT_AT_HOME: "Forgot medication at home",
            DelayReason.IN_MEETING: "In meeting/appointment",
            DelayReason.SLEEPING: "Was sleeping",
            DelayReason.SIDE_EFFECTS: "Experiencing side effects",
            DelayReason.NO_WATER: "No water available",
            DelayReason.OTHER: "Other reason",
        }[self]

    @property
    def is_symptom_related(self) -> bool:
        return self in (
            DelayReason.PAIN, DelayReason.FATIGUE,
            DelayReason.NAUSEA, DelayReason.SIDE_EFFECTS
        )


class MissReason(str, PyEnum):
    """Why a dose was missed"""
    FORGOT = "forgot"
    RAN_OUT = "ran_out"
    SIDE_EFFECTS = "side_effects"
    FELT_BETTER = "felt_better"
    TOO_SICK = "too_sick"
    NO_ACCESS = "no_access"
    DOCTOR_ADVICE = "doctor_advice"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return {
            MissReason.FORGOT: "Simply forgot",
            MissReason.RAN_OUT: "Ran out of medication",
            MissReason.SIDE_EFFECTS: "Side effects too severe",
            MissReason.FELT_BETTER: "Felt better, didn't think I needed it",
            MissReason.TOO_SICK: "Too sick to take it",
            MissReason.NO_ACCESS: "Couldn't access medication",
            MissReason.DOCTOR_ADVICE: "Doctor advised to skip",
            MissReason.OTHER: "Other reason",
        }[self]

    @property
    def requires_attention(self) -> bool:
        return self in (
            MissReason.RAN_OUT, MissReason.SIDE_EFFECTS,
            MissReason.TOO_SICK, MissReason.NO_ACCESS
        )


class LogEntryMethod(str, PyEnum):
    """How an adherence status was set"""
    MANUAL = "manual"
    QUICK_TAP = "quick_tap"
    VOICE = "voice"
    WIDGET = "widget"
    REMINDER = "reminder_response"
    AUTOMATIC = "automatic"


class SymptomEntryMethod(str, PyEnum):
    """How a symptom check-in was entered"""
    MANUAL = "manual"
    QUICK_ENTRY = "quick_entry"
    VOICE = "voice"
    REMINDER = "reminder_prompt"


class MedicationShape(str, PyEnum):
    """Visual identification only"""
    PILL = "pill"
    CAPSULE = "capsule"
    LIQUID = "liquid"
    INJECTION = "injection"
    PATCH = "patch"
    INHALER = "inhaler"
    DROPS = "drops"


# ==================== MODELS ====================

class Medication(Base):
    """Medication with its recurrence configuration"""
    __tablename__ = TableNames.MEDICATIONS

    id = Column(String(36), primary_key=True)

    # Display attributes
    name = Column(String(255), nullable=False)
    dosage = Column(String(100), nullable=False)
    instructions = Column(Text, default="")
    color = Column(String(30), default="blue")
    shape = Column(Enum(MedicationShape), default=MedicationShape.PILL)
    custom_reminder_message = Column(Text)

    # Scheduling
    schedule_type = Column(Enum(ScheduleType), nullable=False, default=ScheduleType.DAILY)
    allow_snooze = Column(Boolean, default=True)
    snooze_intervals = Column(JSON, default=list)  # Minutes: [15, 30, 60]

    # Status
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.now)
    last_modified = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    reminder_slots = relationship(
        "ReminderSlot",
        back_populates="medication",
        cascade="all, delete-orphan",
        order_by="ReminderSlot.position"
    )

    __table_args__ = (
        Index("ix_medications_active", "is_active"),
    )


class ReminderSlot(Base):
    """Time-of-day reminder owned by a medication"""
    __tablename__ = TableNames.REMINDER_SLOTS

    id = Column(String(36), primary_key=True)
    medication_id = Column(String(36), ForeignKey(f"{TableNames.MEDICATIONS}.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    hour = Column(Integer, nullable=False)
    minute = Column(Integer, nullable=False)
    is_enabled = Column(Boolean, default=True)
    custom_days = Column(JSON)  # 1-7 (1=Sunday), custom schedules only

    medication = relationship("Medication", back_populates="reminder_slots")


class AdherenceRecord(Base):
    """Logged outcome (or pending state) of one due occurrence"""
    __tablename__ = TableNames.ADHERENCE_RECORDS

    id = Column(String(36), primary_key=True)
    # Weak reference: no foreign key so history outlives the medication
    medication_id = Column(String(36), nullable=False, index=True)

    # Timing
    scheduled_date = Column(Date, nullable=False)
    scheduled_time = Column(DateTime, nullable=False)
    actual_taken_time = Column(DateTime)
    logged_time = Column(DateTime, nullable=False, default=datetime.now)

    # Status
    status = Column(Enum(AdherenceStatus), nullable=False, default=AdherenceStatus.PENDING)

    # Context
    delay_reason = Column(Enum(DelayReason))
    miss_reason = Column(Enum(MissReason))
    notes = Column(Text)

    snooze_count = Column(Integer, nullable=False, default=0)
    entry_method = Column(Enum(LogEntryMethod), nullable=False, default=LogEntryMethod.AUTOMATIC)

    snooze_history = relationship(
        "SnoozeEvent",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="SnoozeEvent.position"
    )

    __table_args__ = (
        UniqueConstraint("medication_id", "scheduled_time", name="uq_record_occurrence"),
        Index("ix_adherence_records_date", "scheduled_date"),
    )


class SnoozeEvent(Base):
    """Append-only snooze history entry"""
    __tablename__ = TableNames.SNOOZE_EVENTS

    id = Column(String(36), primary_key=True)
    record_id = Column(String(36), ForeignKey(f"{TableNames.ADHERENCE_RECORDS}.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    timestamp = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    reason = Column(Enum(DelayReason))

    record = relationship("AdherenceRecord", back_populates="snooze_history")


class SymptomEntry(Base):
    """Daily pain / fatigue / mood check-in"""
    __tablename__ = TableNames.SYMPTOM_ENTRIES

    id = Column(String(36), primary_key=True)
    entry_date = Column(Date, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.now)

    # 1-5 scale, each optional
    pain_level = Column(Integer)
    fatigue_level = Column(Integer)
    mood_level = Column(Integer)

    notes = Column(Text)
    triggers = Column(JSON, default=list)
    entry_method = Column(Enum(SymptomEntryMethod), default=SymptomEntryMethod.MANUAL)

    __table_args__ = (
        UniqueConstraint("entry_date", name="uq_symptom_entry_day"),
    )
