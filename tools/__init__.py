"""
Tools Package
Pure schedule and adherence engine for DoseTrack
"""

from .clock import (
    Clock,
    SystemClock,
    FixedClock,
    system_clock
)

from .schedule_resolver import (
    weekday_number,
    scheduled_time_for,
    is_due_on,
    resolve_due_slots,
    validate_medication
)

from .reconciler import (
    DueOccurrence,
    same_minute,
    find_record,
    reconcile,
    build_daily_agenda
)

from .state_machine import (
    check_consistency,
    mark_taken,
    mark_missed,
    add_snooze,
    mark_skipped,
    transition,
    is_on_time,
    delay_minutes,
    snooze_until
)

from .metrics import (
    wellness,
    adherence_streak,
    best_streak,
    daily_summary,
    adherence_rate,
    average_delay_minutes,
    symptom_entry_for_day,
    wellness_trend
)

__all__ = [
    # Clock
    "Clock",
    "SystemClock",
    "FixedClock",
    "system_clock",

    # Schedule Resolver
    "weekday_number",
    "scheduled_time_for",
    "is_due_on",
    "resolve_due_slots",
    "validate_medication",

    # Reconciler
    "DueOccurrence",
    "same_minute",
    "find_record",
    "reconcile",
    "build_daily_agenda",

    # State Machine
    "check_consistency",
    "mark_taken",
    "mark_missed",
    "add_snooze",
    "mark_skipped",
    "transition",
    "is_on_time",
    "delay_minutes",
    "snooze_until",

    # Metrics
    "wellness",
    "adherence_streak",
    "best_streak",
    "daily_summary",
    "adherence_rate",
    "average_delay_minutes",
    "symptom_entry_for_day",
    "wellness_trend"
]
