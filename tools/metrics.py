"""
Metrics & Streak Calculator Tool
Read-only aggregates over adherence history and symptom check-ins
"""

import logging
from typing import Dict, List, Optional, Any, Iterable
from collections import Counter
from datetime import date, timedelta

from config import engine_config
from models import AdherenceStatus
from schemas.adherence import AdherenceRecord
from schemas.symptom import SymptomEntry
from tools.clock import Clock, resolve_clock
from tools.state_machine import is_on_time, delay_minutes


logger = logging.getLogger(__name__)


def wellness(entry: SymptomEntry) -> Optional[float]:
    """
    Single 1-5 wellness score from pain, fatigue and mood.

    Pain and fatigue are inverted (6 - level) since higher is worse;
    mood is used as-is. A missing dimension counts as the neutral
    midpoint, so partial check-ins stay comparable. Returns None when
    no level was recorded at all.
    """
    if not entry.has_any_symptoms:
        return None

    neutral = engine_config.NEUTRAL_WELLNESS_LEVEL
    top = engine_config.MAX_SYMPTOM_LEVEL + 1

    pain = top - entry.pain_level if entry.pain_level is not None else neutral
    fatigue = top - entry.fatigue_level if entry.fatigue_level is not None else neutral
    mood = entry.mood_level if entry.mood_level is not None else neutral

    return (pain + fatigue + mood) / 3.0


def adherence_streak(
    records: Iterable[AdherenceRecord],
    as_of: Optional[date] = None,
    clock: Optional[Clock] = None
) -> int:
    """
    Consecutive days ending at `as_of` with at least one taken dose.

    Several taken doses on one day count once. The walk stops at the
    first day without a taken dose, so a day with nothing taken yet
    yields 0.
    """
    current = as_of if as_of is not None else resolve_clock(clock).today()
    start = current

    taken = sorted(
        (r for r in records if r.status == AdherenceStatus.TAKEN),
        key=lambda r: r.scheduled_date,
        reverse=True
    )

    streak = 0
    for record in taken:
        if record.scheduled_date > current:
            continue
        if record.scheduled_date == current:
            streak += 1
            current -= timedelta(days=1)
        elif record.scheduled_date == current + timedelta(days=1):
            # Another dose on a day already counted
            continue
        else:
            break

    logger.debug(f"Adherence streak as of {start}: {streak} day(s)")
    return streak


def best_streak(records: Iterable[AdherenceRecord]) -> int:
    """Longest run of consecutive days with at least one taken dose"""
    days = sorted({r.scheduled_date for r in records if r.status == AdherenceStatus.TAKEN})
    best = 0
    run = 0
    previous = None
    for day in days:
        run = run + 1 if previous is not None and day - previous == timedelta(days=1) else 1
        best = max(best, run)
        previous = day
    return best


def daily_summary(records: Iterable[AdherenceRecord], day: date) -> Dict[str, Any]:
    """
    Status counts for the doses scheduled on `day`.

    The adherence rate counts taken doses against resolved ones
    (taken, missed, skipped); pending and snoozed doses are still open.
    A day with nothing resolved reports 100.0.
    """
    day_records = [r for r in records if r.scheduled_date == day]
    counts = Counter(r.status for r in day_records)
    logger.debug(f"Summarizing {len(day_records)} record(s) for {day}")

    taken = counts[AdherenceStatus.TAKEN]
    resolved = taken + counts[AdherenceStatus.MISSED] + counts[AdherenceStatus.SKIPPED]

    return {
        "date": day.isoformat(),
        "total_scheduled": len(day_records),
        "taken": taken,
        "missed": counts[AdherenceStatus.MISSED],
        "snoozed": counts[AdherenceStatus.SNOOZED],
        "skipped": counts[AdherenceStatus.SKIPPED],
        "pending": counts[AdherenceStatus.PENDING],
        "on_time": sum(1 for r in day_records if is_on_time(r)),
        "adherence_rate": round((taken / resolved) * 100, 1) if resolved > 0 else 100.0
    }


def adherence_rate(
    records: Iterable[AdherenceRecord],
    start: date,
    end: date
) -> Dict[str, Any]:
    """Adherence statistics for doses scheduled between `start` and `end` inclusive"""
    window = [r for r in records if start <= r.scheduled_date <= end]
    counts = Counter(r.status for r in window)

    taken = counts[AdherenceStatus.TAKEN]
    resolved = taken + counts[AdherenceStatus.MISSED] + counts[AdherenceStatus.SKIPPED]

    return {
        "start": start.isoformat(),
        "end": end.isoformat(),
        "total_doses": len(window),
        "taken": taken,
        "missed": counts[AdherenceStatus.MISSED],
        "skipped": counts[AdherenceStatus.SKIPPED],
        "on_time": sum(1 for r in window if is_on_time(r)),
        "adherence_rate": round((taken / resolved) * 100, 1) if resolved > 0 else 0.0,
        "average_delay_minutes": average_delay_minutes(window)
    }


def average_delay_minutes(records: Iterable[AdherenceRecord]) -> float:
    """Mean delay over taken doses, 0.0 when none were taken"""
    delays = [delay_minutes(r) for r in records if r.status == AdherenceStatus.TAKEN]
    return round(sum(delays) / len(delays), 1) if delays else 0.0


def symptom_entry_for_day(
    entries: Iterable[SymptomEntry],
    day: date
) -> Optional[SymptomEntry]:
    """The check-in logged for `day`, if any"""
    for entry in entries:
        if entry.entry_date == day:
            return entry
    return None


def wellness_trend(
    entries: Iterable[SymptomEntry],
    start: date,
    end: date
) -> List[Dict[str, Any]]:
    """Per-day wellness between `start` and `end`, oldest first, skipping unscored days"""
    trend = []
    for entry in sorted(entries, key=lambda e: e.entry_date):
        if not start <= entry.entry_date <= end:
            continue
        score = wellness(entry)
        if score is None:
            continue
        trend.append({
            "date": entry.entry_date.isoformat(),
            "wellness": round(score, 2),
            "pain_level": entry.pain_level,
            "fatigue_level": entry.fatigue_level,
            "mood_level": entry.mood_level
        })
    return trend
