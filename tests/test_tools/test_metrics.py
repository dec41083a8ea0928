"""
Tests for Metrics & Streak Calculator Tool
Tests wellness scores, streaks and adherence summaries
"""

import logging
import pytest
from datetime import date, datetime, timedelta
from uuid import uuid4

from models import AdherenceStatus, MissReason
from schemas.adherence import AdherenceRecord
from schemas.symptom import SymptomEntry, pain_description, fatigue_description, mood_description
from tools.clock import FixedClock
from tools.state_machine import mark_taken, mark_missed, mark_skipped, add_snooze
from tools.metrics import (
    wellness,
    adherence_streak,
    best_streak,
    daily_summary,
    adherence_rate,
    average_delay_minutes,
    symptom_entry_for_day,
    wellness_trend,
)


D = date(2024, 1, 10)
MEDICATION_ID = uuid4()


def _pending(day: date, hour: int = 8) -> AdherenceRecord:
    scheduled = datetime.combine(day, datetime.min.time()).replace(hour=hour)
    return AdherenceRecord(
        medication_id=MEDICATION_ID,
        scheduled_date=day,
        scheduled_time=scheduled,
        logged_time=scheduled
    )


def _taken(day: date, hour: int = 8, late_minutes: int = 0) -> AdherenceRecord:
    record = _pending(day, hour)
    at = record.scheduled_time + timedelta(minutes=late_minutes)
    return mark_taken(record, at=at, clock=FixedClock(at))


# =============================================================================
# Test Wellness
# =============================================================================

class TestWellness:
    """Tests for the composite wellness score"""

    def test_all_levels(self):
        """Test pain=3, fatigue=2, mood=4 gives 11/3"""
        entry = SymptomEntry(entry_date=D, pain_level=3, fatigue_level=2, mood_level=4)
        assert wellness(entry) == pytest.approx(11 / 3)

    def test_all_absent_is_none(self):
        """Test no levels gives no score rather than zero"""
        assert wellness(SymptomEntry(entry_date=D)) is None

    def test_missing_levels_default_to_neutral(self):
        entry = SymptomEntry(entry_date=D, pain_level=1)
        assert wellness(entry) == pytest.approx((5 + 3 + 3) / 3)

    def test_best_and_worst(self):
        best = SymptomEntry(entry_date=D, pain_level=1, fatigue_level=1, mood_level=5)
        worst = SymptomEntry(entry_date=D, pain_level=5, fatigue_level=5, mood_level=1)
        assert wellness(best) == pytest.approx(5.0)
        assert wellness(worst) == pytest.approx(1.0)

    def test_levels_validated(self):
        with pytest.raises(ValueError):
            SymptomEntry(entry_date=D, pain_level=6)
        with pytest.raises(ValueError):
            SymptomEntry(entry_date=D, mood_level=0)

    def test_entry_date_normalized_to_day(self):
        entry = SymptomEntry(entry_date=datetime(2024, 1, 10, 21, 30), mood_level=3)
        assert entry.entry_date == D

    def test_level_descriptions(self):
        assert pain_description(4) == "Severe"
        assert fatigue_description(5) == "Exhausted"
        assert mood_description(3) == "Neutral"
        assert mood_description(9) == "Unknown"


# =============================================================================
# Test Streaks
# =============================================================================

class TestAdherenceStreak:
    """Tests for adherence_streak"""

    @pytest.fixture
    def three_days(self):
        """Taken on D, D-1, D-2 but not D-3; D-4 taken"""
        return [
            _taken(D),
            _taken(D - timedelta(days=1)),
            _taken(D - timedelta(days=2)),
            _taken(D - timedelta(days=4)),
        ]

    def test_counts_consecutive_days(self, three_days):
        assert adherence_streak(three_days, as_of=D) == 3

    def test_no_record_on_as_of_day(self, three_days):
        assert adherence_streak(three_days, as_of=D + timedelta(days=1)) == 0

    def test_multiple_doses_per_day_count_once(self):
        records = [
            _taken(D, hour=8), _taken(D, hour=20),
            _taken(D - timedelta(days=1), hour=8), _taken(D - timedelta(days=1), hour=20),
        ]
        assert adherence_streak(records, as_of=D) == 2

    def test_only_taken_records_count(self):
        records = [
            _taken(D),
            mark_missed(_pending(D - timedelta(days=1)), MissReason.FORGOT, clock=FixedClock(datetime(2024, 1, 9, 9))),
            _taken(D - timedelta(days=2)),
        ]
        assert adherence_streak(records, as_of=D) == 1

    def test_day_with_missed_and_taken_still_counts(self):
        records = [
            _taken(D),
            mark_missed(_pending(D, hour=20), MissReason.FORGOT, clock=FixedClock(datetime(2024, 1, 10, 21))),
        ]
        assert adherence_streak(records, as_of=D) == 1

    def test_later_records_ignored(self, three_days):
        assert adherence_streak(three_days, as_of=D - timedelta(days=1)) == 2

    def test_empty(self):
        assert adherence_streak([], as_of=D) == 0

    def test_defaults_to_clock_today(self, three_days):
        clock = FixedClock(datetime(2024, 1, 10, 22, 0))
        assert adherence_streak(three_days, clock=clock) == 3

    def test_unsorted_input(self, three_days):
        assert adherence_streak(list(reversed(three_days)), as_of=D) == 3

    def test_logs_result_at_debug(self, three_days, caplog):
        with caplog.at_level(logging.DEBUG, logger="tools.metrics"):
            adherence_streak(three_days, as_of=D)
        assert "Adherence streak as of 2024-01-10: 3 day(s)" in caplog.text


class TestBestStreak:
    """Tests for best_streak"""

    def test_longest_run(self):
        records = [_taken(D - timedelta(days=i)) for i in (0, 1, 3, 4, 5, 6)]
        assert best_streak(records) == 4

    def test_empty(self):
        assert best_streak([]) == 0


# =============================================================================
# Test Summaries
# =============================================================================

class TestDailySummary:
    """Tests for daily_summary"""

    def test_counts(self):
        clock = FixedClock(datetime(2024, 1, 10, 12))
        records = [
            _taken(D, hour=8, late_minutes=10),
            _taken(D, hour=12, late_minutes=45),
            mark_missed(_pending(D, hour=14), MissReason.FORGOT, clock=clock),
            mark_skipped(_pending(D, hour=16), clock=clock),
            add_snooze(_pending(D, hour=18), 15, clock=clock),
            _pending(D, hour=22),
            _taken(D - timedelta(days=1)),
        ]
        summary = daily_summary(records, D)

        assert summary["date"] == "2024-01-10"
        assert summary["total_scheduled"] == 6
        assert summary["taken"] == 2
        assert summary["missed"] == 1
        assert summary["skipped"] == 1
        assert summary["snoozed"] == 1
        assert summary["pending"] == 1
        assert summary["on_time"] == 1
        assert summary["adherence_rate"] == 50.0

    def test_nothing_resolved(self):
        assert daily_summary([_pending(D)], D)["adherence_rate"] == 100.0


class TestAdherenceRate:
    """Tests for adherence_rate and average_delay_minutes"""

    def test_window(self):
        clock = FixedClock(datetime(2024, 1, 10, 12))
        records = [
            _taken(D, late_minutes=10),
            _taken(D - timedelta(days=1), late_minutes=20),
            _taken(D - timedelta(days=2), late_minutes=60),
            mark_missed(_pending(D - timedelta(days=3)), MissReason.RAN_OUT, clock=clock),
            _taken(D - timedelta(days=30)),
        ]
        stats = adherence_rate(records, D - timedelta(days=6), D)

        assert stats["total_doses"] == 4
        assert stats["taken"] == 3
        assert stats["missed"] == 1
        assert stats["on_time"] == 2
        assert stats["adherence_rate"] == 75.0
        assert stats["average_delay_minutes"] == 30.0

    def test_empty_window(self):
        stats = adherence_rate([], D, D)
        assert stats["adherence_rate"] == 0.0
        assert stats["average_delay_minutes"] == 0.0

    def test_average_delay_ignores_untaken(self):
        assert average_delay_minutes([_pending(D), _taken(D, late_minutes=12)]) == 12.0


# =============================================================================
# Test Symptom Helpers
# =============================================================================

class TestSymptomHelpers:
    """Tests for symptom_entry_for_day and wellness_trend"""

    @pytest.fixture
    def entries(self):
        return [
            SymptomEntry(entry_date=D, pain_level=2, fatigue_level=2, mood_level=4),
            SymptomEntry(entry_date=D - timedelta(days=2), pain_level=4),
            SymptomEntry(entry_date=D - timedelta(days=1), notes="no levels"),
            SymptomEntry(entry_date=D - timedelta(days=10), mood_level=5),
        ]

    def test_entry_for_day(self, entries):
        assert symptom_entry_for_day(entries, D) is entries[0]
        assert symptom_entry_for_day(entries, D - timedelta(days=5)) is None

    def test_trend_skips_unscored_and_out_of_range(self, entries):
        trend = wellness_trend(entries, D - timedelta(days=6), D)

        assert [point["date"] for point in trend] == ["2024-01-08", "2024-01-10"]
        assert trend[0]["wellness"] == pytest.approx(round((2 + 3 + 3) / 3, 2))
        assert trend[1]["wellness"] == pytest.approx(round((4 + 4 + 4) / 3, 2))
