"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseTrack tests.
Fixtures include database sessions, a fixed clock and sample medications.
"""

import os
import sys
from datetime import datetime
from typing import Generator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base
import models  # noqa: F401
from models import ScheduleType
from schemas.medication import Medication, ReminderSlot
from tools.clock import FixedClock


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Create all tables
    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def default_sessions(test_engine, monkeypatch):
    """Point services called without a session at the test database"""
    import database

    monkeypatch.setattr(database, "engine", test_engine)
    monkeypatch.setattr(database, "SessionLocal", sessionmaker(autoflush=False, bind=test_engine))
    return database


# ==================== CLOCK FIXTURES ====================

@pytest.fixture
def clock() -> FixedClock:
    """Clock frozen on a Wednesday morning"""
    return FixedClock(datetime(2024, 1, 3, 7, 45))


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def metformin() -> Medication:
    """Weekday medication with one 08:00 reminder"""
    return Medication(
        name="Metformin",
        dosage="500mg",
        instructions="Take with meals",
        schedule_type=ScheduleType.WEEKDAYS,
        reminder_times=[ReminderSlot(hour=8, minute=0)]
    )


@pytest.fixture
def lisinopril() -> Medication:
    """Daily medication with morning and evening reminders, listed out of order"""
    return Medication(
        name="Lisinopril",
        dosage="10mg",
        schedule_type=ScheduleType.DAILY,
        reminder_times=[
            ReminderSlot(hour=20, minute=30),
            ReminderSlot(hour=7, minute=15),
        ]
    )


@pytest.fixture
def ibuprofen() -> Medication:
    """As-needed medication"""
    return Medication(
        name="Ibuprofen",
        dosage="200mg",
        schedule_type=ScheduleType.AS_NEEDED,
        reminder_times=[ReminderSlot(hour=12, minute=0)]
    )


@pytest.fixture
def methotrexate() -> Medication:
    """Custom schedule: Sunday morning and Wednesday evening slots"""
    return Medication(
        name="Methotrexate",
        dosage="15mg",
        schedule_type=ScheduleType.CUSTOM,
        reminder_times=[
            ReminderSlot(hour=9, minute=0, custom_days={1}),
            ReminderSlot(hour=19, minute=0, custom_days={4}),
        ]
    )
