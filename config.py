"""
Configuration management for DoseTrack
"""

import logging
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # Database (reference persistence collaborator)
    DATABASE_URL: str = "sqlite:///./dosetrack.db"
    DATABASE_ECHO: bool = False

    # Find-or-create retries after a uniqueness conflict
    RECONCILE_MAX_RETRIES: int = 3

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def configure_logging() -> None:
    """Apply LOG_LEVEL / LOG_FORMAT to the root logger"""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


# Domain constants for the schedule and adherence engine
class EngineConfig:
    """Configuration for scheduling and adherence behaviors"""

    # A taken dose within this many minutes of its slot counts as on time
    ON_TIME_WINDOW_MINUTES: int = 30

    # Snooze
    DEFAULT_SNOOZE_INTERVALS: list[int] = [15, 30, 60]

    # Wellness conversion
    MAX_SYMPTOM_LEVEL: int = 5
    NEUTRAL_WELLNESS_LEVEL: int = 3

    # Weekday encoding: 1=Sunday ... 7=Saturday
    WEEKDAY_NUMBERS: frozenset[int] = frozenset({2, 3, 4, 5, 6})
    WEEKEND_NUMBERS: frozenset[int] = frozenset({1, 7})


# Database table names
class TableNames:
    MEDICATIONS = "medications"
    REMINDER_SLOTS = "reminder_slots"
    ADHERENCE_RECORDS = "adherence_records"
    SNOOZE_EVENTS = "snooze_events"
    SYMPTOM_ENTRIES = "symptom_entries"


settings = get_settings()
engine_config = EngineConfig()
