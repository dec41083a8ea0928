"""
Database connection and session management for DoseTrack
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import StaticPool

from config import settings


logger = logging.getLogger(__name__)


if settings.DATABASE_URL.startswith("sqlite"):
    # One shared connection so in-memory databases outlive a session
    engine = create_engine(
        settings.DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=settings.DATABASE_ECHO
    )
else:
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        pool_pre_ping=True
    )

SessionLocal = sessionmaker(autoflush=False, bind=engine)

Base = declarative_base()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session scope for services called without a session: commit or roll back, then close"""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create the medication, adherence and symptom tables"""
    import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database initialized at: {settings.DATABASE_URL}")


def drop_db() -> None:
    """Drop every DoseTrack table and its data"""
    Base.metadata.drop_all(bind=engine)
    logger.info("All database tables dropped")


def reset_db() -> None:
    drop_db()
    init_db()
