"""
Shared fixtures. Dates are pinned to the week of Monday 2026-10-19 (UTC).
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from autoschedule.database import Base
from autoschedule.schemas import EngineConfig, ScheduleSettings, TaskSnapshot

UTC = timezone.utc
MONDAY = datetime(2026, 10, 19, tzinfo=UTC)


def at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    """UTC instant `day_offset` days after Monday 2026-10-19 at hour:minute."""
    return MONDAY + timedelta(days=day_offset, hours=hour, minutes=minute)


@pytest.fixture
def settings():
    # Mon-Fri, 9-17, 15 minute buffer, UTC, no energy windows
    return ScheduleSettings()


@pytest.fixture
def engine_config():
    return EngineConfig()


@pytest.fixture
def monday_8am():
    return at(0, 8)


@pytest.fixture
def make_task():
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        fields = {
            "id": f"task-{counter['n']:02d}",
            "title": f"Task {counter['n']}",
            "duration": 60,
            "is_auto_scheduled": True,
        }
        fields.update(overrides)
        return TaskSnapshot(**fields)

    return _make


@pytest.fixture
def db_session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()
