import enum
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Enum, Float, Integer, String
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base

# Enums

class TaskStatus(str, enum.Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class Priority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class EnergyLevel(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class TimePreference(str, enum.Enum):
    MORNING = "morning"      # before 12:00
    AFTERNOON = "afternoon"  # 12:00 - 17:00
    EVENING = "evening"      # 17:00 onwards
    ANYTIME = "anytime"      # no preference


def _new_id() -> str:
    return str(uuid.uuid4())

# Models

class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, index=True)
    title: Mapped[str] = mapped_column(String, default="")
    status: Mapped[TaskStatus] = mapped_column(Enum(TaskStatus), default=TaskStatus.TODO)

    duration: Mapped[int] = mapped_column(Integer)  # minutes
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    postponed_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[Optional[Priority]] = mapped_column(Enum(Priority), nullable=True)
    energy_level: Mapped[Optional[EnergyLevel]] = mapped_column(Enum(EnergyLevel), nullable=True)
    preferred_time: Mapped[Optional[TimePreference]] = mapped_column(Enum(TimePreference), nullable=True)
    project_id: Mapped[Optional[str]] = mapped_column(String, nullable=True, index=True)

    # Auto-scheduling state
    is_auto_scheduled: Mapped[bool] = mapped_column(Boolean, default=False)
    schedule_locked: Mapped[bool] = mapped_column(Boolean, default=False)
    scheduled_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    scheduled_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    schedule_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class AutoScheduleSettings(Base):
    __tablename__ = "auto_schedule_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, unique=True, index=True)

    # 0 = Sunday ... 6 = Saturday
    work_days: Mapped[List[int]] = mapped_column(MutableList.as_mutable(JSON), default=lambda: [1, 2, 3, 4, 5])
    work_hour_start: Mapped[int] = mapped_column(Integer, default=9)
    work_hour_end: Mapped[int] = mapped_column(Integer, default=17)
    selected_calendars: Mapped[List[str]] = mapped_column(MutableList.as_mutable(JSON), default=list)
    buffer_minutes: Mapped[int] = mapped_column(Integer, default=15)

    high_energy_start: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    high_energy_end: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    medium_energy_start: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    medium_energy_end: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    low_energy_start: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    low_energy_end: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    group_by_project: Mapped[bool] = mapped_column(Boolean, default=False)
    time_zone: Mapped[str] = mapped_column(String, default="UTC")


class CalendarEvent(Base):
    """Busy time mirrored from a synced calendar feed. Written by the sync layer, read here."""
    __tablename__ = "calendar_events"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String, index=True)
    feed_id: Mapped[str] = mapped_column(String, index=True)
    title: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    start: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    is_all_day: Mapped[bool] = mapped_column(Boolean, default=False)
