import json
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field, field_validator, model_validator

from . import config
from .models import TaskStatus, Priority, EnergyLevel, TimePreference


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to an aware UTC instant. Naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _lower_enum_value(value):
    # Stored/API enums arrive as "HIGH", "High" or "high"
    if isinstance(value, str):
        return value.strip().lower()
    return value

# ----------------- Task Schemas ---------------------

class TaskSnapshot(BaseModel):
    """The scheduling-relevant view of a task, as handed to and returned by the engine."""
    id: str
    title: str = ""
    status: TaskStatus = TaskStatus.TODO
    duration: int  # minutes
    due_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    postponed_until: Optional[datetime] = None
    priority: Optional[Priority] = None
    energy_level: Optional[EnergyLevel] = None
    preferred_time: Optional[TimePreference] = None
    project_id: Optional[str] = None

    is_auto_scheduled: bool = False
    schedule_locked: bool = False
    scheduled_start: Optional[datetime] = None
    scheduled_end: Optional[datetime] = None
    schedule_score: Optional[float] = None

    class Config:
        from_attributes = True

    @field_validator("status", "priority", "energy_level", "preferred_time", mode="before")
    @classmethod
    def normalize_enum_case(cls, value):
        return _lower_enum_value(value)

    @field_validator("due_date", "start_date", "postponed_until", "scheduled_start", "scheduled_end")
    @classmethod
    def normalize_to_utc(cls, value):
        return ensure_utc(value)

    @property
    def not_before(self) -> Optional[datetime]:
        """Earliest instant the task may start: the later of start_date and postponed_until."""
        bounds = [d for d in (self.start_date, self.postponed_until) if d is not None]
        return max(bounds) if bounds else None

    @property
    def has_interval(self) -> bool:
        return self.scheduled_start is not None and self.scheduled_end is not None

# ----------------- Settings Schemas ---------------------

class ScheduleSettings(BaseModel):
    """Per-user auto-schedule settings, validated field by field at the boundary."""
    work_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])  # 0 = Sunday
    work_hour_start: int = Field(9, ge=0, le=23)
    work_hour_end: int = Field(17, ge=1, le=24)
    selected_calendars: List[str] = Field(default_factory=list)
    buffer_minutes: int = Field(15, ge=0)

    high_energy_start: Optional[int] = Field(None, ge=0, le=24)
    high_energy_end: Optional[int] = Field(None, ge=0, le=24)
    medium_energy_start: Optional[int] = Field(None, ge=0, le=24)
    medium_energy_end: Optional[int] = Field(None, ge=0, le=24)
    low_energy_start: Optional[int] = Field(None, ge=0, le=24)
    low_energy_end: Optional[int] = Field(None, ge=0, le=24)

    group_by_project: bool = False
    time_zone: str = "UTC"

    class Config:
        from_attributes = True

    @field_validator("work_days", "selected_calendars", mode="before")
    @classmethod
    def decode_json_list(cls, value):
        # Older rows keep these lists JSON-encoded in a string column
        if isinstance(value, str):
            return json.loads(value)
        return value

    @field_validator("work_days")
    @classmethod
    def validate_work_days(cls, value: List[int]) -> List[int]:
        for day in value:
            if day < 0 or day > 6:
                raise ValueError(f"work day {day} is outside 0-6 (0 = Sunday)")
        return sorted(set(value))

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, value: str) -> str:
        try:
            pytz.timezone(value)
        except pytz.UnknownTimeZoneError:
            raise ValueError(f"unknown time zone '{value}'")
        return value

    @property
    def tz(self):
        return pytz.timezone(self.time_zone)


def default_settings() -> ScheduleSettings:
    """Defaults used when a user has never saved settings: Mon-Fri, 9-17, 15 minute buffer."""
    return ScheduleSettings()

# ----------------- Busy Time Schemas ---------------------

class BusyInterval(BaseModel):
    start: datetime
    end: datetime
    source: Optional[str] = None  # feed id or "task:<id>"

    @field_validator("start", "end")
    @classmethod
    def normalize_to_utc(cls, value):
        return ensure_utc(value)

    @model_validator(mode="after")
    def check_order(self):
        if self.end <= self.start:
            raise ValueError("busy interval must end after it starts")
        return self

# ----------------- Engine Config Schemas ---------------------

class ScoringWeights(BaseModel):
    energy: float = Field(0.4, ge=0)
    time_of_day: float = Field(0.3, ge=0)
    due_date: float = Field(0.2, ge=0)
    earliness: float = Field(0.1, ge=0)

    @property
    def total(self) -> float:
        return self.energy + self.time_of_day + self.due_date + self.earliness


class EngineConfig(BaseModel):
    horizon_days: int = Field(14, ge=1)
    max_candidates: int = Field(10, ge=1)
    slot_granularity_minutes: int = Field(5, ge=1, le=60)
    due_lead_hours: float = Field(24.0, ge=0)
    weights: ScoringWeights = Field(default_factory=ScoringWeights)

    @property
    def horizon(self) -> timedelta:
        return timedelta(days=self.horizon_days)

    @property
    def due_lead(self) -> timedelta:
        return timedelta(hours=self.due_lead_hours)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        return cls(
            horizon_days=config.SCHEDULE_HORIZON_DAYS,
            max_candidates=config.SCHEDULE_MAX_CANDIDATES,
            slot_granularity_minutes=config.SCHEDULE_SLOT_GRANULARITY_MINUTES,
            due_lead_hours=config.SCHEDULE_DUE_LEAD_HOURS,
            weights=ScoringWeights(
                energy=config.SCORE_WEIGHT_ENERGY,
                time_of_day=config.SCORE_WEIGHT_TIME_OF_DAY,
                due_date=config.SCORE_WEIGHT_DUE_DATE,
                earliness=config.SCORE_WEIGHT_EARLINESS,
            ),
        )

# ----------------- API Schemas ---------------------

class ScheduleRunRequest(BaseModel):
    tasks: List[TaskSnapshot]
    settings: ScheduleSettings = Field(default_factory=ScheduleSettings)
    busy_intervals: List[BusyInterval] = Field(default_factory=list)
    now: Optional[datetime] = None

    @field_validator("now")
    @classmethod
    def normalize_to_utc(cls, value):
        return ensure_utc(value)


class ScheduleRunResponse(BaseModel):
    tasks: List[TaskSnapshot]
    placed: int
    unplaced: int


class ScheduleJobOut(BaseModel):
    job_id: str
    status: str
    result: Optional[dict] = None
