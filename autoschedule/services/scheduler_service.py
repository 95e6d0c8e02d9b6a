"""
Schedule-all service: the persistence side of an auto-scheduling run.

The engine itself is stateless. This layer does the two-phase contract around it:
clear the user's unlocked schedules, load a snapshot of tasks, settings and busy
time, run the engine, and write the placements back in the same transaction.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import ValidationError
from sqlalchemy import update
from sqlalchemy.orm import Session

from ..models import Task, AutoScheduleSettings, CalendarEvent, TaskStatus
from ..schemas import BusyInterval, EngineConfig, ScheduleSettings, TaskSnapshot, ensure_utc
from ..scheduling import InvalidInputError, schedule, summarize_run

logger = logging.getLogger(__name__)


class SchedulerService:
    """Runs the engine for one user against the database."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig.from_env()

    def get_or_create_settings(self, db: Session, user_id: str) -> AutoScheduleSettings:
        """Read the user's settings row, creating it with the defaults on first use."""
        row = db.query(AutoScheduleSettings).filter(AutoScheduleSettings.user_id == user_id).first()
        if row is None:
            row = AutoScheduleSettings(user_id=user_id, work_days=[1, 2, 3, 4, 5], work_hour_start=9, work_hour_end=17)
            db.add(row)
            db.flush()
            logger.info(f"Created default auto-schedule settings for user {user_id}")
        return row

    def load_settings(self, db: Session, user_id: str) -> ScheduleSettings:
        """Validated settings; a stored row the schema rejects is invalid input, not a crash."""
        row = self.get_or_create_settings(db, user_id)
        try:
            return ScheduleSettings.model_validate(row)
        except ValidationError as e:
            error = e.errors()[0]
            field = str(error["loc"][0]) if error["loc"] else None
            raise InvalidInputError(f"stored settings for user {user_id} are invalid: {error['msg']}", field=field)

    def reset_schedules(self, db: Session, user_id: str) -> None:
        """Phase one: clear every unlocked auto-scheduled placement of the user's open tasks."""
        db.execute(
            update(Task)
            .where(
                Task.user_id == user_id,
                Task.is_auto_scheduled.is_(True),
                Task.schedule_locked.is_(False),
                Task.status != TaskStatus.COMPLETED,
            )
            .values(scheduled_start=None, scheduled_end=None, schedule_score=None)
            .execution_options(synchronize_session="fetch")
        )

    def load_tasks(self, db: Session, user_id: str) -> List[Task]:
        """Auto-scheduled, not completed tasks of the user, locked ones included."""
        return db.query(Task).filter(
            Task.user_id == user_id,
            Task.is_auto_scheduled.is_(True),
            Task.status != TaskStatus.COMPLETED,
        ).order_by(Task.id).all()

    def load_busy_intervals(self, db: Session, user_id: str, settings: ScheduleSettings,
                            now: datetime) -> List[BusyInterval]:
        """Busy time from the synced calendars the user selected for conflict checks."""
        if not settings.selected_calendars:
            return []
        events = db.query(CalendarEvent).filter(
            CalendarEvent.user_id == user_id,
            CalendarEvent.feed_id.in_(settings.selected_calendars),
        ).all()
        intervals = []
        for event in events:
            start, end = ensure_utc(event.start), ensure_utc(event.end)
            if end <= now or end <= start:
                continue
            intervals.append(BusyInterval(start=start, end=end, source=event.feed_id))
        return intervals

    def schedule_all(self, db: Session, user_id: str, now: Optional[datetime] = None,
                     should_cancel: Optional[Callable[[], bool]] = None) -> List[TaskSnapshot]:
        """
        Reschedule every auto-scheduled task of the user and persist the result.
        Any error rolls the whole thing back, including the reset.
        """
        now = ensure_utc(now) or datetime.now(timezone.utc)
        try:
            settings = self.load_settings(db, user_id)
            self.reset_schedules(db, user_id)

            rows = self.load_tasks(db, user_id)
            snapshots = [TaskSnapshot.model_validate(row) for row in rows]
            busy = self.load_busy_intervals(db, user_id, settings, now)

            results = schedule(snapshots, settings, busy, now=now, config=self.config, should_cancel=should_cancel)

            by_id = {row.id: row for row in rows}
            for result in results:
                if result.schedule_locked:
                    continue
                row = by_id[result.id]
                row.scheduled_start = result.scheduled_start
                row.scheduled_end = result.scheduled_end
                row.schedule_score = result.schedule_score
            db.commit()
        except Exception:
            db.rollback()
            raise

        summary = summarize_run(results)
        logger.info(f"Schedule-all for user {user_id}: {summary['placed']} placed, {summary['unplaced']} unplaced")
        return results


# Global scheduler service instance
scheduler_service = SchedulerService()
