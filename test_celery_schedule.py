"""
Worker task tests. The task is called in-process, so no broker is needed.
"""

import pytest

from autoschedule.celery_tasks import schedule as schedule_tasks
from autoschedule.models import AutoScheduleSettings, Task
from conftest import at


@pytest.fixture
def worker_db(db_session_factory, monkeypatch):
    monkeypatch.setattr(schedule_tasks, "SessionLocal", db_session_factory)
    db = db_session_factory()
    db.add_all([
        Task(id="t1", user_id="user-1", title="First", duration=60, is_auto_scheduled=True),
        Task(id="t2", user_id="user-1", title="Second", duration=30, is_auto_scheduled=True),
    ])
    db.commit()
    db.close()
    return db_session_factory


def test_schedule_user_tasks_success(worker_db):
    result = schedule_tasks.schedule_user_tasks("user-1", now="2026-10-19T08:00:00+00:00")
    assert result["status"] == "success"
    assert result["placed"] == 2 and result["unplaced"] == 0
    starts = sorted(task["scheduled_start"] for task in result["tasks"])
    assert starts[0].startswith("2026-10-19T09:00:00")

    db = worker_db()
    try:
        assert all(task.scheduled_start is not None for task in db.query(Task).all())
    finally:
        db.close()


def test_schedule_user_tasks_cancelled_at_deadline(worker_db, monkeypatch):
    monkeypatch.setattr(schedule_tasks, "deadline_after", lambda seconds: (lambda: True))
    result = schedule_tasks.schedule_user_tasks("user-1", now="2026-10-19T08:00:00+00:00")
    assert result["status"] == "cancelled"

    db = worker_db()
    try:
        assert all(task.scheduled_start is None for task in db.query(Task).all())
    finally:
        db.close()


def test_schedule_user_tasks_reports_invalid_settings(worker_db):
    db = worker_db()
    db.add(AutoScheduleSettings(user_id="user-1", work_days=[]))
    db.commit()
    db.close()

    result = schedule_tasks.schedule_user_tasks("user-1")
    assert result["status"] == "error"
    assert result["error"] == "invalid_input"
    assert result["field"] == "work_days"


def test_deadline_after():
    assert schedule_tasks.deadline_after(60)() is False
    assert schedule_tasks.deadline_after(-1)() is True
