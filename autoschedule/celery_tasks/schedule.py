import logging
import time
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from autoschedule import config
from autoschedule.celery_app import celery_app
from autoschedule.database import SessionLocal
from autoschedule.scheduling import InvalidInputError, SchedulingCancelledError, summarize_run
from autoschedule.services.scheduler_service import scheduler_service

logger = logging.getLogger(__name__)


def deadline_after(seconds: float):
    """A should_cancel callback that trips once `seconds` have passed."""
    deadline = time.monotonic() + seconds
    return lambda: time.monotonic() > deadline


@celery_app.task(
    name="autoschedule.celery_tasks.schedule.schedule_user_tasks",
    # The engine stops itself between tasks at the soft limit; this is only a backstop
    time_limit=config.SCHEDULE_TASK_SOFT_TIME_LIMIT + 30,
)
def schedule_user_tasks(user_id: str, now: Optional[str] = None):
    """Run schedule-all for one user. The result doubles as the completion event."""
    db: Session = SessionLocal()
    started = time.monotonic()
    try:
        run_at = datetime.fromisoformat(now) if now else None
        should_cancel = deadline_after(config.SCHEDULE_TASK_SOFT_TIME_LIMIT)
        tasks = scheduler_service.schedule_all(db, user_id, now=run_at, should_cancel=should_cancel)
    except SchedulingCancelledError as e:
        logger.warning(f"Schedule-all for user {user_id} cancelled: {e}")
        return {"status": "cancelled", "user_id": user_id, "message": str(e)}
    except InvalidInputError as e:
        logger.warning(f"Schedule-all for user {user_id} rejected: {e}")
        return {"status": "error", "user_id": user_id, **e.to_dict()}
    finally:
        db.close()

    summary = summarize_run(tasks)
    elapsed = time.monotonic() - started
    logger.info(f"Schedule-all for user {user_id} done in {elapsed:.2f}s: {summary}")
    return {
        "status": "success",
        "user_id": user_id,
        **summary,
        "tasks": [task.model_dump(mode="json") for task in tasks],
    }
