"""
Schedule API endpoints
"""

import logging
from datetime import datetime
from typing import Optional

from celery.result import AsyncResult
from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from ..celery_app import celery_app
from ..celery_tasks.schedule import schedule_user_tasks
from ..database import get_db
from ..schemas import EngineConfig, ScheduleJobOut, ScheduleRunRequest, ScheduleRunResponse
from ..scheduling import InvalidInputError, InvariantViolationError, schedule, summarize_run
from ..services.scheduler_service import scheduler_service

logger = logging.getLogger(__name__)

router = APIRouter()


def get_current_user_id(x_user_id: str = Header(..., description="Id of the authenticated user")) -> str:
    """Authentication happens upstream; the gateway forwards the user id."""
    return x_user_id


def _invalid_input(error: InvalidInputError) -> HTTPException:
    return HTTPException(status_code=400, detail=error.to_dict())


def _invariant_violation(error: InvariantViolationError) -> HTTPException:
    logger.error(f"Scheduling invariant violated: {error}")
    return HTTPException(status_code=500, detail="Scheduling failed an internal consistency check")


@router.post("/run", response_model=ScheduleRunResponse)
def run_schedule(payload: ScheduleRunRequest):
    """
    Stateless scheduling: place the given tasks against the given settings and
    busy time. Nothing is stored; the caller persists the returned tasks.
    """
    try:
        tasks = schedule(
            payload.tasks,
            payload.settings,
            payload.busy_intervals,
            now=payload.now,
            config=EngineConfig.from_env(),
        )
    except InvalidInputError as e:
        raise _invalid_input(e)
    except InvariantViolationError as e:
        raise _invariant_violation(e)

    return ScheduleRunResponse(tasks=tasks, **summarize_run(tasks))


@router.post("/all", response_model=ScheduleRunResponse)
def schedule_all(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    now: Optional[datetime] = Query(None, description="Plan as if it were this instant (defaults to now)"),
):
    """Reschedule all of the user's auto-scheduled tasks and store the placements."""
    try:
        tasks = scheduler_service.schedule_all(db, user_id, now=now)
    except InvalidInputError as e:
        raise _invalid_input(e)
    except InvariantViolationError as e:
        raise _invariant_violation(e)

    return ScheduleRunResponse(tasks=tasks, **summarize_run(tasks))


@router.post("/all/queue", response_model=ScheduleJobOut, status_code=202)
def queue_schedule_all(user_id: str = Depends(get_current_user_id)):
    """Hand the user's batch to a worker; poll /schedule/jobs/{job_id} for the outcome."""
    job = schedule_user_tasks.delay(user_id)
    logger.info(f"Queued schedule-all job {job.id} for user {user_id}")
    return ScheduleJobOut(job_id=job.id, status="queued")


@router.get("/jobs/{job_id}", response_model=ScheduleJobOut)
def get_schedule_job(job_id: str):
    result = AsyncResult(job_id, app=celery_app)
    if not result.ready():
        return ScheduleJobOut(job_id=job_id, status=result.status.lower())
    if result.failed():
        return ScheduleJobOut(job_id=job_id, status="failed", result={"message": str(result.result)})
    return ScheduleJobOut(job_id=job_id, status="completed", result=result.result)
