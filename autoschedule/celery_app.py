"""
Celery configuration for queued scheduling runs.
One task is one user's batch; batches of different users run in parallel.
"""

from celery import Celery

from . import config

celery_app = Celery(
    "autoschedule",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["autoschedule.celery_tasks.schedule"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # CPU-bound work: one process per core, one batch at a time per process
    worker_concurrency=config.CELERY_CONCURRENCY,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
)

if __name__ == "__main__":
    celery_app.start()
