"""
Environment configuration for the auto-scheduling service.
Values come from the process environment, optionally seeded from a .env file.
"""

import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./autoschedule.db")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
# Slot search is CPU-bound, so the worker pool is sized to the machine
CELERY_CONCURRENCY = int(os.getenv("CELERY_CONCURRENCY", str(os.cpu_count() or 1)))
# Soft limit per user batch, in seconds
SCHEDULE_TASK_SOFT_TIME_LIMIT = int(os.getenv("SCHEDULE_TASK_SOFT_TIME_LIMIT", "60"))

SCHEDULE_HORIZON_DAYS = int(os.getenv("SCHEDULE_HORIZON_DAYS", "14"))
SCHEDULE_MAX_CANDIDATES = int(os.getenv("SCHEDULE_MAX_CANDIDATES", "10"))
SCHEDULE_SLOT_GRANULARITY_MINUTES = int(os.getenv("SCHEDULE_SLOT_GRANULARITY_MINUTES", "5"))
SCHEDULE_DUE_LEAD_HOURS = float(os.getenv("SCHEDULE_DUE_LEAD_HOURS", "24"))

SCORE_WEIGHT_ENERGY = float(os.getenv("SCORE_WEIGHT_ENERGY", "0.4"))
SCORE_WEIGHT_TIME_OF_DAY = float(os.getenv("SCORE_WEIGHT_TIME_OF_DAY", "0.3"))
SCORE_WEIGHT_DUE_DATE = float(os.getenv("SCORE_WEIGHT_DUE_DATE", "0.2"))
SCORE_WEIGHT_EARLINESS = float(os.getenv("SCORE_WEIGHT_EARLINESS", "0.1"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
