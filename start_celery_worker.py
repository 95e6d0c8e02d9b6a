#!/usr/bin/env python3
"""
Start the Celery worker that processes queued schedule-all runs.
"""

import sys

from autoschedule import config
from autoschedule.celery_app import celery_app

if __name__ == "__main__":
    print("Starting Celery Worker for Auto-Schedule...")
    print(f"Processing one user batch per process, {config.CELERY_CONCURRENCY} processes")
    print("Press Ctrl+C to stop")

    try:
        celery_app.start(['worker', f'--loglevel={config.LOG_LEVEL.lower()}',
                          f'--concurrency={config.CELERY_CONCURRENCY}'])
    except KeyboardInterrupt:
        print("\nStopping Celery Worker...")
        sys.exit(0)
