import logging

from fastapi import FastAPI

from . import config
from .database import engine
from .models import Base
from .routes import schedule

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title="Auto-Schedule API",
    description="Places a user's pending tasks into free work time around calendar commitments",
    version="1.0.0"
)

# Include routers
app.include_router(schedule.router, prefix="/schedule", tags=["schedule"])

@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": "Welcome to the Auto-Schedule API",
        "version": "1.0.0",
        "endpoints": {
            "run": "POST /schedule/run - Schedule a task snapshot without storing anything",
            "all": "POST /schedule/all - Reschedule and store all auto-scheduled tasks of the user",
            "queue": "POST /schedule/all/queue - Same as /schedule/all, on a worker",
            "jobs": "GET /schedule/jobs/{job_id} - Status of a queued run"
        },
        "authentication": "User id in the X-User-Id header (set by the gateway)",
        "swagger_ui": "/docs - Interactive API documentation",
    }

@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "message": "API is running"}

# This allows running the app directly with: python -m autoschedule.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("autoschedule.main:app", host="0.0.0.0", port=8000, reload=True)
