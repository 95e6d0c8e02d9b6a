#!/usr/bin/env python3
"""
Simple launcher script for the Auto-Schedule API.
Run this from the root directory to start the application.
"""

import uvicorn

from autoschedule import config

if __name__ == "__main__":
    print("🚀 Starting Auto-Schedule API with auto-reload...")
    print("📖 API Documentation: http://localhost:8000/docs")
    print("🔍 Health Check: http://localhost:8000/health")
    print("🛑 Press Ctrl+C to stop the server")
    print("-" * 50)

    uvicorn.run(
        "autoschedule.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["autoschedule"],
        log_level=config.LOG_LEVEL.lower()
    )
