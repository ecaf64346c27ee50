#!/usr/bin/env python3
"""Start the depbump web application."""

import uvicorn

from core.config import Settings, configure_logging

if __name__ == "__main__":
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    print("🚀 Starting depbump Web Application...")
    print("📍 URL: http://localhost:8000")
    print("📄 API docs: http://localhost:8000/docs")
    print("🛑 Press Ctrl+C to stop")
    print()

    uvicorn.run(
        "apps.web.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        reload_dirs=["apps", "core"],
        log_level=settings.log_level.lower(),
    )
