#!/usr/bin/env python3
"""
Server startup script for the Chat Monitor reporting API
"""

import uvicorn
import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from chat_monitor.config import settings


def main():
    """Main function to start the server"""
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "false").lower() == "true"
    # uvicorn expects lowercase level names
    log_level = settings.LOG_LEVEL.strip().lower()

    print(f"Starting {settings.APP_NAME} API...")
    print(f"Host: {host}")
    print(f"Port: {port}")
    print(f"Reload: {reload}")
    print(f"Log Level: {log_level}")
    print("-" * 50)

    uvicorn.run(
        "chat_monitor.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=log_level,
        access_log=True,
    )


if __name__ == "__main__":
    main()
