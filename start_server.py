#!/usr/bin/env python3
"""
Startup script for the TaskHub backend
This script starts the FastAPI server with settings from the environment
"""

import uvicorn

from taskhub.config.settings import get_settings


def main():
    settings = get_settings()

    print("Starting TaskHub Backend Server...")
    print(f"Environment: {settings.environment}")
    print(f"Host: {settings.host}")
    print(f"Port: {settings.port}")
    print(f"Reload: {settings.reload}")
    print("=" * 50)

    # Start the server
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
