"""
Uvicorn launcher.

Usage:
    python -m fieldvisit
    python -m fieldvisit --port 8000 --reload
"""
import argparse

import uvicorn

from fieldvisit.core.config import settings


def main():
    parser = argparse.ArgumentParser(description="Field Visit Tracker API server")
    parser.add_argument("--host", default="0.0.0.0", help="Bind host (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Bind port (default: PORT or 4000)")
    parser.add_argument("--reload", action="store_true", help="Enable hot reload for development")

    args = parser.parse_args()

    uvicorn.run(
        "fieldvisit.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
