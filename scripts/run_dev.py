"""
Development server launcher.

Loads .env, reports which parts of the configuration are missing and
runs the API with uvicorn in reload mode.

Usage:
    python scripts/run_dev.py [--port 8000] [--no-reload]
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv()

import uvicorn

from app.core.config import settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the session engine API locally.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true")
    args = parser.parse_args()

    base = f"http://localhost:{args.port}"
    print(f"{settings.PROJECT_NAME} v{settings.VERSION}")
    print(f"  API:    {base}/api/v1")
    print(f"  Docs:   {base}/docs")
    print(f"  Sweep:  {base}/api/v1/maintenance/sweep")
    if not settings.database_configured:
        print("  ! No database configured; set DATABASE_PASSWORD or DATABASE_URL_OVERRIDE")
    if not settings.CRON_SECRET:
        print("  ! CRON_SECRET is unset; the sweep endpoint is open")

    uvicorn.run("app.main:app", host=args.host, port=args.port, reload=not args.no_reload,
                log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
