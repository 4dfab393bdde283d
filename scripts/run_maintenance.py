"""
Run the daily maintenance sweep from the command line.

Equivalent to calling ``GET /api/v1/maintenance/sweep``; meant for a
system cron or a one-off repair run.

Usage:
    python scripts/run_maintenance.py
    python scripts/run_maintenance.py --now 2024-03-01T06:00:00+00:00
"""

import argparse
import datetime
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv

load_dotenv()

from app.core.config import settings
from app.core.errors import ConfigurationError, SweepAlreadyRunning, SweepFailed
from app.core.logging import setup_logging
from app.db.session import get_session_factory
from app.engine.sweep import MaintenanceSweep


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the session maintenance sweep.")
    parser.add_argument("--now", type=datetime.datetime.fromisoformat, default=None,
                        help="Reference instant (ISO 8601, naive values are UTC)")
    args = parser.parse_args()

    setup_logging(settings)

    try:
        report = MaintenanceSweep(get_session_factory(), settings).run(args.now)
    except ConfigurationError as e:
        print(json.dumps({ "error": "Missing configuration", "details": str(e) }))
        return 2
    except SweepAlreadyRunning as e:
        print(json.dumps({ "error": "Maintenance already running", "details": str(e) }))
        return 3
    except SweepFailed as e:
        print(json.dumps({ "error": "Failed to generate sessions", "details": str(e.original_error) }))
        return 1

    print(json.dumps({ "success": True, "overdueSessionsMarked": report.overdue_marked,
                       "sessionsCreated": report.sessions_created, "sessionsPruned": report.sessions_pruned,
                       "timestamp": (report.finished_at or report.started_at).isoformat(),
                       "alerts": report.alerts, }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
