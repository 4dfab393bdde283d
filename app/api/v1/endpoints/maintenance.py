"""
Maintenance trigger.

Called once a day by the scheduler with ``Authorization: Bearer
<CRON_SECRET>``.  Error responses are produced by the exception
handlers in :mod:`app.main`.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends

from app.api.dependencies import get_settings, require_cron_secret
from app.core.config import Settings
from app.db.repositories.maintenance_run import MaintenanceRunRepository
from app.db.session import SessionFactory, get_session_factory
from app.engine.sweep import MaintenanceSweep
from app.schemas.maintenance import MaintenanceRunResponse, SweepResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.get("/sweep", summary="Run the daily maintenance sweep.", response_model=SweepResponse)
def run_sweep(session_factory: SessionFactory = Depends(get_session_factory),
              config: Settings = Depends(get_settings), ):
    report = MaintenanceSweep(session_factory, config).run()
    if report.alerts:
        logger.critical("Maintenance sweep raised %d alert(s): %s", len(report.alerts), report.alerts)
    return SweepResponse(success=True, overdue_sessions_marked=report.overdue_marked,
                         sessions_created=report.sessions_created, sessions_pruned=report.sessions_pruned,
                         timestamp=report.finished_at or report.started_at, )


@router.get("/runs/latest", summary="Get the most recent sweep run.",
            response_model=Optional[MaintenanceRunResponse], )
def get_latest_run(session_factory: SessionFactory = Depends(get_session_factory)):
    with session_factory() as db:
        run = MaintenanceRunRepository(db).get_latest()
        return MaintenanceRunResponse.model_validate(run) if run else None
