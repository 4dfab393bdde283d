"""Maintenance run repository (sweep audit trail and single-flight lease)."""

import datetime
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session, select

from app.core.errors import SweepAlreadyRunning, store_operation
from app.models.maintenance_run import RUN_FAILED, RUN_RUNNING, MaintenanceRun


class MaintenanceRunRepository:
    """Repository for MaintenanceRun operations."""

    def __init__(self, session: Session):
        self.session = session

    def acquire(self, now: datetime.datetime, lease_seconds: int) -> MaintenanceRun:
        """Open a new run unless another one holds a live lease.

        Args:
            now: Naive UTC timestamp.
            lease_seconds: How long a ``running`` row blocks new runs.

        Raises:
            SweepAlreadyRunning: A run started within the lease is still open.
        """
        cutoff = now - datetime.timedelta(seconds=lease_seconds)
        with store_operation("acquire_maintenance_lease"):
            # Runs that never finished and outlived the lease are abandoned
            self.session.execute(
                update(MaintenanceRun).where(MaintenanceRun.status == RUN_RUNNING,
                                             MaintenanceRun.started_at <= cutoff, ).values(status=RUN_FAILED,
                                                                                          finished_at=now,
                                                                                          error="Lease expired", ))
            live = self.session.exec(select(MaintenanceRun).where(MaintenanceRun.status == RUN_RUNNING,
                                                                  MaintenanceRun.started_at > cutoff, )).first()
            if live is not None:
                self.session.commit()
                raise SweepAlreadyRunning(f"Maintenance run {live.id} started at {live.started_at.isoformat()} "
                                          f"is still running")
            run = MaintenanceRun(started_at=now, status=RUN_RUNNING)
            self.session.add(run)
            self.session.commit()
            self.session.refresh(run)
        return run

    def finish(self, run_id: int, status: str, finished_at: datetime.datetime, overdue_marked: int = 0,
               sessions_created: int = 0, sessions_pruned: int = 0, error: Optional[str] = None, ) -> None:
        with store_operation("finish_maintenance_run"):
            run = self.session.get(MaintenanceRun, run_id)
            if run is None:
                return
            run.status = status
            run.finished_at = finished_at
            run.overdue_marked = overdue_marked
            run.sessions_created = sessions_created
            run.sessions_pruned = sessions_pruned
            run.error = error[:2000] if error else None
            self.session.add(run)
            self.session.commit()

    def get_latest(self) -> Optional[MaintenanceRun]:
        statement = select(MaintenanceRun).order_by(MaintenanceRun.started_at.desc(), MaintenanceRun.id.desc())
        return self.session.exec(statement).first()
