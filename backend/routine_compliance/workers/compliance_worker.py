# backend/routine_compliance/workers/compliance_worker.py
"""
Compliance Worker - periodic expiry sweep and rolling-window top-up.

Jobs (APScheduler BackgroundScheduler):
- expiry_sweep: every sweep_interval_minutes, flips overdue pending
  occurrences to missed
- window_extension: daily at window_extension_hour (UTC), extends the rolling
  window of every published routine

Job functions log failures and return an error response; they never raise into
the scheduler.
"""

from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from ..config import Settings, settings as default_settings
from ..constants import SCHEDULER_MAX_INSTANCES, SWEEP_JOB_ID, WINDOW_EXTENSION_JOB_ID
from ..database.exceptions import DatabaseOperationError
from ..enums import LogEmoji, LoggerName
from ..exceptions import RoutineComplianceError
from ..services.compliance_service import ComplianceService
from ..services.regeneration_service import RegenerationCoordinator
from .base_worker import BaseWorker, WorkerResponse


class ComplianceWorker(BaseWorker):
    """
    Runs the compliance maintenance jobs on a background scheduler.

    Args:
        store: Schedule store used to list published routines
        compliance_service: Service performing the expiry sweep
        coordinator: Coordinator performing window extension
        config: Settings providing job intervals
        scheduler: Scheduler instance (a BackgroundScheduler by default)
    """

    def __init__(
        self,
        store,
        compliance_service: ComplianceService,
        coordinator: RegenerationCoordinator,
        config: Optional[Settings] = None,
        scheduler: Optional[BackgroundScheduler] = None,
    ) -> None:
        super().__init__("ComplianceWorker", LoggerName.COMPLIANCE_WORKER)
        self.store = store
        self.compliance_service = compliance_service
        self.coordinator = coordinator
        self.config = config or default_settings
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self.last_sweep: Optional[Dict[str, Any]] = None
        self.last_extension: Optional[Dict[str, Any]] = None

    def initialize(self) -> None:
        self.scheduler.add_job(
            self.run_expiry_sweep,
            "interval",
            minutes=self.config.sweep_interval_minutes,
            id=SWEEP_JOB_ID,
            max_instances=SCHEDULER_MAX_INSTANCES,
            coalesce=True,
            replace_existing=True,
        )
        self.scheduler.add_job(
            self.run_window_extension,
            "cron",
            hour=self.config.window_extension_hour,
            minute=0,
            id=WINDOW_EXTENSION_JOB_ID,
            max_instances=SCHEDULER_MAX_INSTANCES,
            coalesce=True,
            replace_existing=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        self.log_info(
            f"Scheduled {SWEEP_JOB_ID} every {self.config.sweep_interval_minutes} min "
            f"and {WINDOW_EXTENSION_JOB_ID} daily at "
            f"{self.config.window_extension_hour:02d}:00 UTC",
            emoji=LogEmoji.CLOCK,
        )

    def cleanup(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def run_expiry_sweep(self) -> WorkerResponse:
        """Flip every overdue pending occurrence to missed."""
        try:
            result = self.compliance_service.sweep_expired()
        except (RoutineComplianceError, DatabaseOperationError) as e:
            self.log_error("Expiry sweep failed", e)
            return self.create_error_response(str(e))

        self.last_sweep = {
            "as_of": result.as_of,
            "missed_count": result.missed_count,
        }
        return self.create_success_response(self.last_sweep)

    def run_window_extension(self) -> WorkerResponse:
        """Extend the rolling window of every published routine."""
        try:
            with self.store.transaction() as uow:
                routines = uow.routines.list_published_routines()
        except DatabaseOperationError as e:
            self.log_error("Could not list published routines", e)
            return self.create_error_response(str(e))

        extended = 0
        inserted = 0
        failed = []
        for routine in routines:
            try:
                result = self.coordinator.extend_window(routine)
            except (RoutineComplianceError, DatabaseOperationError) as e:
                self.log_error(f"Window extension failed for routine {routine.id}", e)
                failed.append(routine.id)
                continue
            if not result.skipped:
                extended += 1
                inserted += result.inserted_count

        self.last_extension = {
            "routines": len(routines),
            "extended": extended,
            "inserted": inserted,
            "failed": failed,
        }
        self.log_info(
            f"Window extension: {extended}/{len(routines)} routines, "
            f"{inserted} occurrences added, {len(failed)} failed",
            emoji=LogEmoji.CALENDAR,
        )
        return self.create_success_response(self.last_extension)

    def get_status(self) -> Dict[str, Any]:
        status = super().get_status()
        status.update(
            {
                "scheduler_running": bool(self.scheduler.running),
                "last_sweep": self.last_sweep,
                "last_extension": self.last_extension,
            }
        )
        return status
