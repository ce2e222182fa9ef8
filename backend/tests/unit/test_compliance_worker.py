# backend/tests/unit/test_compliance_worker.py
"""
Tests for ComplianceWorker job scheduling and job error handling.
"""

import pytest
from datetime import date, datetime, timezone
from unittest.mock import MagicMock, Mock

from routine_compliance.constants import SWEEP_JOB_ID, WINDOW_EXTENSION_JOB_ID
from routine_compliance.database.exceptions import ScheduledOccurrenceOperationError
from routine_compliance.enums import RegenerationScope, RoutineStatus
from routine_compliance.exceptions import RegenerationConflictError
from routine_compliance.models import RegenerationResult, SweepResult
from routine_compliance.workers import ComplianceWorker


@pytest.fixture
def worker_dependencies(store, test_settings):
    """Mocked services around the in-memory store."""
    scheduler = MagicMock()
    scheduler.running = False
    return {
        "store": store,
        "compliance_service": Mock(),
        "coordinator": Mock(),
        "config": test_settings,
        "scheduler": scheduler,
    }


@pytest.fixture
def compliance_worker(worker_dependencies):
    return ComplianceWorker(**worker_dependencies)


@pytest.mark.unit
class TestComplianceWorkerLifecycle:
    def test_start_schedules_both_jobs(self, compliance_worker, worker_dependencies):
        scheduler = worker_dependencies["scheduler"]

        compliance_worker.start()

        job_ids = [c.kwargs["id"] for c in scheduler.add_job.call_args_list]
        assert job_ids == [SWEEP_JOB_ID, WINDOW_EXTENSION_JOB_ID]
        sweep_call, extension_call = scheduler.add_job.call_args_list
        assert sweep_call.args[1] == "interval"
        assert sweep_call.kwargs["minutes"] == 15
        assert extension_call.args[1] == "cron"
        assert extension_call.kwargs["hour"] == 2
        assert all(c.kwargs["max_instances"] == 1 for c in scheduler.add_job.call_args_list)
        scheduler.start.assert_called_once()
        assert compliance_worker.is_healthy()

    def test_stop_shuts_scheduler_down(self, compliance_worker, worker_dependencies):
        scheduler = worker_dependencies["scheduler"]
        compliance_worker.start()
        scheduler.running = True

        compliance_worker.stop()

        scheduler.shutdown.assert_called_once_with(wait=False)
        assert not compliance_worker.running

    def test_status(self, compliance_worker):
        status = compliance_worker.get_status()
        assert status["name"] == "ComplianceWorker"
        assert status["worker_type"] == "ComplianceWorker"
        assert status["last_sweep"] is None
        assert status["scheduler_running"] is False


@pytest.mark.unit
class TestExpirySweepJob:
    def test_successful_sweep(self, compliance_worker, worker_dependencies):
        as_of = datetime(2025, 6, 12, 13, 0, tzinfo=timezone.utc)
        worker_dependencies["compliance_service"].sweep_expired.return_value = SweepResult(
            as_of=as_of, examined_count=3, missed_ids=[4, 5, 6]
        )

        response = compliance_worker.run_expiry_sweep()

        assert response["success"] is True
        assert response["data"] == {"as_of": as_of, "missed_count": 3}
        assert compliance_worker.get_status()["last_sweep"]["missed_count"] == 3

    def test_database_failure_is_reported_not_raised(
        self, compliance_worker, worker_dependencies
    ):
        worker_dependencies["compliance_service"].sweep_expired.side_effect = (
            ScheduledOccurrenceOperationError("connection lost", operation="find_pending_expired")
        )

        response = compliance_worker.run_expiry_sweep()

        assert response["success"] is False
        assert "connection lost" in response["error"]
        assert compliance_worker.last_sweep is None


@pytest.mark.unit
class TestWindowExtensionJob:
    def test_extends_every_published_routine(
        self, compliance_worker, worker_dependencies, store
    ):
        first = store.add_routine()
        store.add_routine(start_date=date(2025, 7, 1))
        coordinator = worker_dependencies["coordinator"]
        coordinator.extend_window.return_value = RegenerationResult(
            scope=RegenerationScope.WINDOW_EXTENSION, routine_id=first.id, inserted_count=2
        )

        response = compliance_worker.run_window_extension()

        assert coordinator.extend_window.call_count == 2
        assert response["data"] == {
            "routines": 2,
            "extended": 2,
            "inserted": 4,
            "failed": [],
        }

    def test_draft_routines_are_not_listed(self, compliance_worker, worker_dependencies, store):
        store.add_routine(status=RoutineStatus.DRAFT)

        response = compliance_worker.run_window_extension()

        worker_dependencies["coordinator"].extend_window.assert_not_called()
        assert response["data"]["routines"] == 0

    def test_one_failing_routine_does_not_stop_others(
        self, compliance_worker, worker_dependencies, store
    ):
        first = store.add_routine()
        second = store.add_routine()
        coordinator = worker_dependencies["coordinator"]
        coordinator.extend_window.side_effect = [
            RegenerationConflictError(f"routine {first.id}", 2),
            RegenerationResult(
                scope=RegenerationScope.WINDOW_EXTENSION,
                routine_id=second.id,
                inserted_count=1,
            ),
        ]

        response = compliance_worker.run_window_extension()

        assert response["success"] is True
        assert response["data"]["failed"] == [first.id]
        assert response["data"]["extended"] == 1

    def test_skipped_routines_are_not_counted(
        self, compliance_worker, worker_dependencies, store
    ):
        routine = store.add_routine()
        worker_dependencies["coordinator"].extend_window.return_value = RegenerationResult(
            scope=RegenerationScope.WINDOW_EXTENSION,
            routine_id=routine.id,
            skipped_reason="routine has ended",
        )

        response = compliance_worker.run_window_extension()

        assert response["data"]["extended"] == 0
