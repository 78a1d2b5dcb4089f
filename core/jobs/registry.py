"""
The set of schedulable jobs and the entry points that run them.

Both Celery beat (core.jobs.tasks) and the manual surfaces (API,
management command) go through trigger_job so every run is locked and
tracked the same way.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Callable

from django.conf import settings

from core.common import locks
from core.jobs.event_processor import run_event_processor_job
from core.jobs.fee_overdue import run_fee_overdue_job
from core.jobs.fee_reminder import run_fee_reminder_job
from core.jobs.models import JobRun
from core.jobs.tracker import JobResult, cleanup_old_job_runs, track_job_run

logger = logging.getLogger(__name__)


class UnknownJobError(Exception):
    pass


class JobRunNotFound(Exception):
    pass


class JobRetryNotAllowed(Exception):
    pass


class JobAlreadyRunning(Exception):
    pass


def run_cleanup_job() -> JobResult:
    days = int(getattr(settings, "JOB_RUN_RETENTION_DAYS", 30))
    deleted = cleanup_old_job_runs(days)
    if not deleted:
        return JobResult.skip("No old job runs to clean up")
    return JobResult(records_processed=deleted, metadata={"deleted": deleted, "daysKept": days})


@dataclass(frozen=True)
class JobDefinition:
    id: str
    name: str
    description: str
    schedule: str
    cron_expression: str | None = None
    interval_minutes: int | None = None

    def as_dict(self, is_running: bool = False) -> dict:
        d = asdict(self)
        return {
            "id": d["id"],
            "name": d["name"],
            "description": d["description"],
            "schedule": d["schedule"],
            "cronExpression": d["cron_expression"],
            "intervalMinutes": d["interval_minutes"],
            "isRunning": is_running,
        }


JOB_DEFINITIONS = (
    JobDefinition(
        id="event-processor",
        name="Event Processor",
        description="Processes pending events during each organization's attendance window.",
        schedule="Every 15 mins, 7-11 AM, Mon-Sat",
        cron_expression="*/15 7-10 * * 1-6",
    ),
    JobDefinition(
        id="fee-overdue-check",
        name="Fee Overdue Check",
        description="Checks for overdue installments and emits events",
        schedule="Every hour (org-specific time)",
        interval_minutes=60,
    ),
    JobDefinition(
        id="fee-reminder",
        name="Fee Reminder",
        description="Sends reminders for installments due soon",
        schedule="Daily at 8:00 AM",
        cron_expression="0 8 * * *",
    ),
    JobDefinition(
        id="cleanup-job-runs",
        name="Job Runs Cleanup",
        description="Cleans up old job run records",
        schedule="Daily at 3:00 AM",
        cron_expression="0 3 * * *",
    ),
)

JOB_FUNCTIONS: dict[str, Callable[[], JobResult]] = {
    "event-processor": run_event_processor_job,
    "fee-overdue-check": run_fee_overdue_job,
    "fee-reminder": run_fee_reminder_job,
    "cleanup-job-runs": run_cleanup_job,
}


def get_job_definitions() -> list[dict]:
    return [job.as_dict(is_running=locks.is_locked(job.id)) for job in JOB_DEFINITIONS]


def get_job_definition(job_name: str) -> JobDefinition:
    for job in JOB_DEFINITIONS:
        if job.id == job_name:
            return job
    raise UnknownJobError(f"Unknown job: {job_name}")


def trigger_job(job_name: str) -> JobResult:
    """
    Run a job now, in-process. Raises UnknownJobError, or JobAlreadyRunning
    when another worker holds the job's lock.
    """
    get_job_definition(job_name)
    job_fn = JOB_FUNCTIONS[job_name]

    try:
        with locks.job_lock(job_name):
            return track_job_run(job_name, job_fn)
    except locks.LockHeld:
        logger.warning("Job %s is already running, skipping", job_name)
        raise JobAlreadyRunning(f"Job {job_name} is already running")


def retry_job_run(run_id) -> JobResult:
    """Re-run the job behind a failed JobRun; the original row is left as is."""
    run = JobRun.objects.filter(id=run_id).first()
    if not run:
        raise JobRunNotFound("Job run not found")
    if run.status != JobRun.Status.FAILED:
        raise JobRetryNotAllowed("Can only retry failed jobs")

    logger.info("Retrying failed job run=%s job=%s", run.id, run.job_name)
    return trigger_job(run.job_name)
