from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable

from django.db.models import Avg, Count, Q
from django.utils import timezone

from core.jobs.models import JobRun

logger = logging.getLogger(__name__)


@dataclass
class JobResult:
    """What a job reports back to the runner."""
    skipped: bool = False
    events_emitted: int = 0
    records_processed: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def skip(cls, reason: str, **metadata) -> "JobResult":
        return cls(skipped=True, metadata={"reason": reason, **metadata})

    @property
    def reason(self) -> str | None:
        return self.metadata.get("reason")

    def as_dict(self) -> dict[str, Any]:
        return {
            "skipped": self.skipped,
            "eventsEmitted": self.events_emitted,
            "recordsProcessed": self.records_processed,
            "metadata": self.metadata,
        }


def _elapsed_ms(started_at) -> int:
    return int((timezone.now() - started_at).total_seconds() * 1000)


def track_job_run(job_name: str, job_fn: Callable[[], JobResult], org_id=None, branch_id=None) -> JobResult:
    """
    Run a job and record it.

    Skipped runs are only logged (they are the steady state and would
    flood the table); completed and failed runs get a JobRun row.
    Failures are re-raised so the scheduler sees them too.
    """
    started_at = timezone.now()

    try:
        result = job_fn()
    except Exception as e:
        error_message = str(e) or type(e).__name__
        try:
            JobRun.objects.create(
                job_name=job_name,
                org_id=org_id,
                branch_id=branch_id,
                status=JobRun.Status.FAILED,
                started_at=started_at,
                completed_at=timezone.now(),
                duration_ms=_elapsed_ms(started_at),
                error_message=error_message[:2000],
            )
        except Exception:
            logger.warning("Failed to record failure of job %s", job_name, exc_info=True)
        logger.error("Job run failed job=%s error=%s", job_name, error_message)
        raise

    duration_ms = _elapsed_ms(started_at)

    if result.skipped:
        logger.debug("Job skipped job=%s duration_ms=%s reason=%s", job_name, duration_ms, result.reason or "No work to do")
        return result

    JobRun.objects.create(
        job_name=job_name,
        org_id=org_id,
        branch_id=branch_id,
        status=JobRun.Status.COMPLETED,
        started_at=started_at,
        completed_at=timezone.now(),
        duration_ms=duration_ms,
        events_emitted=result.events_emitted,
        records_processed=result.records_processed,
        metadata=result.metadata or None,
    )
    logger.info(
        "Job run completed job=%s duration_ms=%s events_emitted=%s records_processed=%s",
        job_name, duration_ms, result.events_emitted, result.records_processed,
    )
    return result


def get_last_job_run(job_name: str) -> JobRun | None:
    return JobRun.objects.filter(job_name=job_name).order_by("-started_at").first()


def get_job_stats(job_name: str | None = None, days: int = 7) -> dict[str, Any]:
    since = timezone.now() - timedelta(days=days)
    qs = JobRun.objects.filter(started_at__gte=since)
    if job_name:
        qs = qs.filter(job_name=job_name)

    agg = qs.aggregate(
        total=Count("id"),
        completed=Count("id", filter=Q(status=JobRun.Status.COMPLETED)),
        failed=Count("id", filter=Q(status=JobRun.Status.FAILED)),
        skipped=Count("id", filter=Q(status=JobRun.Status.SKIPPED)),
        avg_duration=Avg("duration_ms"),
    )
    total = agg["total"] or 0
    completed = agg["completed"] or 0
    failed = agg["failed"] or 0
    skipped = agg["skipped"] or 0

    return {
        "total": total,
        "completed": completed,
        "failed": failed,
        "skipped": skipped,
        "running": total - completed - failed - skipped,
        "successRate": ((completed + skipped) / total) * 100 if total else 0,
        "avgDurationMs": agg["avg_duration"] or 0,
    }


def cleanup_old_job_runs(days_to_keep: int = 30) -> int:
    cutoff = timezone.now() - timedelta(days=days_to_keep)
    deleted, _ = JobRun.objects.filter(started_at__lt=cutoff).delete()
    if deleted:
        logger.info("Cleaned up old job runs deleted=%s days_kept=%s", deleted, days_to_keep)
    return deleted
