import uuid
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from core.common import locks
from core.jobs import registry
from core.jobs.models import JobRun
from core.jobs.registry import (
    JobAlreadyRunning,
    JobRetryNotAllowed,
    JobRunNotFound,
    UnknownJobError,
    get_job_definitions,
    retry_job_run,
    trigger_job,
)
from core.jobs.tasks import run_job
from core.jobs.tracker import JobResult


def test_job_definitions():
    jobs = get_job_definitions()
    assert [j["id"] for j in jobs] == ["event-processor", "fee-overdue-check", "fee-reminder", "cleanup-job-runs"]
    assert all(j["isRunning"] is False for j in jobs)
    assert jobs[0]["cronExpression"] == "*/15 7-10 * * 1-6"


def test_trigger_unknown_job():
    with pytest.raises(UnknownJobError):
        trigger_job("birthday-notifications")


@pytest.mark.django_db
def test_trigger_job_is_tracked(monkeypatch):
    monkeypatch.setitem(registry.JOB_FUNCTIONS, "fee-reminder", lambda: JobResult(events_emitted=2))

    result = trigger_job("fee-reminder")

    assert result.events_emitted == 2
    assert JobRun.objects.get().job_name == "fee-reminder"


@pytest.mark.django_db
def test_trigger_job_when_lock_held(monkeypatch):
    monkeypatch.setattr(locks, "acquire", lambda name, ttl_seconds=None: False)
    with pytest.raises(JobAlreadyRunning):
        trigger_job("fee-reminder")


@pytest.mark.django_db
def test_trigger_job_releases_lock(monkeypatch):
    released = []
    monkeypatch.setattr(locks, "acquire", lambda name, ttl_seconds=None: "tok-1")
    monkeypatch.setattr(locks, "release", lambda name, token: released.append((name, token)))
    monkeypatch.setitem(registry.JOB_FUNCTIONS, "fee-reminder", lambda: JobResult.skip("nothing due"))

    trigger_job("fee-reminder")

    assert released == [("fee-reminder", "tok-1")]


@pytest.mark.django_db
def test_retry_only_failed_runs(monkeypatch):
    monkeypatch.setitem(registry.JOB_FUNCTIONS, "fee-overdue-check", lambda: JobResult(events_emitted=1))
    done = JobRun.objects.create(job_name="fee-overdue-check", status=JobRun.Status.COMPLETED)
    failed = JobRun.objects.create(job_name="fee-overdue-check", status=JobRun.Status.FAILED, error_message="boom")

    with pytest.raises(JobRunNotFound):
        retry_job_run(uuid.uuid4())
    with pytest.raises(JobRetryNotAllowed):
        retry_job_run(done.id)

    result = retry_job_run(failed.id)

    assert result.events_emitted == 1
    failed.refresh_from_db()
    assert failed.status == JobRun.Status.FAILED
    assert JobRun.objects.filter(status=JobRun.Status.COMPLETED).count() == 2


@pytest.mark.django_db
def test_cleanup_job_skips_when_nothing_old():
    result = trigger_job("cleanup-job-runs")
    assert result.skipped
    assert JobRun.objects.count() == 0


@pytest.mark.django_db
def test_run_job_task_eager(monkeypatch):
    monkeypatch.setitem(registry.JOB_FUNCTIONS, "event-processor", lambda: JobResult(records_processed=5))

    out = run_job.apply(args=("event-processor",)).get()

    assert out["recordsProcessed"] == 5
    assert out["skipped"] is False


@pytest.mark.django_db
def test_run_job_task_when_already_running(monkeypatch):
    monkeypatch.setattr(locks, "acquire", lambda name, ttl_seconds=None: False)
    assert run_job("event-processor") == {"skipped": True, "metadata": {"reason": "Already running"}}


@pytest.mark.django_db
def test_run_job_command(monkeypatch):
    monkeypatch.setitem(registry.JOB_FUNCTIONS, "fee-reminder", lambda: JobResult(events_emitted=4, records_processed=4))
    out = StringIO()
    call_command("run_job", "fee-reminder", stdout=out)
    assert "events_emitted=4" in out.getvalue()


@pytest.mark.django_db
def test_run_job_command_reports_skip():
    out = StringIO()
    call_command("run_job", "cleanup-job-runs", stdout=out)
    assert "skipped" in out.getvalue()


def test_run_job_command_rejects_unknown_job():
    with pytest.raises(CommandError):
        call_command("run_job", "nope")
