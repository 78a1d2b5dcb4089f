import logging

from celery import shared_task

from core.jobs.registry import JobAlreadyRunning, trigger_job

logger = logging.getLogger(__name__)


@shared_task(name="core.jobs.tasks.run_job")
def run_job(job_name: str):
    try:
        result = trigger_job(job_name)
    except JobAlreadyRunning:
        return {"skipped": True, "metadata": {"reason": "Already running"}}
    return result.as_dict()
