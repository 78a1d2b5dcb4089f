"""
Event processor job.

Drains pending events per (org, branch), but only while the org is
inside its attendance window; outside school hours events simply wait.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.utils import timezone

from core.events.emitter import get_pending_events
from core.jobs.tracker import JobResult
from core.jobs.windows import is_within_window, window_for_organization
from core.notifications.dispatcher import NotificationDispatcher
from core.tenants.models import Organization

logger = logging.getLogger(__name__)


def run_event_processor_job(now=None, dispatcher: NotificationDispatcher | None = None) -> JobResult:
    now = now or timezone.now()
    batch_size = int(getattr(settings, "EVENT_PROCESSOR_BATCH_SIZE", 100))

    orgs = list(Organization.objects.filter(notifications_enabled=True).prefetch_related("branches"))
    if not orgs:
        logger.debug("No organizations with notifications enabled")
        return JobResult.skip("No orgs with notifications enabled")

    dispatcher = dispatcher or NotificationDispatcher()

    total_processed = 0
    total_failed = 0
    orgs_processed = 0
    orgs_skipped = 0

    for org in orgs:
        try:
            window = window_for_organization(org)
        except (ValueError, TypeError) as e:
            logger.warning("Skipping org with an unusable period template org=%s error=%s", org.id, e)
            orgs_skipped += 1
            continue

        if not is_within_window(window, now, org.timezone):
            logger.debug("Org outside attendance window org=%s window=%s", org.id, window.as_dict())
            orgs_skipped += 1
            continue

        for branch in org.branches.all():
            events = get_pending_events(org.id, branch.id, limit=batch_size)
            if not events:
                continue

            logger.debug("Processing pending events org=%s branch=%s count=%s", org.id, branch.id, len(events))
            counts = dispatcher.process_events(events)
            total_processed += counts["processed"]
            total_failed += counts["failed"]

        orgs_processed += 1

    if total_processed or total_failed:
        logger.info(
            "Event processor job completed processed=%s failed=%s orgs=%s",
            total_processed, total_failed, orgs_processed,
        )

    if orgs_processed == 0:
        return JobResult.skip("All orgs outside attendance window", orgsSkipped=orgs_skipped)

    if total_processed == 0 and total_failed == 0:
        return JobResult.skip("No pending events", orgsProcessed=orgs_processed, orgsSkipped=orgs_skipped)

    return JobResult(
        records_processed=total_processed + total_failed,
        metadata={
            "processed": total_processed,
            "failed": total_failed,
            "orgsProcessed": orgs_processed,
            "orgsSkipped": orgs_skipped,
        },
    )
