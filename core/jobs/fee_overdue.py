"""
Fee overdue job.

Runs hourly. For each organization whose fee_overdue_check_time hour is
the current local hour, emits one fee_overdue event per unpaid installment
past its due date, at most once per installment per local day.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.utils import timezone

from core.common.timeutils import day_bounds, local_now
from core.events.emitter import EventPayload, EventSpec, emit_events
from core.events.models import Event
from core.fees.models import FeeInstallment
from core.jobs.dedup import OverdueEventLedger
from core.jobs.tracker import JobResult
from core.school.models import Student
from core.tenants.models import Organization

logger = logging.getLogger(__name__)

ENTITY_TYPE = "fee_installment"


def _overdue_installments(org_id, branch_id, today):
    return (
        FeeInstallment.objects.select_related("student")
        .filter(
            student__org_id=org_id,
            student__branch_id=branch_id,
            student__status=Student.Status.ACTIVE,
            due_date__lt=today,
            status__in=FeeInstallment.UNPAID_STATUSES,
        )
        .order_by("due_date", "installment_number")
    )


def _payload(inst: FeeInstallment, today) -> EventPayload:
    return EventPayload(
        entity_type=ENTITY_TYPE,
        entity_id=str(inst.id),
        data={
            "studentId": str(inst.student_id),
            "studentName": inst.student.full_name,
            "installmentNumber": inst.installment_number,
            "amount": inst.amount,
            "paidAmount": inst.paid_amount,
            "pendingAmount": inst.pending_amount,
            "dueDate": inst.due_date.isoformat(),
            "daysOverdue": (today - inst.due_date).days,
        },
    )


def run_fee_overdue_job(now=None, ledger: OverdueEventLedger | None = None) -> JobResult:
    now = now or timezone.now()
    ledger = ledger or OverdueEventLedger()

    # cheap global check first; "tomorrow" covers orgs ahead of the server clock
    horizon = timezone.localdate(now) + timedelta(days=1)
    overdue_count = FeeInstallment.objects.filter(
        due_date__lt=horizon,
        status__in=FeeInstallment.UNPAID_STATUSES,
        student__status=Student.Status.ACTIVE,
    ).count()

    if overdue_count == 0:
        logger.debug("No overdue installments, skipping fee overdue job")
        return JobResult.skip("No overdue fees found")

    orgs = list(Organization.objects.filter(notifications_enabled=True).prefetch_related("branches"))
    if not orgs:
        return JobResult.skip("No orgs with notifications enabled")

    total_emitted = 0
    orgs_checked = 0

    for org in orgs:
        local = local_now(now, org.timezone)
        if local.hour != org.fee_overdue_check_hour:
            continue

        orgs_checked += 1
        today = local.date()
        day_start, day_end = day_bounds(now, org.timezone)
        logger.debug("Checking overdue installments org=%s", org.id)

        for branch in org.branches.all():
            overdue = list(_overdue_installments(org.id, branch.id, today))
            if not overdue:
                continue

            already = ledger.notified_entity_ids(org.id, branch.id, day_start, day_end)
            specs = [
                EventSpec(Event.Type.FEE_OVERDUE, org.id, branch.id, _payload(inst, today))
                for inst in overdue
                if str(inst.id) not in already
            ]
            if not specs:
                continue

            count = emit_events(specs)
            total_emitted += count
            logger.debug("Emitted fee overdue events org=%s branch=%s count=%s", org.id, branch.id, count)

    if total_emitted == 0:
        return JobResult.skip("No new overdue events to emit", orgsChecked=orgs_checked)

    logger.info("Fee overdue job completed events=%s", total_emitted)
    return JobResult(
        events_emitted=total_emitted,
        metadata={"overdueFeesChecked": overdue_count, "orgsChecked": orgs_checked},
    )
