"""
Fee reminder job.

Runs daily. Moves installment statuses forward with the calendar, then
emits one fee_reminder event per unpaid installment falling due in
`fee_reminder_days` days, at most once per installment per day.
"""
from __future__ import annotations

import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.common.timeutils import day_bounds, local_now
from core.events.emitter import EventPayload, emit_event
from core.events.models import Event
from core.fees.models import FeeInstallment
from core.jobs.dedup import FeeReminderLedger
from core.jobs.tracker import JobResult
from core.school.models import Student
from core.school.recipients import get_primary_parent
from core.tenants.models import Organization

logger = logging.getLogger(__name__)

ENTITY_TYPE = "fee_installment"
REMINDABLE_STATUSES = (FeeInstallment.Status.UPCOMING, FeeInstallment.Status.DUE, FeeInstallment.Status.PARTIAL)


def update_installment_statuses(today) -> dict[str, int]:
    """
    upcoming -> due once the due date arrives;
    due/partial -> overdue once it has passed.
    """
    now = timezone.now()
    Status = FeeInstallment.Status

    became_due = FeeInstallment.objects.filter(
        status=Status.UPCOMING, due_date__lte=today,
    ).update(status=Status.DUE, updated_at=now)

    became_overdue = FeeInstallment.objects.filter(
        status__in=(Status.DUE, Status.PARTIAL), due_date__lt=today,
    ).update(status=Status.OVERDUE, updated_at=now)

    if became_due or became_overdue:
        logger.info("Installment statuses updated due=%s overdue=%s", became_due, became_overdue)
    return {"due": became_due, "overdue": became_overdue}


def _payload(inst: FeeInstallment, parent, days_until_due: int) -> EventPayload:
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
            "daysUntilDue": days_until_due,
            "parentId": str(parent.id),
            "parentPhone": parent.phone,
        },
    )


def run_fee_reminder_job(now=None, ledger: FeeReminderLedger | None = None) -> JobResult:
    now = now or timezone.now()
    ledger = ledger or FeeReminderLedger()

    statuses = update_installment_statuses(timezone.localdate(now))

    orgs = list(Organization.objects.filter(notifications_enabled=True).prefetch_related("branches"))
    if not orgs:
        logger.debug("No organizations with notifications enabled")
        return JobResult.skip("No orgs with notifications enabled", statusUpdates=statuses)

    total_emitted = 0
    checked = 0

    for org in orgs:
        today = local_now(now, org.timezone).date()
        target = today + timedelta(days=org.fee_reminder_days)
        day_start, day_end = day_bounds(now, org.timezone)

        for branch in org.branches.all():
            installments = list(
                FeeInstallment.objects.select_related("student")
                .filter(
                    student__org_id=org.id,
                    student__branch_id=branch.id,
                    student__status=Student.Status.ACTIVE,
                    due_date=target,
                    status__in=REMINDABLE_STATUSES,
                )
                .order_by("installment_number")
            )
            if not installments:
                continue
            checked += len(installments)

            already = ledger.reminded_installment_ids([i.id for i in installments], day_start, day_end)

            for inst in installments:
                if str(inst.id) in already:
                    continue

                parent = get_primary_parent(inst.student_id, org.id, branch.id)
                if not parent or not (parent.phone or "").strip():
                    logger.debug("No parent contact for installment=%s", inst.id)
                    continue

                event_id = emit_event(Event.Type.FEE_REMINDER, org.id, branch.id, _payload(inst, parent, org.fee_reminder_days))
                if event_id is None:
                    continue

                with transaction.atomic():
                    FeeInstallment.objects.filter(id=inst.id).update(
                        reminder_count=F("reminder_count") + 1,
                        reminder_sent_at=now,
                        updated_at=now,
                    )
                    ledger.record(inst, parent, sent_at=now)
                total_emitted += 1

    if total_emitted == 0:
        return JobResult.skip("No new reminder events to emit", installmentsChecked=checked, statusUpdates=statuses)

    logger.info("Fee reminder job completed events=%s", total_emitted)
    return JobResult(
        events_emitted=total_emitted,
        records_processed=checked,
        metadata={"installmentsChecked": checked, "statusUpdates": statuses},
    )
