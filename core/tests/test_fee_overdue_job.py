import json
from datetime import timedelta

import pytest

from core.common.timeutils import day_bounds
from core.events.models import Event
from core.fees.models import FeeInstallment
from core.jobs.dedup import OverdueEventLedger
from core.jobs.fee_overdue import run_fee_overdue_job
from core.school.models import Student


def _installment(student, due_date, **kwargs):
    kwargs.setdefault("amount", 10000)
    kwargs.setdefault("status", FeeInstallment.Status.DUE)
    return FeeInstallment.objects.create(student=student, due_date=due_date, **kwargs)


def _overdue_events():
    return Event.objects.filter(type=Event.Type.FEE_OVERDUE)


@pytest.mark.django_db
def test_skips_without_overdue_installments(org, branch, student, local_at, local_today):
    _installment(student, local_today + timedelta(days=5))
    result = run_fee_overdue_job(now=local_at(9))
    assert result.skipped
    assert result.reason == "No overdue fees found"


@pytest.mark.django_db
def test_emits_once_per_installment_per_day(org, branch, student, local_at, local_today):
    inst = _installment(student, local_today - timedelta(days=1), installment_number=2, paid_amount=2500)

    first = run_fee_overdue_job(now=local_at(9, 0))

    assert not first.skipped
    assert first.events_emitted == 1
    [event] = _overdue_events()
    payload = json.loads(event.payload)
    assert payload["entityType"] == "fee_installment"
    assert payload["entityId"] == str(inst.id)
    assert payload["data"]["daysOverdue"] == 1
    assert payload["data"]["pendingAmount"] == 7500
    assert payload["data"]["studentName"] == "Asha Rao"
    assert payload["data"]["installmentNumber"] == 2
    assert payload["data"]["dueDate"] == inst.due_date.isoformat()
    assert event.org_id == org.id and event.branch_id == branch.id

    second = run_fee_overdue_job(now=local_at(9, 0))

    assert second.skipped
    assert second.reason == "No new overdue events to emit"
    assert _overdue_events().count() == 1


@pytest.mark.django_db
def test_only_runs_at_org_check_hour(org, branch, student, local_at, local_today):
    _installment(student, local_today - timedelta(days=3))

    result = run_fee_overdue_job(now=local_at(10, 0))

    assert result.skipped
    assert result.metadata["orgsChecked"] == 0
    assert _overdue_events().count() == 0

    org.fee_overdue_check_time = "10:00"
    org.save()
    assert run_fee_overdue_job(now=local_at(10, 0)).events_emitted == 1


@pytest.mark.django_db
def test_ignores_paid_inactive_and_not_yet_due(org, branch, student, local_at, local_today):
    yesterday = local_today - timedelta(days=1)
    _installment(student, yesterday, status=FeeInstallment.Status.PAID)
    _installment(student, local_today)
    gone = Student.objects.create(org=org, branch=branch, first_name="Left", status=Student.Status.INACTIVE)
    _installment(gone, yesterday)
    due = _installment(student, yesterday, status=FeeInstallment.Status.PARTIAL, paid_amount=100)

    result = run_fee_overdue_job(now=local_at(9, 0))

    assert result.events_emitted == 1
    assert json.loads(_overdue_events().get().payload)["entityId"] == str(due.id)


@pytest.mark.django_db
def test_disabled_org_emits_nothing(org, branch, student, local_at, local_today):
    org.notifications_enabled = False
    org.save()
    _installment(student, local_today - timedelta(days=1))

    result = run_fee_overdue_job(now=local_at(9, 0))

    assert result.reason == "No orgs with notifications enabled"


@pytest.mark.django_db
def test_ledger_ignores_malformed_and_other_branches(org, branch, other_branch, local_at):
    Event.objects.create(org=org, branch=branch, type="fee_overdue", payload="{nope")
    Event.objects.create(org=org, branch=branch, type="fee_overdue", payload=json.dumps({"entityId": "i-1"}))
    Event.objects.create(org=org, branch=other_branch, type="fee_overdue", payload=json.dumps({"entityId": "i-2"}))
    Event.objects.create(org=org, branch=branch, type="fee_reminder", payload=json.dumps({"entityId": "i-3"}))

    start, end = day_bounds(None, org.timezone)
    assert OverdueEventLedger().notified_entity_ids(org.id, branch.id, start, end) == {"i-1"}
