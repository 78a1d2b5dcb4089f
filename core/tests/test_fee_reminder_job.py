import json
from datetime import timedelta

import pytest

from core.events.emitter import get_pending_events
from core.events.models import Event
from core.fees.models import FeeInstallment, FeeReminder
from core.jobs.fee_reminder import run_fee_reminder_job, update_installment_statuses


def _installment(student, due_date, status=FeeInstallment.Status.UPCOMING, **kwargs):
    kwargs.setdefault("amount", 6000)
    return FeeInstallment.objects.create(student=student, due_date=due_date, status=status, **kwargs)


@pytest.mark.django_db
def test_status_transitions(student, local_today):
    S = FeeInstallment.Status
    today_upcoming = _installment(student, local_today)
    past_upcoming = _installment(student, local_today - timedelta(days=2))
    past_partial = _installment(student, local_today - timedelta(days=1), status=S.PARTIAL, paid_amount=100)
    future = _installment(student, local_today + timedelta(days=1))
    paid = _installment(student, local_today - timedelta(days=9), status=S.PAID)

    counts = update_installment_statuses(local_today)

    for inst in (today_upcoming, past_upcoming, past_partial, future, paid):
        inst.refresh_from_db()
    assert today_upcoming.status == S.DUE
    assert past_upcoming.status == S.OVERDUE
    assert past_partial.status == S.OVERDUE
    assert future.status == S.UPCOMING
    assert paid.status == S.PAID
    assert counts == {"due": 2, "overdue": 2}


@pytest.mark.django_db
def test_reminder_emitted_once_per_day(org, branch, student, parent, local_at, local_today):
    inst = _installment(student, local_today + timedelta(days=org.fee_reminder_days), installment_number=3)
    _installment(student, local_today + timedelta(days=10))

    first = run_fee_reminder_job(now=local_at(8, 0))

    assert first.events_emitted == 1
    [event] = Event.objects.filter(type=Event.Type.FEE_REMINDER)
    payload = json.loads(event.payload)
    assert payload["entityId"] == str(inst.id)
    assert payload["data"]["parentPhone"] == "9876543210"
    assert payload["data"]["daysUntilDue"] == 3
    assert payload["data"]["pendingAmount"] == 6000

    inst.refresh_from_db()
    assert inst.reminder_count == 1
    assert inst.reminder_sent_at is not None
    reminder = FeeReminder.objects.get(installment=inst)
    assert reminder.parent_id == parent.id
    assert reminder.status == FeeReminder.STATUS_PENDING

    second = run_fee_reminder_job(now=local_at(8, 30))

    assert second.skipped
    assert second.reason == "No new reminder events to emit"
    assert Event.objects.filter(type=Event.Type.FEE_REMINDER).count() == 1
    inst.refresh_from_db()
    assert inst.reminder_count == 1


@pytest.mark.django_db
def test_reminder_skipped_without_parent_contact(org, branch, student, local_at, local_today):
    inst = _installment(student, local_today + timedelta(days=3))

    result = run_fee_reminder_job(now=local_at(8, 0))

    assert result.skipped
    assert FeeReminder.objects.count() == 0
    inst.refresh_from_db()
    assert inst.reminder_count == 0


@pytest.mark.django_db
def test_reminder_respects_org_reminder_days(org, branch, student, parent, local_at, local_today):
    org.fee_reminder_days = 7
    org.save()
    _installment(student, local_today + timedelta(days=3))
    week_out = _installment(student, local_today + timedelta(days=7))

    result = run_fee_reminder_job(now=local_at(8, 0))

    assert result.events_emitted == 1
    assert json.loads(Event.objects.get().payload)["entityId"] == str(week_out.id)


@pytest.mark.django_db
def test_reminder_event_is_delivered_to_payload_phone(org, branch, student, parent, templates, dispatcher, provider, local_at, local_today):
    _installment(student, local_today + timedelta(days=3))
    run_fee_reminder_job(now=local_at(8, 0))

    # the reminder target is fixed at emission time
    parent.phone = "9000000000"
    parent.save()

    [event] = get_pending_events(org.id, branch.id)
    assert dispatcher.process_event(event) == Event.Status.PROCESSED
    assert provider.sent[0]["to"] == "+919876543210"
    assert provider.sent[0]["params"]["amount"] == "6000"


@pytest.mark.django_db
def test_disabled_org_gets_no_reminders(org, branch, student, parent, local_at, local_today):
    org.notifications_enabled = False
    org.save()
    _installment(student, local_today + timedelta(days=3))

    result = run_fee_reminder_job(now=local_at(8, 0))
    assert result.reason == "No orgs with notifications enabled"
