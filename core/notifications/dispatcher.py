"""
Notification dispatcher: turns one pending event into zero or one
WhatsApp send plus a NotificationLog row, then settles the event.

Outcomes:
- no template mapping / no active template / no recipient -> processed
- malformed phone -> failed ("Invalid phone number")
- already sent today for the same dedup key -> processed, nothing sent
- provider failure -> failed with the provider's error
- anything unexpected -> failed with the exception message

process_event never raises, so one bad event cannot stop a batch.
"""
from __future__ import annotations

import logging
from datetime import date, timedelta

from django.core.exceptions import ValidationError
from django.db.models import Count, Q
from django.utils import timezone

from core.common.timeutils import day_bounds, local_today
from core.events.emitter import StoredEvent, mark_failed, mark_failed_safely, mark_processed
from core.events.models import Event
from core.fees.lookups import get_fee_payment, get_installment, get_student_fee
from core.notifications.models import MessageTemplate, NotificationLog
from core.notifications.phone import is_valid_indian_phone, mask_phone, normalize_phone
from core.notifications.providers import SendResult, WhatsAppProvider, build_provider
from core.school.recipients import get_primary_parent_phone, get_student
from core.tenants.models import Organization

logger = logging.getLogger(__name__)

TEMPLATE_TYPE_BY_EVENT = {
    Event.Type.STUDENT_ABSENT: "absent",
    Event.Type.FEE_CREATED: "fee_due",
    Event.Type.FEE_PAID: "fee_paid",
    Event.Type.FEE_OVERDUE: "fee_overdue",
    Event.Type.FEE_REMINDER: "fee_reminder",
}

ENTITY_STUDENT = "student"
ENTITY_STUDENT_FEE = "student_fee"
ENTITY_FEE_PAYMENT = "fee_payment"
ENTITY_FEE_INSTALLMENT = "fee_installment"

INVALID_PHONE = "Invalid phone number"
FALLBACK_STUDENT_NAME = "Student"


def _student_name(student) -> str:
    return student.full_name if student else FALLBACK_STUDENT_NAME


def _iso(d) -> str:
    return d.isoformat() if d else ""


def build_message_params(
    template_type: str,
    entity_type: str | None,
    entity_id: str | None,
    org_id,
    branch_id,
    *,
    today: date,
    data: dict | None = None,
) -> dict[str, str]:
    """
    Template parameters from the current state of the referenced records.
    `data` only contributes facts that do not change (the absence date,
    the student id a fee event refers to).
    """
    data = data or {}

    if template_type == "absent":
        student_id = entity_id if entity_type in (None, ENTITY_STUDENT) else data.get("studentId")
        student = get_student(student_id, org_id, branch_id)
        return {
            "studentName": _student_name(student),
            "date": str(data.get("date") or today.isoformat()),
        }

    if template_type == "fee_due":
        fee = get_student_fee(entity_id, org_id, branch_id) if entity_type == ENTITY_STUDENT_FEE else None
        student = fee.student if fee else get_student(data.get("studentId"), org_id, branch_id)
        return {
            "studentName": _student_name(student),
            "amount": str(fee.total_amount if fee else 0),
            "dueDate": _iso(fee.due_date) if fee else "",
        }

    if template_type == "fee_paid":
        payment = get_fee_payment(entity_id, org_id, branch_id) if entity_type == ENTITY_FEE_PAYMENT else None
        student = payment.student_fee.student if payment else get_student(data.get("studentId"), org_id, branch_id)
        return {
            "studentName": _student_name(student),
            "amount": str(payment.amount if payment else 0),
            "paymentMode": payment.payment_mode if payment else "cash",
        }

    if template_type in ("fee_overdue", "fee_reminder"):
        inst = get_installment(entity_id, org_id, branch_id) if entity_type == ENTITY_FEE_INSTALLMENT else None
        student = inst.student if inst else get_student(data.get("studentId"), org_id, branch_id)
        params = {
            "studentName": _student_name(student),
            "amount": str(inst.pending_amount if inst else 0),
            "dueDate": _iso(inst.due_date) if inst else "",
        }
        if template_type == "fee_overdue":
            params["daysOverdue"] = str(max((today - inst.due_date).days, 0) if inst else 0)
        return params

    return {}


class NotificationDispatcher:
    def __init__(self, provider: WhatsAppProvider | None = None):
        self.provider = provider or build_provider()

    # -- batch -----------------------------------------------------------

    def process_events(self, events: list[StoredEvent]) -> dict[str, int]:
        """Sequential, in the given (oldest-first) order."""
        processed = 0
        failed = 0
        for event in events:
            status = self.process_event(event)
            if status == Event.Status.FAILED:
                failed += 1
            else:
                processed += 1
        return {"processed": processed, "failed": failed}

    # -- single event ----------------------------------------------------

    def process_event(self, event: StoredEvent) -> str:
        """Settle one event. Returns the status it was moved to."""
        template_type = TEMPLATE_TYPE_BY_EVENT.get(event.type)
        try:
            if not template_type:
                mark_processed(event.id, event.org_id, event.branch_id)
                return Event.Status.PROCESSED
            return self._dispatch(event, template_type)
        except Exception as e:
            logger.exception("Error processing event %s", event.id)
            mark_failed_safely(event.id, event.org_id, event.branch_id, str(e) or type(e).__name__)
            return Event.Status.FAILED

    def _dispatch(self, event: StoredEvent, template_type: str) -> str:
        template = (
            MessageTemplate.objects.filter(org_id=event.org_id, type=template_type, is_active=True)
            .order_by("-created_at")
            .first()
        )
        if not template:
            logger.warning("No active template type=%s org=%s", template_type, event.org_id)
            return self._processed(event)

        raw_phone = self._resolve_recipient(event)
        if not raw_phone:
            logger.warning("No recipient phone for event %s", event.id)
            return self._processed(event)

        if not is_valid_indian_phone(raw_phone):
            logger.warning("Invalid phone for event %s phone=%s", event.id, mask_phone(raw_phone))
            mark_failed(event.id, event.org_id, event.branch_id, INVALID_PHONE)
            return Event.Status.FAILED

        to = normalize_phone(raw_phone)
        tz_name = self._org_timezone(event.org_id)
        day_start, day_end = day_bounds(timezone.now(), tz_name)
        entity_id = event.payload.entity_id

        if self._already_sent(event, to, template, entity_id, day_start, day_end):
            logger.info("Duplicate notification prevented event=%s to=%s", event.id, mask_phone(to))
            return self._processed(event)

        params = build_message_params(
            template_type,
            event.payload.entity_type,
            entity_id,
            event.org_id,
            event.branch_id,
            today=local_today(None, tz_name),
            data=event.payload.data,
        )

        result = self._send(to, template, params)
        self._record(event, to, template, result, day_start, day_end)

        if result.success:
            logger.info("Notification sent for event %s", event.id)
            return self._processed(event)

        logger.error("Notification failed for event %s: %s", event.id, result.error)
        mark_failed(event.id, event.org_id, event.branch_id, result.error or "Unknown error")
        return Event.Status.FAILED

    def _processed(self, event: StoredEvent) -> str:
        mark_processed(event.id, event.org_id, event.branch_id)
        return Event.Status.PROCESSED

    # -- helpers ---------------------------------------------------------

    @staticmethod
    def _org_timezone(org_id) -> str | None:
        return Organization.objects.filter(id=org_id).values_list("timezone", flat=True).first()

    @staticmethod
    def _template_name(template: MessageTemplate) -> str:
        return template.name or template.type

    def _send(self, to: str, template: MessageTemplate, params: dict[str, str]) -> SendResult:
        return self.provider.send(to, self._template_name(template), params)

    @staticmethod
    def _resolve_recipient(event: StoredEvent) -> str | None:
        """Tenant-scoped; each event type names its recipient differently."""
        payload = event.payload
        data = payload.data or {}

        if event.type == Event.Type.STUDENT_ABSENT:
            return get_primary_parent_phone(payload.entity_id, event.org_id, event.branch_id)

        if event.type == Event.Type.FEE_CREATED:
            student_id = data.get("studentId")
            if not student_id:
                fee = get_student_fee(payload.entity_id, event.org_id, event.branch_id)
                student_id = fee.student_id if fee else None
            return get_primary_parent_phone(student_id, event.org_id, event.branch_id)

        if event.type == Event.Type.FEE_PAID:
            student_id = data.get("studentId")
            if not student_id:
                payment = get_fee_payment(payload.entity_id, event.org_id, event.branch_id)
                student_id = payment.student_fee.student_id if payment else None
            return get_primary_parent_phone(student_id, event.org_id, event.branch_id)

        if event.type == Event.Type.FEE_OVERDUE:
            inst = get_installment(payload.entity_id, event.org_id, event.branch_id)
            return get_primary_parent_phone(inst.student_id if inst else None, event.org_id, event.branch_id)

        if event.type == Event.Type.FEE_REMINDER:
            # fixed at emission time by the reminder job
            phone = data.get("parentPhone")
            return str(phone).strip() if phone else None

        return None

    @staticmethod
    def _already_sent(event, to, template, entity_id, day_start, day_end) -> bool:
        return NotificationLog.objects.filter(
            org_id=event.org_id,
            branch_id=event.branch_id,
            recipient_phone=to,
            template=template,
            entity_id=entity_id,
            status=NotificationLog.STATUS_SENT,
            sent_at__gte=day_start,
            sent_at__lt=day_end,
        ).exists()

    @staticmethod
    def _record(event, to, template, result: SendResult, day_start, day_end) -> NotificationLog:
        """Upsert on the dedup key for today: a prior unsent attempt is updated."""
        status = NotificationLog.STATUS_SENT if result.success else NotificationLog.STATUS_FAILED
        log = (
            NotificationLog.objects.filter(
                org_id=event.org_id,
                branch_id=event.branch_id,
                recipient_phone=to,
                template=template,
                entity_id=event.payload.entity_id,
                sent_at__gte=day_start,
                sent_at__lt=day_end,
            )
            .exclude(status=NotificationLog.STATUS_SENT)
            .order_by("-sent_at")
            .first()
        )
        if log is None:
            return NotificationLog.objects.create(
                org_id=event.org_id,
                branch_id=event.branch_id,
                recipient_phone=to,
                template=template,
                status=status,
                provider_message_id=result.message_id,
                error_message=result.error,
                entity_type=event.payload.entity_type,
                entity_id=event.payload.entity_id,
                event_data=event.payload.data or None,
                sent_at=timezone.now(),
            )

        log.status = status
        log.provider_message_id = result.message_id
        log.error_message = result.error
        log.entity_type = event.payload.entity_type
        log.event_data = event.payload.data or None
        log.sent_at = timezone.now()
        log.save(update_fields=["status", "provider_message_id", "error_message", "entity_type", "event_data", "sent_at"])
        return log

    # -- manual retry ----------------------------------------------------

    def retry_notification(self, notification_id, org_id, branch_id) -> bool:
        """
        Resend a failed log row. Parameters are rebuilt from the stored
        entity reference, so the message reflects current records; the
        event facts kept on the row (the absence date) are reused as-is.
        """
        try:
            log = (
                NotificationLog.objects.select_related("template")
                .filter(id=notification_id, org_id=org_id, branch_id=branch_id, status=NotificationLog.STATUS_FAILED)
                .first()
            )
        except (ValidationError, ValueError, TypeError):
            return False
        if not log or not log.template:
            return False

        tz_name = self._org_timezone(org_id)
        params = build_message_params(
            log.template.type,
            log.entity_type,
            log.entity_id,
            org_id,
            branch_id,
            today=local_today(None, tz_name),
            data=log.event_data,
        )

        try:
            result = self._send(log.recipient_phone, log.template, params)
        except Exception as e:
            logger.exception("Provider raised while retrying notification %s", log.id)
            result = SendResult.fail(str(e) or type(e).__name__)

        log.status = NotificationLog.STATUS_SENT if result.success else NotificationLog.STATUS_FAILED
        log.provider_message_id = result.message_id
        log.error_message = result.error
        log.sent_at = timezone.now()
        log.save(update_fields=["status", "provider_message_id", "error_message", "sent_at"])

        logger.info("Retried notification %s success=%s", log.id, result.success)
        return result.success


def filter_notification_logs(org_id, branch_id, *, status: str | None = None, template_type: str | None = None):
    """Tenant-scoped queryset, newest first."""
    qs = NotificationLog.objects.select_related("template").filter(org_id=org_id, branch_id=branch_id)
    if status:
        qs = qs.filter(status=status)
    if template_type:
        qs = qs.filter(template__type=template_type)
    return qs.order_by("-sent_at")


def get_notification_logs(org_id, branch_id, limit: int = 50):
    return filter_notification_logs(org_id, branch_id)[:limit]


def get_failed_notifications(org_id, branch_id, limit: int = 50):
    return filter_notification_logs(org_id, branch_id, status=NotificationLog.STATUS_FAILED)[:limit]


def get_notification_log(notification_id, org_id, branch_id) -> NotificationLog | None:
    try:
        return filter_notification_logs(org_id, branch_id).filter(id=notification_id).first()
    except (ValidationError, ValueError, TypeError):
        return None


def get_notification_by_provider_id(provider_message_id: str) -> NotificationLog | None:
    """Delivery receipts only carry the provider's message id."""
    if not provider_message_id:
        return None
    return (
        NotificationLog.objects.filter(provider_message_id=provider_message_id)
        .order_by("-sent_at")
        .first()
    )


def _status_counts(qs) -> dict[str, int]:
    agg = qs.aggregate(
        total=Count("id"),
        sent=Count("id", filter=Q(status=NotificationLog.STATUS_SENT)),
        failed=Count("id", filter=Q(status=NotificationLog.STATUS_FAILED)),
        pending=Count("id", filter=Q(status=NotificationLog.STATUS_PENDING)),
    )
    return {k: v or 0 for k, v in agg.items()}


def get_notification_stats(org_id, branch_id, now=None) -> dict:
    """
    Counts by status for today (org-local), the last 7 and 30 days and
    all time, plus all-time counts per template type.
    """
    tz_name = Organization.objects.filter(id=org_id).values_list("timezone", flat=True).first()
    today_start, today_end = day_bounds(now, tz_name)
    base = NotificationLog.objects.filter(org_id=org_id, branch_id=branch_id)

    by_type = {
        row["template__type"]: row["count"]
        for row in base.values("template__type").annotate(count=Count("id")).order_by("template__type")
    }

    return {
        "today": _status_counts(base.filter(sent_at__gte=today_start, sent_at__lt=today_end)),
        "last7Days": _status_counts(base.filter(sent_at__gte=today_start - timedelta(days=7))),
        "last30Days": _status_counts(base.filter(sent_at__gte=today_start - timedelta(days=30))),
        "allTime": _status_counts(base),
        "byType": by_type,
    }
