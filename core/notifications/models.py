import uuid
from django.db import models
from django.utils import timezone


class MessageTemplate(models.Model):
    """
    Per-organization WhatsApp template. Resolved by (org, type, is_active).
    `type` is one of the values in TEMPLATE_TYPE_BY_EVENT.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    org = models.ForeignKey("tenants.Organization", on_delete=models.CASCADE, related_name="message_templates")

    type = models.CharField(max_length=32, db_index=True)
    name = models.CharField(max_length=100, blank=True, default="")
    content = models.TextField()
    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "message_templates"
        indexes = [models.Index(fields=["org", "type", "is_active"], name="mtpl_org_type_active_idx")]


class NotificationLog(models.Model):
    """
    One row per dispatch attempt for a dedup key
    (org, branch, recipient_phone, template, entity_id) per day.
    A later attempt for the same key updates the row in place.
    """
    STATUS_PENDING = "pending"
    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    org = models.ForeignKey("tenants.Organization", on_delete=models.CASCADE, related_name="notification_logs")
    branch = models.ForeignKey("tenants.Branch", on_delete=models.CASCADE, related_name="notification_logs")

    recipient_phone = models.CharField(max_length=20)  # E.164
    template = models.ForeignKey(MessageTemplate, on_delete=models.PROTECT, related_name="logs")

    status = models.CharField(
        max_length=20,
        default=STATUS_PENDING,
        choices=[
            (STATUS_PENDING, "Pending"),
            (STATUS_SENT, "Sent"),
            (STATUS_FAILED, "Failed"),
        ],
        db_index=True,
    )
    provider_message_id = models.CharField(max_length=200, null=True, blank=True)
    error_message = models.TextField(null=True, blank=True)

    # copied from the originating event; dedup and retry key
    entity_type = models.CharField(max_length=50, null=True, blank=True)
    entity_id = models.CharField(max_length=64, null=True, blank=True)
    # payload `data` of the event (absence date etc.), reused on retry
    event_data = models.JSONField(null=True, blank=True)

    sent_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "notification_logs"
        indexes = [
            models.Index(
                fields=["org", "branch", "recipient_phone", "template", "entity_id", "sent_at"],
                name="nlog_dedup_idx",
            ),
            models.Index(fields=["org", "branch", "status", "sent_at"], name="nlog_tenant_status_idx"),
        ]
