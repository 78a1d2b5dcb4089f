from django.db import models
from django.utils import timezone


class Event(models.Model):
    """
    Append-only, tenant-scoped log of domain occurrences.
    Rows are written by emit_event/emit_events and only ever change
    status (pending -> processed | failed). Payload is serialized JSON text
    so a corrupt row can be read back without failing the query.
    """

    class Type(models.TextChoices):
        ATTENDANCE_MARKED = "attendance_marked", "Attendance marked"
        STUDENT_ABSENT = "student_absent", "Student absent"
        FEE_CREATED = "fee_created", "Fee created"
        FEE_PAID = "fee_paid", "Fee paid"
        FEE_OVERDUE = "fee_overdue", "Fee overdue"
        FEE_REMINDER = "fee_reminder", "Fee reminder"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PROCESSED = "processed", "Processed"
        FAILED = "failed", "Failed"

    id = models.BigAutoField(primary_key=True)

    org = models.ForeignKey("tenants.Organization", on_delete=models.CASCADE, related_name="events")
    branch = models.ForeignKey("tenants.Branch", on_delete=models.CASCADE, related_name="events")

    type = models.CharField(max_length=32, choices=Type.choices, db_index=True)
    payload = models.TextField()
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "events"
        indexes = [
            models.Index(fields=["org", "branch", "status", "created_at"], name="evt_tenant_pending_idx"),
            models.Index(fields=["org", "branch", "type", "created_at"], name="evt_tenant_type_idx"),
        ]
