import uuid
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone as dj_timezone


class Organization(models.Model):
    """
    Tenant root. Notification scheduling settings live here; every
    pipeline read/write is additionally scoped by Branch.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    timezone = models.CharField(max_length=64, default="Asia/Kolkata")

    notifications_enabled = models.BooleanField(default=True, db_index=True)
    # minutes after the first period ends before attendance notifications go out
    attendance_buffer_minutes = models.PositiveSmallIntegerField(
        default=10,
        validators=[MinValueValidator(0), MaxValueValidator(60)],
    )
    fee_overdue_check_time = models.CharField(max_length=5, default="09:00")  # HH:MM, org local
    fee_reminder_days = models.PositiveSmallIntegerField(default=3)
    jobs_dashboard_enabled = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        db_table = "organizations"

    def __str__(self) -> str:
        return self.name

    @property
    def fee_overdue_check_hour(self) -> int:
        try:
            return int(str(self.fee_overdue_check_time).split(":")[0])
        except (TypeError, ValueError):
            return 9


class Branch(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org = models.ForeignKey(Organization, on_delete=models.CASCADE, related_name="branches")
    name = models.CharField(max_length=255)
    created_at = models.DateTimeField(default=dj_timezone.now)

    class Meta:
        db_table = "branches"
        indexes = [models.Index(fields=["org"], name="branch_org_idx")]

    def __str__(self) -> str:
        return self.name
