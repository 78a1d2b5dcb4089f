import uuid
from django.db import models
from django.utils import timezone


class JobRun(models.Model):
    class Status(models.TextChoices):
        RUNNING = "running", "Running"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"
        SKIPPED = "skipped", "Skipped"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    job_name = models.CharField(max_length=64)
    org = models.ForeignKey("tenants.Organization", on_delete=models.SET_NULL, null=True, blank=True, related_name="job_runs")
    branch = models.ForeignKey("tenants.Branch", on_delete=models.SET_NULL, null=True, blank=True, related_name="job_runs")

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.RUNNING, db_index=True)
    started_at = models.DateTimeField(default=timezone.now)
    completed_at = models.DateTimeField(null=True, blank=True)
    duration_ms = models.IntegerField(null=True, blank=True)

    events_emitted = models.IntegerField(default=0)
    records_processed = models.IntegerField(default=0)
    error_message = models.TextField(null=True, blank=True)
    metadata = models.JSONField(null=True, blank=True)

    class Meta:
        db_table = "job_runs"
        indexes = [
            models.Index(fields=["job_name", "started_at"], name="jobrun_name_started_idx"),
        ]
