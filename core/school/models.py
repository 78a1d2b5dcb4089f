import uuid
from django.db import models
from django.utils import timezone


DEFAULT_ACTIVE_DAYS = [1, 2, 3, 4, 5, 6]  # Mon..Sat, ISO numbering


def default_active_days():
    return list(DEFAULT_ACTIVE_DAYS)


class Student(models.Model):
    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    org = models.ForeignKey("tenants.Organization", on_delete=models.CASCADE, related_name="students")
    branch = models.ForeignKey("tenants.Branch", on_delete=models.CASCADE, related_name="students")

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.ACTIVE, db_index=True)

    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "students"
        indexes = [models.Index(fields=["org", "branch", "status"], name="stu_tenant_status_idx")]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Parent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    org = models.ForeignKey("tenants.Organization", on_delete=models.CASCADE, related_name="parents")
    branch = models.ForeignKey("tenants.Branch", on_delete=models.CASCADE, related_name="parents")

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100, blank=True, default="")
    phone = models.CharField(max_length=32)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "parents"
        indexes = [models.Index(fields=["org", "branch", "phone"], name="par_tenant_phone_idx")]


class StudentParent(models.Model):
    id = models.BigAutoField(primary_key=True)
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name="parent_links")
    parent = models.ForeignKey(Parent, on_delete=models.CASCADE, related_name="student_links")
    relation = models.CharField(max_length=32, default="guardian")
    is_primary_contact = models.BooleanField(default=False)

    class Meta:
        db_table = "student_parents"
        constraints = [
            models.UniqueConstraint(fields=["student", "parent"], name="uniq_student_parent"),
        ]


class PeriodTemplate(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    org = models.ForeignKey("tenants.Organization", on_delete=models.CASCADE, related_name="period_templates")
    name = models.CharField(max_length=100)
    is_default = models.BooleanField(default=False, db_index=True)
    active_days = models.JSONField(default=default_active_days, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "period_templates"


class PeriodTemplateSlot(models.Model):
    id = models.BigAutoField(primary_key=True)
    template = models.ForeignKey(PeriodTemplate, on_delete=models.CASCADE, related_name="slots")
    period_number = models.PositiveSmallIntegerField()
    start_time = models.CharField(max_length=5)  # HH:MM
    end_time = models.CharField(max_length=5)
    is_break = models.BooleanField(default=False)
    break_name = models.CharField(max_length=50, blank=True, default="")

    class Meta:
        db_table = "period_template_slots"
        ordering = ["period_number"]
