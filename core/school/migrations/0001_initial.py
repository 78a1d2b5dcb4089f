import uuid

import django.db.models.deletion
from django.db import migrations, models
from django.utils import timezone

import core.school.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Student",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(blank=True, default="", max_length=100)),
                ("status", models.CharField(choices=[("active", "Active"), ("inactive", "Inactive")], db_index=True, default="active", max_length=16)),
                ("created_at", models.DateTimeField(db_index=True, default=timezone.now)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="students", to="tenants.organization")),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="students", to="tenants.branch")),
            ],
            options={"db_table": "students"},
        ),
        migrations.CreateModel(
            name="Parent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("first_name", models.CharField(max_length=100)),
                ("last_name", models.CharField(blank=True, default="", max_length=100)),
                ("phone", models.CharField(max_length=32)),
                ("created_at", models.DateTimeField(default=timezone.now)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="parents", to="tenants.organization")),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="parents", to="tenants.branch")),
            ],
            options={"db_table": "parents"},
        ),
        migrations.CreateModel(
            name="StudentParent",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("relation", models.CharField(default="guardian", max_length=32)),
                ("is_primary_contact", models.BooleanField(default=False)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="parent_links", to="school.student")),
                ("parent", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="student_links", to="school.parent")),
            ],
            options={"db_table": "student_parents"},
        ),
        migrations.CreateModel(
            name="PeriodTemplate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=100)),
                ("is_default", models.BooleanField(db_index=True, default=False)),
                ("active_days", models.JSONField(blank=True, default=core.school.models.default_active_days)),
                ("created_at", models.DateTimeField(default=timezone.now)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="period_templates", to="tenants.organization")),
            ],
            options={"db_table": "period_templates"},
        ),
        migrations.CreateModel(
            name="PeriodTemplateSlot",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("period_number", models.PositiveSmallIntegerField()),
                ("start_time", models.CharField(max_length=5)),
                ("end_time", models.CharField(max_length=5)),
                ("is_break", models.BooleanField(default=False)),
                ("break_name", models.CharField(blank=True, default="", max_length=50)),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="slots", to="school.periodtemplate")),
            ],
            options={"db_table": "period_template_slots", "ordering": ["period_number"]},
        ),
        migrations.AddIndex(
            model_name="student",
            index=models.Index(fields=["org", "branch", "status"], name="stu_tenant_status_idx"),
        ),
        migrations.AddIndex(
            model_name="parent",
            index=models.Index(fields=["org", "branch", "phone"], name="par_tenant_phone_idx"),
        ),
        migrations.AddConstraint(
            model_name="studentparent",
            constraint=models.UniqueConstraint(fields=("student", "parent"), name="uniq_student_parent"),
        ),
    ]
