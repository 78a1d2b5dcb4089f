import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models
from django.utils import timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Organization",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("timezone", models.CharField(default="Asia/Kolkata", max_length=64)),
                ("notifications_enabled", models.BooleanField(db_index=True, default=True)),
                ("attendance_buffer_minutes", models.PositiveSmallIntegerField(
                    default=10,
                    validators=[
                        django.core.validators.MinValueValidator(0),
                        django.core.validators.MaxValueValidator(60),
                    ],
                )),
                ("fee_overdue_check_time", models.CharField(default="09:00", max_length=5)),
                ("fee_reminder_days", models.PositiveSmallIntegerField(default=3)),
                ("jobs_dashboard_enabled", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=timezone.now)),
            ],
            options={"db_table": "organizations"},
        ),
        migrations.CreateModel(
            name="Branch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("created_at", models.DateTimeField(default=timezone.now)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="branches", to="tenants.organization")),
            ],
            options={"db_table": "branches"},
        ),
        migrations.AddIndex(
            model_name="branch",
            index=models.Index(fields=["org"], name="branch_org_idx"),
        ),
    ]
