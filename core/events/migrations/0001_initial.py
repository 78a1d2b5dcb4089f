import django.db.models.deletion
from django.db import migrations, models
from django.utils import timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Event",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("type", models.CharField(
                    choices=[
                        ("attendance_marked", "Attendance marked"),
                        ("student_absent", "Student absent"),
                        ("fee_created", "Fee created"),
                        ("fee_paid", "Fee paid"),
                        ("fee_overdue", "Fee overdue"),
                        ("fee_reminder", "Fee reminder"),
                    ],
                    db_index=True,
                    max_length=32,
                )),
                ("payload", models.TextField()),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processed", "Processed"), ("failed", "Failed")], db_index=True, default="pending", max_length=16)),
                ("created_at", models.DateTimeField(db_index=True, default=timezone.now)),
                ("processed_at", models.DateTimeField(blank=True, null=True)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="events", to="tenants.organization")),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="events", to="tenants.branch")),
            ],
            options={"db_table": "events"},
        ),
        migrations.AddIndex(
            model_name="event",
            index=models.Index(fields=["org", "branch", "status", "created_at"], name="evt_tenant_pending_idx"),
        ),
        migrations.AddIndex(
            model_name="event",
            index=models.Index(fields=["org", "branch", "type", "created_at"], name="evt_tenant_type_idx"),
        ),
    ]
