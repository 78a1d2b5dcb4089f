import uuid

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
            name="JobRun",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("job_name", models.CharField(max_length=64)),
                ("status", models.CharField(choices=[("running", "Running"), ("completed", "Completed"), ("failed", "Failed"), ("skipped", "Skipped")], db_index=True, default="running", max_length=16)),
                ("started_at", models.DateTimeField(default=timezone.now)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("duration_ms", models.IntegerField(blank=True, null=True)),
                ("events_emitted", models.IntegerField(default=0)),
                ("records_processed", models.IntegerField(default=0)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, null=True)),
                ("org", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="job_runs", to="tenants.organization")),
                ("branch", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="job_runs", to="tenants.branch")),
            ],
            options={"db_table": "job_runs"},
        ),
        migrations.AddIndex(
            model_name="jobrun",
            index=models.Index(fields=["job_name", "started_at"], name="jobrun_name_started_idx"),
        ),
    ]
