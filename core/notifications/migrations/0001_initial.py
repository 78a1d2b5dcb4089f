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
            name="MessageTemplate",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("type", models.CharField(db_index=True, max_length=32)),
                ("name", models.CharField(blank=True, default="", max_length=100)),
                ("content", models.TextField()),
                ("is_active", models.BooleanField(db_index=True, default=True)),
                ("created_at", models.DateTimeField(default=timezone.now)),
                ("updated_at", models.DateTimeField(blank=True, null=True)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="message_templates", to="tenants.organization")),
            ],
            options={"db_table": "message_templates"},
        ),
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("recipient_phone", models.CharField(max_length=20)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed")], db_index=True, default="pending", max_length=20)),
                ("provider_message_id", models.CharField(blank=True, max_length=200, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("entity_type", models.CharField(blank=True, max_length=50, null=True)),
                ("entity_id", models.CharField(blank=True, max_length=64, null=True)),
                ("sent_at", models.DateTimeField(db_index=True, default=timezone.now)),
                ("org", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="notification_logs", to="tenants.organization")),
                ("branch", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="notification_logs", to="tenants.branch")),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="logs", to="notifications.messagetemplate")),
            ],
            options={"db_table": "notification_logs"},
        ),
        migrations.AddIndex(
            model_name="messagetemplate",
            index=models.Index(fields=["org", "type", "is_active"], name="mtpl_org_type_active_idx"),
        ),
        migrations.AddIndex(
            model_name="notificationlog",
            index=models.Index(fields=["org", "branch", "recipient_phone", "template", "entity_id", "sent_at"], name="nlog_dedup_idx"),
        ),
        migrations.AddIndex(
            model_name="notificationlog",
            index=models.Index(fields=["org", "branch", "status", "sent_at"], name="nlog_tenant_status_idx"),
        ),
    ]
