import uuid

import django.db.models.deletion
from django.db import migrations, models
from django.utils import timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("school", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="StudentFee",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(blank=True, default="", max_length=200)),
                ("total_amount", models.PositiveIntegerField(default=0)),
                ("paid_amount", models.PositiveIntegerField(default=0)),
                ("due_date", models.DateField(blank=True, null=True)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("partial", "Partial"), ("paid", "Paid")], db_index=True, default="pending", max_length=16)),
                ("created_at", models.DateTimeField(default=timezone.now)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fees", to="school.student")),
            ],
            options={"db_table": "student_fees"},
        ),
        migrations.CreateModel(
            name="FeePayment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("amount", models.PositiveIntegerField()),
                ("payment_mode", models.CharField(choices=[("cash", "Cash"), ("upi", "UPI"), ("card", "Card"), ("bank_transfer", "Bank transfer"), ("cheque", "Cheque")], default="cash", max_length=20)),
                ("received_at", models.DateTimeField(default=timezone.now)),
                ("student_fee", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payments", to="fees.studentfee")),
            ],
            options={"db_table": "fee_payments"},
        ),
        migrations.CreateModel(
            name="FeeInstallment",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("installment_number", models.PositiveSmallIntegerField(default=1)),
                ("amount", models.PositiveIntegerField()),
                ("paid_amount", models.PositiveIntegerField(default=0)),
                ("due_date", models.DateField(db_index=True)),
                ("status", models.CharField(choices=[("upcoming", "Upcoming"), ("due", "Due"), ("overdue", "Overdue"), ("partial", "Partial"), ("paid", "Paid")], db_index=True, default="upcoming", max_length=16)),
                ("reminder_sent_at", models.DateTimeField(blank=True, null=True)),
                ("reminder_count", models.PositiveIntegerField(default=0)),
                ("created_at", models.DateTimeField(default=timezone.now)),
                ("updated_at", models.DateTimeField(default=timezone.now)),
                ("student", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="installments", to="school.student")),
            ],
            options={"db_table": "fee_installments"},
        ),
        migrations.CreateModel(
            name="FeeReminder",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("sent_at", models.DateTimeField(default=timezone.now)),
                ("channel", models.CharField(default="whatsapp", max_length=20)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("sent", "Sent"), ("failed", "Failed")], default="pending", max_length=20)),
                ("provider_msg_id", models.CharField(blank=True, max_length=200, null=True)),
                ("installment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="reminders", to="fees.feeinstallment")),
                ("parent", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="fee_reminders", to="school.parent")),
            ],
            options={"db_table": "fee_reminders"},
        ),
        migrations.AddIndex(
            model_name="feeinstallment",
            index=models.Index(fields=["status", "due_date"], name="finst_status_due_idx"),
        ),
        migrations.AddIndex(
            model_name="feereminder",
            index=models.Index(fields=["installment", "sent_at"], name="frem_inst_sent_idx"),
        ),
    ]
