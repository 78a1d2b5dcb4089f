import uuid
from django.db import models
from django.utils import timezone


class StudentFee(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PARTIAL = "partial", "Partial"
        PAID = "paid", "Paid"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey("school.Student", on_delete=models.CASCADE, related_name="fees")

    name = models.CharField(max_length=200, blank=True, default="")
    total_amount = models.PositiveIntegerField(default=0)
    paid_amount = models.PositiveIntegerField(default=0)
    due_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING, db_index=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "student_fees"


class FeePayment(models.Model):
    class Mode(models.TextChoices):
        CASH = "cash", "Cash"
        UPI = "upi", "UPI"
        CARD = "card", "Card"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"
        CHEQUE = "cheque", "Cheque"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student_fee = models.ForeignKey(StudentFee, on_delete=models.CASCADE, related_name="payments")

    amount = models.PositiveIntegerField()
    payment_mode = models.CharField(max_length=20, choices=Mode.choices, default=Mode.CASH)
    received_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "fee_payments"


class FeeInstallment(models.Model):
    class Status(models.TextChoices):
        UPCOMING = "upcoming", "Upcoming"
        DUE = "due", "Due"
        OVERDUE = "overdue", "Overdue"
        PARTIAL = "partial", "Partial"
        PAID = "paid", "Paid"

    UNPAID_STATUSES = (Status.UPCOMING, Status.DUE, Status.OVERDUE, Status.PARTIAL)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    student = models.ForeignKey("school.Student", on_delete=models.CASCADE, related_name="installments")

    installment_number = models.PositiveSmallIntegerField(default=1)
    amount = models.PositiveIntegerField()
    paid_amount = models.PositiveIntegerField(default=0)
    due_date = models.DateField(db_index=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.UPCOMING, db_index=True)

    reminder_sent_at = models.DateTimeField(null=True, blank=True)
    reminder_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "fee_installments"
        indexes = [models.Index(fields=["status", "due_date"], name="finst_status_due_idx")]

    @property
    def pending_amount(self) -> int:
        return max(int(self.amount or 0) - int(self.paid_amount or 0), 0)


class FeeReminder(models.Model):
    """
    Ledger of reminder attempts, one row per installment per attempt.
    The reminder job consults it for same-day dedup.
    """
    STATUS_PENDING = "pending"
    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    installment = models.ForeignKey(FeeInstallment, on_delete=models.CASCADE, related_name="reminders")
    parent = models.ForeignKey("school.Parent", on_delete=models.CASCADE, related_name="fee_reminders")

    sent_at = models.DateTimeField(default=timezone.now)
    channel = models.CharField(max_length=20, default="whatsapp")
    status = models.CharField(
        max_length=20,
        default=STATUS_PENDING,
        choices=[
            (STATUS_PENDING, "Pending"),
            (STATUS_SENT, "Sent"),
            (STATUS_FAILED, "Failed"),
        ],
    )
    provider_msg_id = models.CharField(max_length=200, null=True, blank=True)

    class Meta:
        db_table = "fee_reminders"
        indexes = [models.Index(fields=["installment", "sent_at"], name="frem_inst_sent_idx")]
