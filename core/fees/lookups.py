"""Tenant-scoped reads of fee records for notification parameters."""
from __future__ import annotations

from django.core.exceptions import ValidationError

from core.fees.models import FeeInstallment, FeePayment, StudentFee

_BAD_ID = (ValidationError, ValueError, TypeError)


def get_student_fee(fee_id, org_id, branch_id) -> StudentFee | None:
    if not fee_id:
        return None
    try:
        return (
            StudentFee.objects.select_related("student")
            .filter(id=fee_id, student__org_id=org_id, student__branch_id=branch_id)
            .first()
        )
    except _BAD_ID:
        return None


def get_fee_payment(payment_id, org_id, branch_id) -> FeePayment | None:
    if not payment_id:
        return None
    try:
        return (
            FeePayment.objects.select_related("student_fee__student")
            .filter(
                id=payment_id,
                student_fee__student__org_id=org_id,
                student_fee__student__branch_id=branch_id,
            )
            .first()
        )
    except _BAD_ID:
        return None


def get_installment(installment_id, org_id, branch_id) -> FeeInstallment | None:
    if not installment_id:
        return None
    try:
        return (
            FeeInstallment.objects.select_related("student")
            .filter(id=installment_id, student__org_id=org_id, student__branch_id=branch_id)
            .first()
        )
    except _BAD_ID:
        return None
