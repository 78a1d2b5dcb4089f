from __future__ import annotations

from django.core.exceptions import ValidationError

from core.school.models import Parent, Student, StudentParent

# ids from event payloads are not guaranteed to be well-formed UUIDs
_BAD_ID = (ValidationError, ValueError, TypeError)


def get_student(student_id, org_id, branch_id) -> Student | None:
    if not student_id:
        return None
    try:
        return Student.objects.filter(id=student_id, org_id=org_id, branch_id=branch_id).first()
    except _BAD_ID:
        return None


def get_primary_parent(student_id, org_id, branch_id) -> Parent | None:
    """
    Primary-contact parent first, then any linked parent.
    Both the student and the parent must belong to the tenant.
    """
    if not student_id:
        return None
    try:
        link = (
            StudentParent.objects.select_related("parent")
            .filter(
                student_id=student_id,
                student__org_id=org_id,
                student__branch_id=branch_id,
                parent__org_id=org_id,
            )
            .order_by("-is_primary_contact", "id")
            .first()
        )
    except _BAD_ID:
        return None
    return link.parent if link else None


def get_primary_parent_phone(student_id, org_id, branch_id) -> str | None:
    parent = get_primary_parent(student_id, org_id, branch_id)
    if not parent:
        return None
    return (parent.phone or "").strip() or None
