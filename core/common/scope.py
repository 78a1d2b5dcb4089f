from rest_framework.response import Response

from core.tenants.models import Branch


def require_tenant_scope(request):
    """
    Returns (org_id, branch_id, error_response). The branch must belong
    to the organization named in the headers.
    """
    org_id = getattr(request, "org_id", None)
    branch_id = getattr(request, "branch_id", None)
    if not org_id or not branch_id:
        return None, None, Response(
            {"error": {"code": "TENANT_REQUIRED", "message": "X-Org-Id and X-Branch-Id headers are required"}},
            status=400,
        )

    if not Branch.objects.filter(id=branch_id, org_id=org_id).exists():
        return org_id, branch_id, Response(
            {"error": {"code": "TENANT_NOT_FOUND", "message": "Branch not found for this organization"}},
            status=404,
        )
    return org_id, branch_id, None
