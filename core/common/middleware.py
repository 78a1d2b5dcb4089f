import uuid
from django.conf import settings
from django.http import JsonResponse

TENANT_PATH_PREFIXES = (
    "/v1/notifications/",
    "/v1/jobs",
    "/v1/events",
)


class TenantScopeMiddleware:
    """
    - Require X-Org-Id and X-Branch-Id on tenant-scoped /v1/* paths.
    - Parse UUIDs and attach request.org_id / request.branch_id.
    - Authorization is enforced in the endpoints.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or "/"

        if not path.startswith(TENANT_PATH_PREFIXES):
            return self.get_response(request)

        for attr, setting_name, default in (
            ("org_id", "ORG_HEADER", "X-Org-Id"),
            ("branch_id", "BRANCH_HEADER", "X-Branch-Id"),
        ):
            header_name = getattr(settings, setting_name, default)
            raw = request.headers.get(header_name)

            if not raw:
                return JsonResponse({"error": {"code": "TENANT_REQUIRED", "message": f"{header_name} header is required"}}, status=400)

            try:
                setattr(request, attr, uuid.UUID(str(raw)))
            except Exception:
                return JsonResponse({"error": {"code": "TENANT_INVALID", "message": f"{header_name} must be a valid UUID"}}, status=400)

        return self.get_response(request)
