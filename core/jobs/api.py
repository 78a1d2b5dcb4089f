from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from core.common.scope import require_tenant_scope
from core.jobs.models import JobRun
from core.jobs.registry import (
    JobAlreadyRunning,
    JobRetryNotAllowed,
    JobRunNotFound,
    UnknownJobError,
    get_job_definitions,
    retry_job_run,
    trigger_job,
)
from core.jobs.serializers import JobRunQuerySerializer, JobRunSerializer, JobStatsQuerySerializer
from core.jobs.tracker import get_job_stats, get_last_job_run
from core.tenants.models import Organization


def _require_dashboard(request):
    org_id, branch_id, err = require_tenant_scope(request)
    if err:
        return err

    if not Organization.objects.filter(id=org_id, jobs_dashboard_enabled=True).exists():
        return Response(
            {"error": {"code": "FEATURE_DISABLED", "message": "Jobs Dashboard is not enabled for this organization"}},
            status=403,
        )
    return None


def _error(code: str, message: str, status: int) -> Response:
    return Response({"error": {"code": code, "message": message}}, status=status)


@api_view(["GET"])
@permission_classes([IsAdminUser])
def jobs_list(request):
    """
    GET /v1/jobs
    Headers: Authorization, X-Org-Id, X-Branch-Id
    Job definitions with their last run.
    """
    gate = _require_dashboard(request)
    if gate:
        return gate

    items = []
    for job in get_job_definitions():
        last = get_last_job_run(job["id"])
        items.append({
            **job,
            "lastRunAt": last.started_at if last else None,
            "lastStatus": last.status if last else None,
            "lastDurationMs": last.duration_ms if last else None,
        })
    return Response({"data": items})


@api_view(["GET"])
@permission_classes([IsAdminUser])
def job_runs_list(request):
    """
    GET /v1/jobs/runs?job_name=&status=&start_date=&end_date=&page=1&limit=20
    Runs are global (not tenant-owned); newest first.
    """
    gate = _require_dashboard(request)
    if gate:
        return gate

    q = JobRunQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data

    qs = JobRun.objects.all().order_by("-started_at")
    if v.get("job_name"):
        qs = qs.filter(job_name=v["job_name"])
    if v.get("status"):
        qs = qs.filter(status=v["status"])
    if v.get("start_date"):
        qs = qs.filter(started_at__gte=v["start_date"])
    if v.get("end_date"):
        qs = qs.filter(started_at__lte=v["end_date"])

    page, limit = v["page"], v["limit"]
    total = qs.count()
    runs = qs[(page - 1) * limit: page * limit]

    return Response({
        "data": JobRunSerializer(runs, many=True).data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    })


@api_view(["GET"])
@permission_classes([IsAdminUser])
def job_run_detail(request, run_id):
    """GET /v1/jobs/runs/<id>"""
    gate = _require_dashboard(request)
    if gate:
        return gate

    run = JobRun.objects.filter(id=run_id).first()
    if not run:
        return _error("NOT_FOUND", "Job run not found", 404)
    return Response({"data": JobRunSerializer(run).data})


@api_view(["GET"])
@permission_classes([IsAdminUser])
def job_stats(request):
    """
    GET /v1/jobs/stats?job_name=&days=7
    days must be within 1..90.
    """
    gate = _require_dashboard(request)
    if gate:
        return gate

    q = JobStatsQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data

    return Response({"data": get_job_stats(v.get("job_name"), days=v["days"])})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def job_trigger(request, job_name: str):
    """POST /v1/jobs/<name>/trigger: runs the job synchronously."""
    gate = _require_dashboard(request)
    if gate:
        return gate

    try:
        result = trigger_job(job_name)
    except UnknownJobError as e:
        return _error("NOT_FOUND", str(e), 404)
    except JobAlreadyRunning as e:
        return _error("JOB_RUNNING", str(e), 409)

    return Response({"success": True, "message": f"Job {job_name} triggered successfully", "result": result.as_dict()})


@api_view(["POST"])
@permission_classes([IsAdminUser])
def job_run_retry(request, run_id):
    """POST /v1/jobs/runs/<id>/retry: failed runs only."""
    gate = _require_dashboard(request)
    if gate:
        return gate

    try:
        result = retry_job_run(run_id)
    except (JobRunNotFound, UnknownJobError) as e:
        return _error("NOT_FOUND", str(e), 404)
    except JobRetryNotAllowed as e:
        return _error("RETRY_NOT_ALLOWED", str(e), 400)
    except JobAlreadyRunning as e:
        return _error("JOB_RUNNING", str(e), 409)

    return Response({"success": True, "result": result.as_dict()})
