import logging

from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from core.common.scope import require_tenant_scope
from core.notifications.dispatcher import (
    NotificationDispatcher,
    filter_notification_logs,
    get_notification_log,
    get_notification_stats,
)
from core.notifications.receipts import process_webhook, verify_signature
from core.notifications.serializers import (
    GupshupWebhookSerializer,
    NotificationLogDetailSerializer,
    NotificationLogOutSerializer,
    NotificationLogQuerySerializer,
)

logger = logging.getLogger(__name__)


def _not_found():
    return Response({"error": {"code": "NOT_FOUND", "message": "Notification not found"}}, status=404)


@api_view(["GET"])
@permission_classes([IsAdminUser])
def notification_logs(request):
    """
    GET /v1/notifications/logs?status=failed&template_type=absent&page=1&limit=50
    Headers: Authorization, X-Org-Id, X-Branch-Id
    """
    org_id, branch_id, err = require_tenant_scope(request)
    if err:
        return err

    q = NotificationLogQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data

    qs = filter_notification_logs(org_id, branch_id, status=v.get("status"), template_type=v.get("template_type"))

    page, limit = v["page"], v["limit"]
    total = qs.count()
    logs = qs[(page - 1) * limit: page * limit]

    return Response({
        "results": NotificationLogOutSerializer(logs, many=True).data,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    })


@api_view(["GET"])
@permission_classes([IsAdminUser])
def notification_detail(request, notification_id):
    """GET /v1/notifications/logs/<id>"""
    org_id, branch_id, err = require_tenant_scope(request)
    if err:
        return err

    log = get_notification_log(notification_id, org_id, branch_id)
    if not log:
        return _not_found()
    return Response(NotificationLogDetailSerializer(log).data)


@api_view(["GET"])
@permission_classes([IsAdminUser])
def notification_stats(request):
    """
    GET /v1/notifications/stats
    Status counts for today, the last 7 and 30 days and all time, plus counts per template type.
    """
    org_id, branch_id, err = require_tenant_scope(request)
    if err:
        return err

    return Response(get_notification_stats(org_id, branch_id))


@api_view(["POST"])
@permission_classes([IsAdminUser])
def retry_notification(request, notification_id):
    """
    POST /v1/notifications/logs/<id>/retry
    Only failed notifications can be retried.
    """
    org_id, branch_id, err = require_tenant_scope(request)
    if err:
        return err

    ok = NotificationDispatcher().retry_notification(notification_id, org_id, branch_id)
    if not ok:
        return Response(
            {"error": {"code": "RETRY_FAILED", "message": "Notification not found, not failed, or resend failed"}},
            status=400,
        )
    return Response({"success": True})


@api_view(["POST"])
@authentication_classes([])
@permission_classes([])
def gupshup_webhook(request):
    """
    POST /v1/webhooks/gupshup
    Headers: X-Gupshup-Signature (when GUPSHUP_WEBHOOK_SECRET is set)

    Body:
      {"type": "message-event", "payload": {"id": "...", "type": "delivered|read|failed|enqueued", ...}}
    """
    if not verify_signature(request.headers.get("X-Gupshup-Signature"), request.body):
        return Response({"success": False, "message": "Invalid signature"}, status=400)

    s = GupshupWebhookSerializer(data=request.data)
    if not s.is_valid():
        return Response({"success": False, "message": "Invalid payload"}, status=400)

    try:
        process_webhook(s.validated_data)
    except ValueError as e:
        logger.warning("Rejected Gupshup webhook: %s", e)
        return Response({"success": False, "message": "Processing error"}, status=400)

    return Response({"success": True, "message": "Webhook processed"})
