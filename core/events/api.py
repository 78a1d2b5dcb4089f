from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from core.common.scope import require_tenant_scope
from core.events.emitter import get_events_by_type
from core.events.serializers import EventQuerySerializer, StoredEventOutSerializer


@api_view(["GET"])
@permission_classes([IsAdminUser])
def events_list(request):
    """
    GET /v1/events?type=student_absent&limit=50
    Headers: Authorization, X-Org-Id, X-Branch-Id
    Newest first; corrupt payloads come back as the parse-error placeholder.
    """
    org_id, branch_id, err = require_tenant_scope(request)
    if err:
        return err

    q = EventQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)

    events = get_events_by_type(q.validated_data["type"], org_id, branch_id, limit=q.validated_data["limit"])
    return Response({"results": StoredEventOutSerializer(events, many=True).data})
