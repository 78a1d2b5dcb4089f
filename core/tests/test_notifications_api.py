import json
import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from core.notifications.models import NotificationLog
from core.notifications.receipts import sign_body
from core.tenants.models import Branch, Organization


def _log(org, branch, template, status, entity_id):
    return NotificationLog.objects.create(
        org=org,
        branch=branch,
        recipient_phone="+919876543210",
        template=template,
        status=status,
        error_message="HTTP 500: upstream" if status == NotificationLog.STATUS_FAILED else None,
        entity_type="student",
        entity_id=entity_id,
    )


@pytest.mark.django_db
def test_logs_require_tenant_headers(admin_client):
    r = admin_client.get("/v1/notifications/logs")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "TENANT_REQUIRED"


@pytest.mark.django_db
def test_logs_reject_bad_uuid(admin_client, org):
    r = admin_client.get("/v1/notifications/logs", HTTP_X_ORG_ID=str(org.id), HTTP_X_BRANCH_ID="main")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "TENANT_INVALID"


@pytest.mark.django_db
def test_logs_branch_must_belong_to_org(admin_client, branch):
    other = Organization.objects.create(name="Other School")
    r = admin_client.get("/v1/notifications/logs", HTTP_X_ORG_ID=str(other.id), HTTP_X_BRANCH_ID=str(branch.id))
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "TENANT_NOT_FOUND"


@pytest.mark.django_db
def test_logs_require_staff(client, tenant_headers):
    r = client.get("/v1/notifications/logs", **tenant_headers)
    assert r.status_code == 401


@pytest.mark.django_db
def test_logs_list_and_failed_filter(admin_client, tenant_headers, org, branch, student, templates):
    _log(org, branch, templates["absent"], NotificationLog.STATUS_SENT, str(student.id))
    failed = _log(org, branch, templates["absent"], NotificationLog.STATUS_FAILED, str(student.id))
    other_branch = Branch.objects.create(org=org, name="Elsewhere")
    _log(org, other_branch, templates["absent"], NotificationLog.STATUS_FAILED, str(student.id))

    r = admin_client.get("/v1/notifications/logs", **tenant_headers)
    assert r.status_code == 200
    assert len(r.json()["results"]) == 2

    r = admin_client.get("/v1/notifications/logs?status=failed", **tenant_headers)
    results = r.json()["results"]
    assert [x["id"] for x in results] == [str(failed.id)]
    assert results[0]["template_type"] == "absent"


@pytest.mark.django_db
def test_logs_limit_validated(admin_client, tenant_headers):
    r = admin_client.get("/v1/notifications/logs?limit=500", **tenant_headers)
    assert r.status_code == 400


@pytest.mark.django_db
def test_retry_failed_notification(admin_client, tenant_headers, org, branch, student, parent, templates):
    log = _log(org, branch, templates["absent"], NotificationLog.STATUS_FAILED, str(student.id))

    r = admin_client.post(f"/v1/notifications/logs/{log.id}/retry", **tenant_headers)

    assert r.status_code == 200
    assert r.json() == {"success": True}
    log.refresh_from_db()
    assert log.status == NotificationLog.STATUS_SENT
    assert log.provider_message_id.startswith("stub_")


@pytest.mark.django_db
def test_retry_rejects_sent_or_missing(admin_client, tenant_headers, org, branch, student, templates):
    log = _log(org, branch, templates["absent"], NotificationLog.STATUS_SENT, str(student.id))

    r = admin_client.post(f"/v1/notifications/logs/{log.id}/retry", **tenant_headers)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "RETRY_FAILED"

    r = admin_client.post(f"/v1/notifications/logs/{uuid.uuid4()}/retry", **tenant_headers)
    assert r.status_code == 400


@pytest.mark.django_db
def test_logs_filter_by_template_type_and_paginate(admin_client, tenant_headers, org, branch, student, templates):
    for _ in range(3):
        _log(org, branch, templates["absent"], NotificationLog.STATUS_SENT, str(student.id))
    _log(org, branch, templates["fee_due"], NotificationLog.STATUS_SENT, "fee-1")

    r = admin_client.get("/v1/notifications/logs?template_type=absent&limit=2&page=2", **tenant_headers)

    body = r.json()
    assert r.status_code == 200
    assert body["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}
    assert [x["template_type"] for x in body["results"]] == ["absent"]

    r = admin_client.get("/v1/notifications/logs?template_type=birthday", **tenant_headers)
    assert r.status_code == 400


@pytest.mark.django_db
def test_log_detail_is_tenant_scoped(admin_client, tenant_headers, org, branch, other_branch, student, templates):
    log = _log(org, branch, templates["absent"], NotificationLog.STATUS_FAILED, str(student.id))
    log.event_data = {"date": "2026-01-05"}
    log.save()

    r = admin_client.get(f"/v1/notifications/logs/{log.id}", **tenant_headers)
    body = r.json()
    assert r.status_code == 200
    assert body["template_name"] == "absent_v1"
    assert body["event_data"] == {"date": "2026-01-05"}
    assert body["error_message"] == "HTTP 500: upstream"

    r = admin_client.get(
        f"/v1/notifications/logs/{log.id}",
        HTTP_X_ORG_ID=str(org.id), HTTP_X_BRANCH_ID=str(other_branch.id),
    )
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.django_db
def test_notification_stats(admin_client, tenant_headers, org, branch, student, templates):
    _log(org, branch, templates["absent"], NotificationLog.STATUS_SENT, str(student.id))
    _log(org, branch, templates["absent"], NotificationLog.STATUS_FAILED, str(student.id))
    old = _log(org, branch, templates["fee_due"], NotificationLog.STATUS_SENT, "fee-1")
    old.sent_at = timezone.now() - timedelta(days=20)
    old.save()

    r = admin_client.get("/v1/notifications/stats", **tenant_headers)

    body = r.json()
    assert r.status_code == 200
    assert body["today"] == {"total": 2, "sent": 1, "failed": 1, "pending": 0}
    assert body["last7Days"]["total"] == 2
    assert body["last30Days"] == {"total": 3, "sent": 2, "failed": 1, "pending": 0}
    assert body["allTime"]["total"] == 3
    assert body["byType"] == {"absent": 2, "fee_due": 1}


@pytest.mark.django_db
@pytest.mark.parametrize(
    "receipt,expected_status,expected_error",
    [
        ({"type": "delivered"}, NotificationLog.STATUS_SENT, None),
        ({"type": "read"}, NotificationLog.STATUS_SENT, None),
        ({"type": "failed", "error": {"code": "1002", "message": "Number not on WhatsApp"}}, NotificationLog.STATUS_FAILED, "Number not on WhatsApp"),
        ({"type": "failed"}, NotificationLog.STATUS_FAILED, "Delivery failed"),
        ({"type": "enqueued"}, NotificationLog.STATUS_PENDING, None),
    ],
)
def test_gupshup_delivery_receipt(client, org, branch, student, templates, receipt, expected_status, expected_error):
    log = _log(org, branch, templates["absent"], NotificationLog.STATUS_PENDING, str(student.id))
    log.provider_message_id = "gs-msg-42"
    log.save()

    body = {"type": "message-event", "payload": {"id": "gs-msg-42", "destination": "919876543210", **receipt}}
    r = client.post("/v1/webhooks/gupshup", data=json.dumps(body), content_type="application/json")

    assert r.status_code == 200
    assert r.json()["success"] is True
    log.refresh_from_db()
    assert log.status == expected_status
    assert log.error_message == expected_error


@pytest.mark.django_db
def test_failed_receipt_makes_notification_retryable(client, admin_client, tenant_headers, org, branch, student, parent, templates):
    log = _log(org, branch, templates["absent"], NotificationLog.STATUS_SENT, str(student.id))
    log.provider_message_id = "gs-msg-7"
    log.save()

    body = {"type": "message-event", "payload": {"id": "gs-msg-7", "type": "failed"}}
    client.post("/v1/webhooks/gupshup", data=json.dumps(body), content_type="application/json")

    r = admin_client.post(f"/v1/notifications/logs/{log.id}/retry", **tenant_headers)
    assert r.status_code == 200
    log.refresh_from_db()
    assert log.status == NotificationLog.STATUS_SENT


@pytest.mark.django_db
def test_gupshup_receipt_for_unknown_message(client):
    body = {"type": "message-event", "payload": {"id": "nope", "type": "delivered"}}
    r = client.post("/v1/webhooks/gupshup", data=json.dumps(body), content_type="application/json")
    assert r.status_code == 200


@pytest.mark.django_db
def test_gupshup_incoming_message_is_accepted(client):
    body = {"type": "message", "payload": {"id": "in-1", "source": "919876543210", "type": "text", "text": "ok"}}
    r = client.post("/v1/webhooks/gupshup", data=json.dumps(body), content_type="application/json")
    assert r.status_code == 200


@pytest.mark.django_db
def test_gupshup_webhook_signature(settings, client, org, branch, student, templates):
    settings.GUPSHUP_WEBHOOK_SECRET = "s3cret"
    log = _log(org, branch, templates["absent"], NotificationLog.STATUS_SENT, str(student.id))
    log.provider_message_id = "gs-msg-9"
    log.save()
    raw = json.dumps({"type": "message-event", "payload": {"id": "gs-msg-9", "type": "failed"}})

    r = client.post("/v1/webhooks/gupshup", data=raw, content_type="application/json", HTTP_X_GUPSHUP_SIGNATURE="bad")
    assert r.status_code == 400
    log.refresh_from_db()
    assert log.status == NotificationLog.STATUS_SENT

    good = sign_body("s3cret", raw.encode("utf-8"))
    r = client.post("/v1/webhooks/gupshup", data=raw, content_type="application/json", HTTP_X_GUPSHUP_SIGNATURE=good)
    assert r.status_code == 200
    log.refresh_from_db()
    assert log.status == NotificationLog.STATUS_FAILED


@pytest.mark.django_db
def test_gupshup_webhook_rejects_malformed_body(client):
    r = client.post("/v1/webhooks/gupshup", data=json.dumps({"payload": "x"}), content_type="application/json")
    assert r.status_code == 400
    assert r.json()["success"] is False
