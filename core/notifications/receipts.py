"""
Gupshup delivery receipts.

Sends are accepted synchronously, but Gupshup reports the real outcome
later as a `message-event` callback. A `failed` receipt moves the log
row to failed so it shows up for manual retry.
"""
from __future__ import annotations

import hashlib
import hmac
import logging

from django.conf import settings

from core.notifications.dispatcher import get_notification_by_provider_id
from core.notifications.models import NotificationLog

logger = logging.getLogger(__name__)

RECEIPT_EVENT = "message-event"
INCOMING_MESSAGE = "message"

DELIVERED_TYPES = ("delivered", "read")
FAILED_TYPE = "failed"
DEFAULT_DELIVERY_ERROR = "Delivery failed"


def sign_body(secret: str, raw: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), raw, hashlib.sha256).hexdigest()


def verify_signature(signature: str | None, raw: bytes) -> bool:
    """HMAC-SHA256 of the raw body. Without a configured secret, everything passes."""
    secret = getattr(settings, "GUPSHUP_WEBHOOK_SECRET", "")
    if not secret:
        logger.warning("GUPSHUP_WEBHOOK_SECRET not set, skipping webhook signature check")
        return True
    if not signature:
        return False
    return hmac.compare_digest(sign_body(secret, raw), signature.strip())


def apply_delivery_receipt(payload: dict) -> NotificationLog | None:
    """
    `payload` is the inner receipt object: {id, type, destination, error?}.
    `enqueued` and unknown types leave the row as it is.
    """
    message_id = str(payload.get("id") or "")
    receipt_type = payload.get("type")

    log = get_notification_by_provider_id(message_id)
    if log is None:
        logger.warning("No notification for provider message id=%s type=%s", message_id, receipt_type)
        return None

    if receipt_type in DELIVERED_TYPES:
        log.status = NotificationLog.STATUS_SENT
    elif receipt_type == FAILED_TYPE:
        error = payload.get("error") or {}
        log.status = NotificationLog.STATUS_FAILED
        log.error_message = (error.get("message") if isinstance(error, dict) else None) or DEFAULT_DELIVERY_ERROR
    else:
        logger.debug("Receipt ignored id=%s type=%s", message_id, receipt_type)
        return log

    log.save(update_fields=["status", "error_message"])
    logger.info("Delivery receipt applied notification=%s type=%s", log.id, receipt_type)
    return log


def process_webhook(body: dict) -> None:
    kind = body.get("type")
    payload = body.get("payload") or {}
    if not isinstance(payload, dict):
        raise ValueError("payload must be an object")

    if kind == RECEIPT_EVENT:
        apply_delivery_receipt(payload)
    elif kind == INCOMING_MESSAGE:
        # replies are not handled yet; keep a trace only
        logger.info("Incoming WhatsApp message id=%s type=%s", payload.get("id"), payload.get("type"))
    else:
        logger.debug("Unhandled Gupshup webhook type=%s", kind)
