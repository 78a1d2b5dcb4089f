"""
WhatsApp transport providers.

The dispatcher only sees WhatsAppProvider.send(); retries and dedup are
its concern, not the provider's. Providers never raise for delivery
problems: every outcome is a SendResult.
"""
from __future__ import annotations

import json
import logging
import secrets
import time
from dataclasses import dataclass

import requests
from django.conf import settings

from core.notifications.phone import mask_phone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None

    @classmethod
    def ok(cls, message_id: str | None) -> "SendResult":
        return cls(success=True, message_id=message_id, error=None)

    @classmethod
    def fail(cls, error: str) -> "SendResult":
        return cls(success=False, message_id=None, error=error)


class WhatsAppProvider:
    name = "base"

    def send(self, to: str, template_name: str, params: dict[str, str]) -> SendResult:
        raise NotImplementedError


class StubWhatsAppProvider(WhatsAppProvider):
    """Development provider: logs the message and reports success."""
    name = "stub"

    def send(self, to: str, template_name: str, params: dict[str, str]) -> SendResult:
        logger.info(
            "WhatsApp STUB - would send template=%s to=%s params=%s",
            template_name, mask_phone(to), params,
        )
        message_id = f"stub_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
        return SendResult.ok(message_id)


class GupshupWhatsAppProvider(WhatsAppProvider):
    name = "gupshup"

    def __init__(self, *, api_key: str, app_name: str, source_number: str, api_url: str, timeout: int = 10):
        self.api_key = (api_key or "").strip()
        self.app_name = (app_name or "").strip()
        self.source_number = (source_number or "").strip()
        self.api_url = api_url
        self.timeout = timeout

    def is_configured(self) -> bool:
        return bool(self.api_key and self.app_name and self.source_number and self.api_url)

    def send(self, to: str, template_name: str, params: dict[str, str]) -> SendResult:
        if not self.is_configured():
            logger.error("Gupshup provider is not configured (api key, app name and source number are required)")
            return SendResult.fail("WhatsApp provider not configured")

        # form-encoded by requests; the api key only travels as a header
        data = {
            "channel": "whatsapp",
            "source": self.source_number,
            "destination": (to or "").lstrip("+"),
            "src.name": self.app_name,
            "template": json.dumps({"id": template_name, "params": [str(v) for v in params.values()]}),
        }
        headers = {
            "apikey": self.api_key,
            "Content-Type": "application/x-www-form-urlencoded",
            "Cache-Control": "no-cache",
        }

        try:
            resp = requests.post(self.api_url, data=data, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Gupshup request failed for to=%s: %s", mask_phone(to), type(e).__name__)
            return SendResult.fail(f"Network error: {type(e).__name__}: {e}")

        try:
            body = resp.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if 200 <= resp.status_code < 300 and body.get("status") == "submitted":
            return SendResult.ok(body.get("messageId"))

        message = body.get("message") or resp.text[:500] or "no response body"
        logger.warning("Gupshup rejected message to=%s http=%s", mask_phone(to), resp.status_code)
        return SendResult.fail(f"HTTP {resp.status_code}: {message}")


def build_provider(name: str | None = None) -> WhatsAppProvider:
    """
    Construct the provider selected by settings.WHATSAPP_PROVIDER.
    A fresh instance per call; callers inject it where needed.
    """
    name = (name or getattr(settings, "WHATSAPP_PROVIDER", "stub") or "stub").strip().lower()
    if name == GupshupWhatsAppProvider.name:
        return GupshupWhatsAppProvider(
            api_key=getattr(settings, "GUPSHUP_API_KEY", ""),
            app_name=getattr(settings, "GUPSHUP_APP_NAME", ""),
            source_number=getattr(settings, "GUPSHUP_SOURCE_NUMBER", ""),
            api_url=getattr(settings, "GUPSHUP_API_URL", ""),
            timeout=int(getattr(settings, "WHATSAPP_TIMEOUT", 10)),
        )
    if name != StubWhatsAppProvider.name:
        logger.warning("Unknown WHATSAPP_PROVIDER=%r, falling back to stub", name)
    return StubWhatsAppProvider()
