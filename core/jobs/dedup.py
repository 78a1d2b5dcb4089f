"""
Same-day dedup for the two event producers.

The overdue job reads back today's events; the reminder job keeps a
ledger table. Each strategy sits behind its own small class.
Neither check is atomic with the emission that follows it; concurrent
runs of the same job are serialized by the job lock (core.common.locks).
"""
from __future__ import annotations

import logging

from django.utils import timezone

from core.events.emitter import parse_payload, UNKNOWN_ENTITY
from core.events.models import Event
from core.fees.models import FeeReminder

logger = logging.getLogger(__name__)


class OverdueEventLedger:
    """Reads back today's fee_overdue events and collects their entity ids."""

    event_type = Event.Type.FEE_OVERDUE

    def notified_entity_ids(self, org_id, branch_id, day_start, day_end) -> set[str]:
        rows = Event.objects.filter(
            org_id=org_id,
            branch_id=branch_id,
            type=self.event_type,
            created_at__gte=day_start,
            created_at__lt=day_end,
        ).values_list("id", "payload")

        ids = set()
        for event_id, raw in rows:
            payload = parse_payload(raw, event_id)
            if payload.entity_id and payload.entity_id != UNKNOWN_ENTITY:
                ids.add(payload.entity_id)
        return ids


class FeeReminderLedger:
    """Dedicated FeeReminder table: one row per installment per reminder."""

    def reminded_installment_ids(self, installment_ids, day_start, day_end) -> set[str]:
        if not installment_ids:
            return set()
        rows = FeeReminder.objects.filter(
            installment_id__in=list(installment_ids),
            sent_at__gte=day_start,
            sent_at__lt=day_end,
        ).values_list("installment_id", flat=True)
        return {str(i) for i in rows}

    def record(self, installment, parent, *, sent_at=None, status=FeeReminder.STATUS_PENDING, provider_msg_id=None) -> FeeReminder:
        return FeeReminder.objects.create(
            installment=installment,
            parent=parent,
            sent_at=sent_at or timezone.now(),
            channel="whatsapp",
            status=status,
            provider_msg_id=provider_msg_id,
        )
