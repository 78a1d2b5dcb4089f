"""
Event Emission API and Event Store access.

Domain modules call emit_event / emit_events only AFTER their own
transaction has committed. Emission never raises: a failed insert is
logged and reported through the return value so the caller's flow
continues untouched.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from django.utils import timezone

from core.events.models import Event

logger = logging.getLogger(__name__)

EVENT_TYPES = frozenset(Event.Type.values)
UNKNOWN_ENTITY = "unknown"


@dataclass(frozen=True)
class EventPayload:
    entity_type: str
    entity_id: str
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"entityType": self.entity_type, "entityId": self.entity_id, "data": self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    @property
    def is_sentinel(self) -> bool:
        return bool(self.data.get("_parseError"))


@dataclass(frozen=True)
class StoredEvent:
    id: int
    type: str
    org_id: Any
    branch_id: Any
    payload: EventPayload
    status: str
    created_at: datetime
    processed_at: datetime | None = None

    @classmethod
    def from_model(cls, e: Event) -> "StoredEvent":
        return cls(
            id=e.id,
            type=e.type,
            org_id=e.org_id,
            branch_id=e.branch_id,
            payload=parse_payload(e.payload, e.id),
            status=e.status,
            created_at=e.created_at,
            processed_at=e.processed_at,
        )


@dataclass(frozen=True)
class EventSpec:
    """One entry of an emit_events() batch."""
    type: str
    org_id: Any
    branch_id: Any
    payload: EventPayload


def _sentinel(raw) -> EventPayload:
    return EventPayload(
        entity_type=UNKNOWN_ENTITY,
        entity_id=UNKNOWN_ENTITY,
        data={"_parseError": True, "_rawPayload": raw},
    )


def parse_payload(raw, event_id=None) -> EventPayload:
    """
    Never raises. Anything that is not a JSON object degrades to the
    sentinel payload so a single corrupt row cannot stall a batch.
    """
    try:
        obj = json.loads(raw)
    except (TypeError, ValueError):
        logger.error("Failed to parse payload for event %s", event_id)
        return _sentinel(raw)

    if not isinstance(obj, dict):
        logger.error("Payload for event %s is not an object", event_id)
        return _sentinel(raw)

    data = obj.get("data")
    return EventPayload(
        entity_type=str(obj.get("entityType") or UNKNOWN_ENTITY),
        entity_id=str(obj.get("entityId") or UNKNOWN_ENTITY),
        data=data if isinstance(data, dict) else {},
    )


def _build_row(event_type: str, org_id, branch_id, payload: EventPayload) -> Event:
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unknown event type: {event_type}")
    return Event(
        type=event_type,
        org_id=org_id,
        branch_id=branch_id,
        payload=payload.to_json(),
        status=Event.Status.PENDING,
    )


def emit_event(event_type: str, org_id, branch_id, payload: EventPayload) -> int | None:
    """
    Append one pending event. Returns the new id, or None if it could
    not be stored.
    """
    try:
        row = _build_row(event_type, org_id, branch_id, payload)
        row.save()
    except Exception:
        logger.exception(
            "Failed to emit event type=%s org=%s branch=%s entity=%s",
            event_type, org_id, branch_id, getattr(payload, "entity_id", None),
        )
        return None

    logger.info("Event emitted id=%s type=%s org=%s branch=%s", row.id, event_type, org_id, branch_id)
    return row.id


def emit_events(batch: Iterable[EventSpec]) -> int:
    """
    Append several events at once (e.g. a whole class marked absent).
    Returns the number stored; 0 on failure.
    """
    batch = list(batch)
    if not batch:
        return 0

    try:
        rows = [_build_row(s.type, s.org_id, s.branch_id, s.payload) for s in batch]
        created = Event.objects.bulk_create(rows)
    except Exception:
        logger.exception("Failed to emit events count=%s", len(batch))
        return 0

    logger.info("Events emitted count=%s types=%s", len(created), sorted({s.type for s in batch}))
    return len(created)


def get_pending_events(org_id, branch_id, limit: int = 100) -> list[StoredEvent]:
    """Oldest first; created_at ties broken by insertion id."""
    qs = (
        Event.objects.filter(org_id=org_id, branch_id=branch_id, status=Event.Status.PENDING)
        .order_by("created_at", "id")[:limit]
    )
    return [StoredEvent.from_model(e) for e in qs]


def get_events_by_type(event_type: str, org_id, branch_id, limit: int = 50) -> list[StoredEvent]:
    qs = (
        Event.objects.filter(type=event_type, org_id=org_id, branch_id=branch_id)
        .order_by("-created_at", "-id")[:limit]
    )
    return [StoredEvent.from_model(e) for e in qs]


def mark_processed(event_id, org_id, branch_id) -> bool:
    """Tenant-scoped; a no-op for rows outside the tenant or already terminal."""
    updated = Event.objects.filter(
        id=event_id,
        org_id=org_id,
        branch_id=branch_id,
        status=Event.Status.PENDING,
    ).update(status=Event.Status.PROCESSED, processed_at=timezone.now())
    return updated > 0


def mark_failed(event_id, org_id, branch_id, error: str) -> bool:
    """
    Tenant-scoped. Merges `_error` into the stored payload; a payload
    that does not parse is kept under `_rawPayload`.
    """
    row = Event.objects.filter(
        id=event_id,
        org_id=org_id,
        branch_id=branch_id,
        status=Event.Status.PENDING,
    ).only("id", "payload").first()
    if not row:
        logger.warning("Event %s not found (or not pending) for org=%s branch=%s", event_id, org_id, branch_id)
        return False

    try:
        payload = json.loads(row.payload)
    except (TypeError, ValueError):
        payload = None
    if not isinstance(payload, dict):
        payload = {"_rawPayload": row.payload}
    payload["_error"] = str(error)

    updated = Event.objects.filter(
        id=event_id,
        org_id=org_id,
        branch_id=branch_id,
        status=Event.Status.PENDING,
    ).update(
        status=Event.Status.FAILED,
        payload=json.dumps(payload, default=str),
        processed_at=timezone.now(),
    )
    return updated > 0


def mark_failed_safely(event_id, org_id, branch_id, error: str) -> bool:
    """mark_failed that never raises; a failure here is logged and dropped."""
    try:
        return mark_failed(event_id, org_id, branch_id, error)
    except Exception:
        logger.exception("Failed to mark event %s as failed", event_id)
        return False
