# Overview: Append-only audit trail for location access changes and login decisions.

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..extensions import db
from ..models import LocationAuditEvent
from geoaccess.time_utils import utcnow
"""
Audit invariants

- Append-only: no updates, no deletes.
- Events are added to the caller's session and flushed, never committed here,
  so an event exists iff the change it records was committed.
"""


def append_audit_event(
    *,
    event_type: str,
    org_id: int | None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    actor_id: str | None = None,
    role: str | None = None,
    decision: str | None = None,
    reason: str | None = None,
    occurred_at: Optional[datetime] = None,
) -> LocationAuditEvent:
    ev = LocationAuditEvent(
        org_id=org_id,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_id=str(actor_id) if actor_id is not None else None,
        role=role,
        decision=decision,
        reason=reason,
        occurred_at=occurred_at or utcnow(),
    )
    db.session.add(ev)
    db.session.flush()
    return ev


def list_audit_events(
    *,
    org_id: int | None = None,
    entity_type: str | None = None,
    entity_id: int | None = None,
    limit: int = 200,
) -> list[LocationAuditEvent]:
    query = db.session.query(LocationAuditEvent)
    if org_id is not None:
        query = query.filter_by(org_id=org_id)
    if entity_type is not None:
        query = query.filter_by(entity_type=entity_type)
    if entity_id is not None:
        query = query.filter_by(entity_id=entity_id)
    return (
        query.order_by(LocationAuditEvent.occurred_at.desc(), LocationAuditEvent.id.desc())
        .limit(limit)
        .all()
    )
