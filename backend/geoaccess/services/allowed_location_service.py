# Overview: Service-layer operations for allowed login locations.

"""
Allowed Location Service

WHY: Superadmins need direct control over live login zones, independent of
the request workflow (e.g. revoke a zone immediately during an incident).

DESIGN:
- Zones are only ever created by location_workflow_service on approval
- revoke / delete here never change the source request's status
- Reads used at login time take no locks
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_

from ..extensions import db
from ..errors import NotFoundError
from ..models import AllowedLocation
from .audit_service import append_audit_event
from geoaccess.time_utils import utcnow, within_window


def get_allowed_location(location_id: int) -> AllowedLocation:
    location = db.session.query(AllowedLocation).filter_by(id=location_id).first()
    if not location:
        raise NotFoundError(f"Allowed location {location_id} not found")
    return location


def find_by_source_request(request_id: int) -> AllowedLocation | None:
    return db.session.query(AllowedLocation).filter_by(source_request_id=request_id).first()


def list_allowed_locations(org_id: int | None, *, include_deleted: bool = False) -> list[AllowedLocation]:
    query = db.session.query(AllowedLocation)
    if org_id is not None:
        query = query.filter_by(org_id=org_id)
    if not include_deleted:
        query = query.filter(AllowedLocation.deleted_at.is_(None))
    return query.order_by(AllowedLocation.created_at.desc(), AllowedLocation.id.desc()).all()


def is_zone_active(location: AllowedLocation, now: datetime) -> bool:
    """Active, not soft-deleted and (for temporary zones) inside the validity window."""
    if not location.is_active or location.deleted_at is not None:
        return False
    if location.is_temporary():
        return within_window(now, location.valid_from, location.valid_to)
    return True


def active_locations_for_org(org_id: int, now: datetime | None = None) -> list[AllowedLocation]:
    """
    Zones that currently count for login evaluation.

    Expired temporary zones are filtered here rather than by a sweeper job,
    so a zone stops counting the moment its window closes.
    """
    now = now or utcnow()
    candidates = (
        db.session.query(AllowedLocation)
        .filter(
            AllowedLocation.org_id == org_id,
            AllowedLocation.is_active.is_(True),
            AllowedLocation.deleted_at.is_(None),
            or_(AllowedLocation.valid_to.is_(None), AllowedLocation.valid_to >= now),
        )
        .order_by(AllowedLocation.id.asc())
        .all()
    )
    return [loc for loc in candidates if is_zone_active(loc, now)]


def has_any_locations(org_id: int) -> bool:
    """True if the organization has any zone that is not soft-deleted, active or not."""
    return db.session.query(
        db.session.query(AllowedLocation)
        .filter(AllowedLocation.org_id == org_id, AllowedLocation.deleted_at.is_(None))
        .exists()
    ).scalar()


def revoke_allowed_location(location_id: int, *, actor_id: str | None = None) -> AllowedLocation:
    """
    Deactivate a zone directly (operator action).

    Idempotent: revoking an already revoked zone keeps the original revoked_at.
    """
    location = get_allowed_location(location_id)
    if location.is_active:
        location.is_active = False
        location.revoked_at = utcnow()
        db.session.flush()

        append_audit_event(
            event_type="location.allowed_revoked",
            org_id=location.org_id,
            entity_type="allowed_location",
            entity_id=location.id,
            actor_id=actor_id,
        )

    db.session.commit()
    return location


def delete_allowed_location(location_id: int, *, soft: bool = False, actor_id: str | None = None) -> None:
    """
    Remove a zone.

    Hard delete by default. soft=True keeps the row with deleted_at set so it
    still shows up in history but is never evaluated. Either way the source
    request keeps its status.
    """
    location = get_allowed_location(location_id)
    org_id = location.org_id

    if soft:
        if location.deleted_at is None:
            location.deleted_at = utcnow()
        event_type = "location.allowed_soft_deleted"
    else:
        db.session.delete(location)
        event_type = "location.allowed_deleted"
    db.session.flush()

    append_audit_event(
        event_type=event_type,
        org_id=org_id,
        entity_type="allowed_location",
        entity_id=location_id,
        actor_id=actor_id,
    )

    db.session.commit()
