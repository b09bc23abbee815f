# Overview: Service-layer operations for location access requests.

"""
Location Access Request Service

WHY: An organization asks for a physical address to become a login zone.
The request sits in `pending` until a superadmin reviews it.

DESIGN PRINCIPLES:
- This module only creates, reads and deletes requests
- Status transitions belong to location_workflow_service
- delete_request does NOT touch the request's AllowedLocation; cleanup of the
  zone is a separate, explicit operation so request history and zones can be
  managed independently
"""

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import LocationAccessRequest
from ..models.location import (
    REQUEST_STATUS_PENDING,
    REQUEST_STATUSES,
    REQUEST_TYPE_PERMANENT,
    REQUEST_TYPES,
)
from ..validation import coerce_bool, validate_choice, validate_coordinates, validate_radius
from .audit_service import append_audit_event
from .location_policy_service import policy_or_defaults
from .tenant_service import require_organization
from geoaccess.time_utils import parse_iso_datetime, utcnow


def create_request(
    *,
    org_id: int,
    address: str | None,
    latitude,
    longitude,
    radius=None,
    request_type: str = REQUEST_TYPE_PERMANENT,
    emergency=False,
    valid_from=None,
    valid_to=None,
    requested_by: str | None = None,
) -> LocationAccessRequest:
    """
    Create a new location access request (status: pending).

    Args:
        org_id: Owning organization
        address: Free-text address, display only
        latitude, longitude: Zone center in decimal degrees
        radius: Requested radius in meters; policy default when omitted
        request_type: "permanent" or "temporary"
        emergency: Triage flag
        valid_from, valid_to: Optional validity window (temporary requests)
        requested_by: Actor id from the authentication service

    Raises:
        ValidationError: bad coordinates, non-positive radius, bad type or window
        NotFoundError: unknown organization
    """
    lat, lon = validate_coordinates(latitude, longitude)
    request_type = validate_choice(request_type or REQUEST_TYPE_PERMANENT, REQUEST_TYPES, "request_type")
    emergency = coerce_bool(emergency, "emergency") if emergency is not None else False

    start = parse_iso_datetime(valid_from, field="valid_from")
    end = parse_iso_datetime(valid_to, field="valid_to")
    if request_type == REQUEST_TYPE_PERMANENT:
        # Windows only apply to temporary zones
        start = end = None
    elif start and end and end <= start:
        raise ValidationError("valid_to must be after valid_from")

    require_organization(org_id)

    if radius is None or radius == "":
        radius_meters = policy_or_defaults(org_id).default_radius_meters
    else:
        radius_meters = validate_radius(radius, "radius")

    req = LocationAccessRequest(
        org_id=org_id,
        address=str(address).strip() if address is not None else None,
        latitude=lat,
        longitude=lon,
        requested_radius_meters=radius_meters,
        request_type=request_type,
        valid_from=start,
        valid_to=end,
        emergency=emergency,
        status=REQUEST_STATUS_PENDING,
        requested_by=str(requested_by) if requested_by is not None else None,
        created_at=utcnow(),
    )
    db.session.add(req)
    db.session.flush()

    append_audit_event(
        event_type="location.request_created",
        org_id=org_id,
        entity_type="location_request",
        entity_id=req.id,
        actor_id=requested_by,
        reason="emergency" if emergency else None,
    )

    db.session.commit()
    return req


def get_request(request_id: int) -> LocationAccessRequest:
    req = db.session.query(LocationAccessRequest).filter_by(id=request_id).first()
    if not req:
        raise NotFoundError(f"Location request {request_id} not found")
    return req


def list_requests(org_id: int | None, status: str | None = None) -> list[LocationAccessRequest]:
    """
    Requests for one organization (or all when org_id is None), newest first.

    Raises ValidationError for an unknown status filter.
    """
    query = db.session.query(LocationAccessRequest)
    if org_id is not None:
        query = query.filter_by(org_id=org_id)
    if status:
        status = validate_choice(status, REQUEST_STATUSES, "status")
        query = query.filter_by(status=status)
    return query.order_by(
        LocationAccessRequest.created_at.desc(),
        LocationAccessRequest.id.desc(),
    ).all()


def delete_request(request_id: int, *, actor_id: str | None = None) -> None:
    """
    Permanently delete a request in any status.

    The dependent AllowedLocation (if any) is left exactly as it is.
    """
    req = get_request(request_id)
    org_id = req.org_id
    status = req.status

    db.session.delete(req)
    db.session.flush()

    append_audit_event(
        event_type="location.request_deleted",
        org_id=org_id,
        entity_type="location_request",
        entity_id=request_id,
        actor_id=actor_id,
        reason=f"status was {status}",
    )

    db.session.commit()
