# Overview: Approval workflow for location access requests and their allowed locations.

"""
Location Access Workflow

WHY: A request and the login zone derived from it must never disagree.
This module is the only writer that changes both in one transaction.

LIFECYCLE:
1. pending  -> approved  review(approve): AllowedLocation created
2. pending  -> rejected  review(reject): comments stored, terminal
3. approved -> stopped   stop_access: AllowedLocation deactivated
4. stopped  -> approved  start_access: AllowedLocation reactivated

CONCURRENCY:
- The request row is locked (SELECT ... FOR UPDATE) for the whole transition
- version_id on the request catches a lost update where row locks are not
  available (SQLite); the transition is retried, re-reads the committed
  status and fails the guard with InvalidStateError
- The request update is flushed before the zone insert so a conflicting
  transition fails on the version check first
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import GeoAccessError, InvalidStateError, NotFoundError
from ..models import AllowedLocation, LocationAccessRequest
from ..models.location import (
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
    REQUEST_STATUS_STOPPED,
)
from ..validation import validate_choice
from .audit_service import append_audit_event
from .concurrency import RETRYABLE_ERRORS, lock_for_update, run_with_retry
from geoaccess.time_utils import utcnow


REVIEW_APPROVE = "approve"
REVIEW_REJECT = "reject"
REVIEW_ACTIONS = (REVIEW_APPROVE, REVIEW_REJECT)

_TRANSITION_RETRY_ON = RETRYABLE_ERRORS + (IntegrityError,)


def _lock_request(request_id: int) -> LocationAccessRequest:
    req = lock_for_update(db.session.query(LocationAccessRequest).filter_by(id=request_id)).first()
    if not req:
        raise NotFoundError(f"Location request {request_id} not found")
    return req


def _lock_location_for(request_id: int) -> AllowedLocation | None:
    return lock_for_update(
        db.session.query(AllowedLocation).filter_by(source_request_id=request_id)
    ).first()


def _require_status(req: LocationAccessRequest, expected: str, verb: str) -> None:
    if req.status != expected:
        raise InvalidStateError(
            f"Cannot {verb} location request {req.id} in {req.status} status (requires {expected})",
            current_status=req.status,
        )


def _materialize_location(req: LocationAccessRequest, now: datetime) -> AllowedLocation:
    location = AllowedLocation(
        org_id=req.org_id,
        source_request_id=req.id,
        address=req.address,
        latitude=req.latitude,
        longitude=req.longitude,
        radius_meters=req.requested_radius_meters,
        request_type=req.request_type,
        valid_from=req.valid_from,
        valid_to=req.valid_to,
        is_active=True,
        created_at=now,
    )
    db.session.add(location)
    db.session.flush()
    return location


def _run_transition(request_id: int, op):
    try:
        return run_with_retry(op, retry_on=_TRANSITION_RETRY_ON)
    except GeoAccessError:
        # Release the row lock taken before the guard failed
        db.session.rollback()
        raise
    except _TRANSITION_RETRY_ON as exc:
        # Retries exhausted: report the conflict against the committed status
        db.session.rollback()
        current_app.logger.warning(
            "Location request %s transition lost a concurrent update: %s", request_id, exc.__class__.__name__
        )
        req = db.session.get(LocationAccessRequest, request_id, populate_existing=True)
        if req is None:
            raise NotFoundError(f"Location request {request_id} not found")
        raise InvalidStateError(
            f"Location request {request_id} was changed concurrently (now {req.status})",
            current_status=req.status,
        )


def review_request(
    request_id: int,
    action: str,
    *,
    comments: str | None = None,
    reviewer_id: str | None = None,
) -> tuple[LocationAccessRequest, AllowedLocation | None]:
    """
    Approve or reject a pending request.

    Returns:
        (request, allowed_location) - allowed_location is None on reject

    Raises:
        ValidationError: action is not approve/reject
        NotFoundError: unknown request
        InvalidStateError: request is not pending
    """
    action = validate_choice(action, REVIEW_ACTIONS, "action")
    comments = comments.strip() if isinstance(comments, str) and comments.strip() else None

    def _op():
        req = _lock_request(request_id)
        _require_status(req, REQUEST_STATUS_PENDING, "review")

        now = utcnow()
        req.reviewed_at = now
        req.reviewed_by = str(reviewer_id) if reviewer_id is not None else None
        req.review_comments = comments
        req.status = REQUEST_STATUS_APPROVED if action == REVIEW_APPROVE else REQUEST_STATUS_REJECTED
        db.session.flush()

        location = None
        if action == REVIEW_APPROVE:
            location = _materialize_location(req, now)

        append_audit_event(
            event_type=f"location.request_{req.status}",
            org_id=req.org_id,
            entity_type="location_request",
            entity_id=req.id,
            actor_id=reviewer_id,
            reason=comments,
            occurred_at=now,
        )

        db.session.commit()
        return req, location

    return _run_transition(request_id, _op)


def approve_request(request_id: int, *, comments: str | None = None, reviewer_id: str | None = None):
    return review_request(request_id, REVIEW_APPROVE, comments=comments, reviewer_id=reviewer_id)


def reject_request(request_id: int, *, comments: str | None = None, reviewer_id: str | None = None):
    return review_request(request_id, REVIEW_REJECT, comments=comments, reviewer_id=reviewer_id)


def stop_access(request_id: int, *, actor_id: str | None = None) -> tuple[LocationAccessRequest, AllowedLocation | None]:
    """
    Pause an approved request: status -> stopped, zone deactivated.

    If the zone was hard-deleted earlier, only the request status changes.
    """
    def _op():
        req = _lock_request(request_id)
        _require_status(req, REQUEST_STATUS_APPROVED, "stop access for")

        now = utcnow()
        req.status = REQUEST_STATUS_STOPPED
        req.stopped_at = now
        db.session.flush()

        location = _lock_location_for(req.id)
        if location is not None:
            location.is_active = False
            location.revoked_at = now
            db.session.flush()
        else:
            current_app.logger.warning(
                "Location request %s stopped without an allowed location (deleted earlier)", req.id
            )

        append_audit_event(
            event_type="location.access_stopped",
            org_id=req.org_id,
            entity_type="location_request",
            entity_id=req.id,
            actor_id=actor_id,
            occurred_at=now,
        )

        db.session.commit()
        return req, location

    return _run_transition(request_id, _op)


def start_access(request_id: int, *, actor_id: str | None = None) -> tuple[LocationAccessRequest, AllowedLocation]:
    """
    Reactivate a stopped request: status -> approved, zone reactivated.

    Geometry is untouched. A zone that was soft-deleted while the request was
    stopped is restored; one that was hard-deleted is re-created from the
    request. Either way the approved request again maps to exactly one
    evaluable allowed location.
    """
    def _op():
        req = _lock_request(request_id)
        _require_status(req, REQUEST_STATUS_STOPPED, "start access for")

        now = utcnow()
        req.status = REQUEST_STATUS_APPROVED
        req.reactivated_at = now
        db.session.flush()

        location = _lock_location_for(req.id)
        if location is not None:
            location.is_active = True
            location.revoked_at = None
            # source_request_id is unique, so a soft-deleted zone is restored in place
            location.deleted_at = None
            db.session.flush()
        else:
            current_app.logger.warning(
                "Location request %s reactivated without an allowed location; re-creating it", req.id
            )
            location = _materialize_location(req, now)

        append_audit_event(
            event_type="location.access_started",
            org_id=req.org_id,
            entity_type="location_request",
            entity_id=req.id,
            actor_id=actor_id,
            occurred_at=now,
        )

        db.session.commit()
        return req, location

    return _run_transition(request_id, _op)
