# Overview: Flask API routes for location access requests, allowed locations and login evaluation.

"""
Location Access Routes

DESIGN:
- Org admins create and view requests for their own organization
- SuperAdmins review, stop/start, revoke and delete across organizations
- The authentication service calls /evaluate at login time

SECURITY:
- Actor context comes from gateway headers (see decorators.require_actor)
- Non-SuperAdmin actors only ever see their own organization; foreign ids
  answer 404 so existence is not revealed
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import is_superadmin, require_actor, require_gateway, require_role
from ..errors import GeoAccessError, NotFoundError, ValidationError
from ..roles import ROLE_ADMIN, ROLE_SUPERADMIN
from ..services import (
    allowed_location_service,
    audit_service,
    geofence_service,
    location_request_service,
    location_summary_service,
    location_workflow_service,
)
from ..validation import coerce_bool, coerce_int
from .errors import error_response, internal_error


location_bp = Blueprint("location", __name__, url_prefix="/api/location")


def _scoped_org_id(requested=None):
    """
    Organization the current actor may act on.

    SuperAdmin: the requested id (None means all organizations).
    Others: always their own; asking for another org is treated as not found.
    """
    if requested is not None and requested != "":
        requested = coerce_int(requested, "organization_id")
    else:
        requested = None

    if is_superadmin():
        return requested
    if requested is not None and requested != g.org_id:
        raise NotFoundError(f"Organization {requested} not found")
    return g.org_id


def _require_owned(entity, label: str):
    if not is_superadmin() and entity.org_id != g.org_id:
        raise NotFoundError(f"{label} {entity.id} not found")
    return entity


def _transition_payload(req, location):
    return {
        "request": req.to_dict(),
        "allowed_location": location.to_dict() if location is not None else None,
    }


# =============================================================================
# LOCATION REQUESTS
# =============================================================================

@location_bp.post("/org/requests")
@require_actor
@require_role(ROLE_ADMIN, ROLE_SUPERADMIN)
def create_request_route():
    """
    Create a location access request (status: pending).

    Request body:
    {
        "address": "Tower B, 4th floor",
        "latitude": 12.9,
        "longitude": 77.6,
        "radius": 150,                (optional, policy default)
        "request_type": "permanent",  (or "temporary")
        "valid_from": "...", "valid_to": "...",  (temporary only)
        "emergency": false,
        "organization_id": 3          (SuperAdmin only)
    }
    """
    data = request.get_json(silent=True) or {}
    try:
        org_id = _scoped_org_id(data.get("organization_id"))
        if org_id is None:
            return jsonify({"error": "organization_id is required"}), 400

        radius = data.get("radius", data.get("requested_radius_meters"))
        req = location_request_service.create_request(
            org_id=org_id,
            address=data.get("address"),
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            radius=radius,
            request_type=data.get("request_type") or "permanent",
            emergency=data.get("emergency", False),
            valid_from=data.get("valid_from"),
            valid_to=data.get("valid_to"),
            requested_by=g.actor_id,
        )
        return jsonify({"request": req.to_dict()}), 201
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create location request")
        return internal_error()


@location_bp.get("/org/requests")
@require_actor
@require_role(ROLE_ADMIN, ROLE_SUPERADMIN)
def list_requests_route():
    try:
        org_id = _scoped_org_id(request.args.get("organization_id"))
        requests_ = location_request_service.list_requests(org_id, status=request.args.get("status"))
        items = [r.to_dict() for r in requests_]
        return jsonify({"items": items, "count": len(items)})
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list location requests")
        return internal_error()


@location_bp.get("/org/requests/<int:request_id>")
@require_actor
@require_role(ROLE_ADMIN, ROLE_SUPERADMIN)
def get_request_route(request_id: int):
    try:
        req = _require_owned(location_request_service.get_request(request_id), "Location request")
        location = allowed_location_service.find_by_source_request(request_id)
        return jsonify(_transition_payload(req, location))
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load location request")
        return internal_error()


@location_bp.delete("/org/requests/<int:request_id>")
@require_actor
@require_role(ROLE_ADMIN, ROLE_SUPERADMIN)
def delete_request_route(request_id: int):
    """
    Permanently delete a request in any status.

    Its allowed location (if any) is NOT removed; use the allowed-location
    endpoints for that.
    """
    try:
        _require_owned(location_request_service.get_request(request_id), "Location request")
        location_request_service.delete_request(request_id, actor_id=g.actor_id)
        return jsonify({"deleted": True, "id": request_id})
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete location request")
        return internal_error()


# =============================================================================
# REVIEW WORKFLOW (SuperAdmin)
# =============================================================================

@location_bp.put("/org/requests/<int:request_id>/review")
@require_actor
@require_role(ROLE_SUPERADMIN)
def review_request_route(request_id: int):
    """
    Request body:
    {
        "action": "approve" | "reject",
        "review_comments": "Outside office premises"   (optional)
    }

    Returns:
        200: reviewed
        400: unknown action
        404: unknown request
        409: request is not pending (body includes current_status)
    """
    data = request.get_json(silent=True) or {}
    try:
        req, location = location_workflow_service.review_request(
            request_id,
            data.get("action"),
            comments=data.get("review_comments"),
            reviewer_id=g.actor_id,
        )
        return jsonify(_transition_payload(req, location))
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to review location request")
        return internal_error()


@location_bp.put("/org/requests/<int:request_id>/stop-access")
@require_actor
@require_role(ROLE_SUPERADMIN)
def stop_access_route(request_id: int):
    try:
        req, location = location_workflow_service.stop_access(request_id, actor_id=g.actor_id)
        return jsonify(_transition_payload(req, location))
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to stop location access")
        return internal_error()


@location_bp.put("/org/requests/<int:request_id>/start-access")
@require_actor
@require_role(ROLE_SUPERADMIN)
def start_access_route(request_id: int):
    try:
        req, location = location_workflow_service.start_access(request_id, actor_id=g.actor_id)
        return jsonify(_transition_payload(req, location))
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to start location access")
        return internal_error()


# =============================================================================
# ALLOWED LOCATIONS
# =============================================================================

@location_bp.get("/org/allowed")
@require_actor
@require_role(ROLE_ADMIN, ROLE_SUPERADMIN)
def list_allowed_route():
    try:
        org_id = _scoped_org_id(request.args.get("organization_id"))
        include_deleted = coerce_bool(request.args.get("include_deleted", "false"), "include_deleted")
        locations = allowed_location_service.list_allowed_locations(org_id, include_deleted=include_deleted)
        return jsonify({"items": [loc.to_dict() for loc in locations], "count": len(locations)})
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list allowed locations")
        return internal_error()


@location_bp.put("/org/allowed/<int:location_id>/revoke")
@require_actor
@require_role(ROLE_SUPERADMIN)
def revoke_allowed_route(location_id: int):
    try:
        location = allowed_location_service.revoke_allowed_location(location_id, actor_id=g.actor_id)
        return jsonify({"allowed_location": location.to_dict()})
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to revoke allowed location")
        return internal_error()


@location_bp.delete("/org/allowed/<int:location_id>")
@require_actor
@require_role(ROLE_SUPERADMIN)
def delete_allowed_route(location_id: int):
    """Hard delete by default; ?soft=1 only marks deleted_at. The source request is untouched."""
    try:
        soft = coerce_bool(request.args.get("soft", "false"), "soft")
        allowed_location_service.delete_allowed_location(location_id, soft=soft, actor_id=g.actor_id)
        return jsonify({"deleted": True, "id": location_id, "soft": soft})
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete allowed location")
        return internal_error()


# =============================================================================
# REPORTING (SuperAdmin)
# =============================================================================

@location_bp.get("/org/summary")
@require_actor
@require_role(ROLE_SUPERADMIN)
def summary_route():
    try:
        rows = location_summary_service.summarize()
        return jsonify({"items": rows, "count": len(rows)})
    except Exception:
        current_app.logger.exception("Failed to summarize location access")
        return internal_error()


@location_bp.get("/org/audit")
@require_actor
@require_role(ROLE_ADMIN, ROLE_SUPERADMIN)
def audit_route():
    try:
        org_id = _scoped_org_id(request.args.get("organization_id"))
        limit = coerce_int(request.args.get("limit", 200), "limit")
        if limit <= 0:
            raise ValidationError("limit must be > 0")
        limit = min(limit, 1000)
        events = audit_service.list_audit_events(org_id=org_id, limit=limit)
        return jsonify({"items": [e.to_dict() for e in events], "count": len(events)})
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list location audit events")
        return internal_error()


# =============================================================================
# LOGIN EVALUATION (authentication service)
# =============================================================================

@location_bp.post("/evaluate")
@require_gateway
def evaluate_route():
    """
    Decide whether a login may proceed from the reported coordinates.

    Request body:
    {
        "organization_id": 3,
        "role": "Agent",
        "latitude": 12.9005,      (optional unless the role is enforced)
        "longitude": 77.6005,
        "actor_id": "emp-118"     (optional, audit only)
    }

    Returns 200 with {"decision": "ALLOW"|"DENY", "reason": ...} for both
    outcomes; DENY is not an error.
    """
    data = request.get_json(silent=True) or {}
    try:
        raw_org = data.get("organization_id")
        if raw_org is None:
            return jsonify({"error": "organization_id is required"}), 400
        org_id = coerce_int(raw_org, "organization_id")
        role = data.get("role")

        decision = geofence_service.evaluate(
            org_id,
            role,
            data.get("latitude"),
            data.get("longitude"),
        )
        geofence_service.record_decision(decision, org_id=org_id, role=role, actor_id=data.get("actor_id"))
        return jsonify(decision.to_dict())
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to evaluate login location")
        return internal_error()
