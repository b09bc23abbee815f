# Overview: Flask API routes for per-organization location policy settings.

"""
Location Access Settings Routes

- /api/admin/location-access: an org admin manages their own organization
- /api/superadmin/organizations/<org_id>/location-access: any organization

Request body for PUT (all fields optional, partial update):
{
    "enforce": true,
    "default_radius_meters": 150,
    "roles": ["Admin", "Agent", "QA", "TL"]
}
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_actor, require_role
from ..errors import GeoAccessError, ValidationError
from ..roles import ALWAYS_ENFORCED_ROLES, KNOWN_ROLES, ROLE_ADMIN, ROLE_SUPERADMIN
from ..services import location_policy_service
from .errors import error_response, internal_error


admin_location_bp = Blueprint("admin_location", __name__, url_prefix="/api/admin")
superadmin_location_bp = Blueprint("superadmin_location", __name__, url_prefix="/api/superadmin/organizations")

_POLICY_FIELDS = ("enforce", "default_radius_meters", "roles")


def _policy_payload(policy):
    return {
        "policy": policy.to_dict(),
        "available_roles": list(KNOWN_ROLES),
        "always_enforced_roles": sorted(ALWAYS_ENFORCED_ROLES),
    }


def _get(org_id: int):
    try:
        return jsonify(_policy_payload(location_policy_service.get_policy(org_id)))
    except GeoAccessError as e:
        return error_response(e)


def _update(org_id: int):
    data = request.get_json(silent=True)
    try:
        if not isinstance(data, dict):
            raise ValidationError("Invalid JSON payload")
        unknown = sorted(set(data) - set(_POLICY_FIELDS))
        if unknown:
            raise ValidationError(f"Field not allowed: {', '.join(unknown)}")

        changes = {k: data[k] for k in _POLICY_FIELDS if k in data}
        policy = location_policy_service.update_policy(org_id, actor_id=g.actor_id, **changes)
        return jsonify(_policy_payload(policy))
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update location policy")
        return internal_error()


def _toggle(org_id: int):
    try:
        policy = location_policy_service.toggle_enforcement(org_id, actor_id=g.actor_id)
        state = "enabled" if policy.enforce else "disabled"
        payload = _policy_payload(policy)
        payload["message"] = f"Location access {state} successfully"
        return jsonify(payload)
    except GeoAccessError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to toggle location policy")
        return internal_error()


# =============================================================================
# ORG ADMIN
# =============================================================================

@admin_location_bp.get("/location-access")
@require_actor
@require_role(ROLE_ADMIN)
def get_own_policy_route():
    return _get(g.org_id)


@admin_location_bp.put("/location-access")
@require_actor
@require_role(ROLE_ADMIN)
def update_own_policy_route():
    return _update(g.org_id)


@admin_location_bp.put("/location-access/toggle")
@require_actor
@require_role(ROLE_ADMIN)
def toggle_own_policy_route():
    return _toggle(g.org_id)


# =============================================================================
# SUPERADMIN
# =============================================================================

@superadmin_location_bp.get("/<int:org_id>/location-access")
@require_actor
@require_role(ROLE_SUPERADMIN)
def get_policy_route(org_id: int):
    return _get(org_id)


@superadmin_location_bp.put("/<int:org_id>/location-access")
@require_actor
@require_role(ROLE_SUPERADMIN)
def update_policy_route(org_id: int):
    return _update(org_id)


@superadmin_location_bp.put("/<int:org_id>/location-access/toggle")
@require_actor
@require_role(ROLE_SUPERADMIN)
def toggle_policy_route(org_id: int):
    return _toggle(org_id)
