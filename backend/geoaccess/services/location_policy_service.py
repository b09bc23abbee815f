# Overview: Service-layer operations for per-organization location policies.

"""
Organization Location Policy Service

WHY: Each organization decides whether login geofencing is enforced, which
radius new zones get by default and which employee roles are restricted.

DESIGN:
- One row per organization, created on first update
- Reads never create rows: a missing row means defaults
- Partial updates; an omitted field keeps its current value
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import OrganizationLocationPolicy
from ..models.location import DEFAULT_POLICY_ROLES, DEFAULT_RADIUS_METERS
from ..roles import normalize_policy_roles
from ..validation import coerce_bool, validate_radius
from .audit_service import append_audit_event
from .tenant_service import require_organization
from geoaccess.time_utils import utcnow


def default_radius_meters() -> int:
    return int(current_app.config.get("GEOFENCE_DEFAULT_RADIUS_METERS", DEFAULT_RADIUS_METERS))


def _defaults(org_id: int) -> OrganizationLocationPolicy:
    # Transient instance, never added to the session
    return OrganizationLocationPolicy(
        org_id=org_id,
        enforce=False,
        default_radius_meters=default_radius_meters(),
        roles=list(DEFAULT_POLICY_ROLES),
    )


def find_policy(org_id: int) -> OrganizationLocationPolicy | None:
    return db.session.query(OrganizationLocationPolicy).filter_by(org_id=org_id).first()


def get_policy(org_id: int) -> OrganizationLocationPolicy:
    """Persisted policy for the organization, or an unsaved policy holding the defaults."""
    require_organization(org_id)
    return policy_or_defaults(org_id)


def policy_or_defaults(org_id: int) -> OrganizationLocationPolicy:
    """Like get_policy but without the organization existence check (login path)."""
    return find_policy(org_id) or _defaults(org_id)


def update_policy(
    org_id: int,
    *,
    enforce=...,
    default_radius_meters=...,
    roles=...,
    actor_id: str | None = None,
) -> OrganizationLocationPolicy:
    """
    Partially update an organization's policy, creating it on first write.

    Raises:
        NotFoundError: unknown organization
        ValidationError: non-boolean enforce, non-positive radius, unknown role
    """
    require_organization(org_id)

    # Validate everything before touching the row
    changes = {}
    if enforce is not ...:
        changes["enforce"] = coerce_bool(enforce, "enforce")
    if default_radius_meters is not ...:
        changes["default_radius_meters"] = validate_radius(default_radius_meters, "default_radius_meters")
    if roles is not ...:
        changes["roles"] = normalize_policy_roles(roles)

    policy = find_policy(org_id)
    if policy is None:
        policy = _defaults(org_id)
        db.session.add(policy)

    for key, value in changes.items():
        setattr(policy, key, value)
    policy.updated_at = utcnow()

    db.session.flush()

    append_audit_event(
        event_type="location.policy_updated",
        org_id=org_id,
        entity_type="policy",
        entity_id=org_id,
        actor_id=actor_id,
        reason=", ".join(f"{k}={v}" for k, v in sorted(changes.items())) or None,
    )

    db.session.commit()
    return policy


def toggle_enforcement(org_id: int, *, actor_id: str | None = None) -> OrganizationLocationPolicy:
    """Flip the enforce switch."""
    current = get_policy(org_id)
    return update_policy(org_id, enforce=not bool(current.enforce), actor_id=actor_id)
