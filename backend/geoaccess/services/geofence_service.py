# Overview: Login-time geofence decision for an employee's reported coordinates.

"""
Login Geofence Evaluator

Called synchronously by the authentication service before a session is
issued. Read-only and lock-free: a login evaluated against a zone revoked a
moment later is accepted, the next login sees the new state.

DECISION RULES:
1. Policy not enforced and the organization has no zones at all -> ALLOW
2. Role is enforced if the policy is on and lists the role, OR the role is
   Agent/QA/TL and the organization has at least one active zone
3. Role not enforced -> ALLOW
4. Enforced but no active zone -> DENY no_active_zones
5. Inside any zone (distance <= radius, Haversine) -> ALLOW, else DENY
   outside_allowed_radius
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from flask import current_app

from ..extensions import db
from ..geo import GeoPoint, haversine_m
from ..roles import ALWAYS_ENFORCED_ROLES, canonical_role
from ..validation import validate_coordinates
from .allowed_location_service import active_locations_for_org, has_any_locations
from .audit_service import append_audit_event
from .location_policy_service import policy_or_defaults
from geoaccess.time_utils import utcnow


DECISION_ALLOW = "ALLOW"
DECISION_DENY = "DENY"

REASON_NOT_ENFORCED = "not_enforced"
REASON_WITHIN_RADIUS = "within_allowed_radius"
REASON_NO_ACTIVE_ZONES = "no_active_zones"
REASON_OUTSIDE_RADIUS = "outside_allowed_radius"
REASON_LOCATION_REQUIRED = "location_required"


@dataclass(frozen=True)
class GeofenceDecision:
    allowed: bool
    reason: str
    enforced: bool = False
    matched_location_id: int | None = None
    distance_meters: float | None = None

    @property
    def decision(self) -> str:
        return DECISION_ALLOW if self.allowed else DECISION_DENY

    def to_dict(self) -> dict:
        return {
            "decision": self.decision,
            "allowed": self.allowed,
            "reason": self.reason,
            "enforced": self.enforced,
            "matched_location_id": self.matched_location_id,
            "distance_meters": round(self.distance_meters, 2) if self.distance_meters is not None else None,
        }


def _allow(reason: str, **kwargs) -> GeofenceDecision:
    return GeofenceDecision(allowed=True, reason=reason, **kwargs)


def _deny(reason: str, **kwargs) -> GeofenceDecision:
    return GeofenceDecision(allowed=False, reason=reason, enforced=True, **kwargs)


def is_role_enforced(policy, role: str | None, has_active_zones: bool) -> bool:
    if role is None:
        return False
    if policy.enforce and role in (policy.roles or []):
        return True
    # Agent/QA/TL are held to the zones whenever any are active
    return role in ALWAYS_ENFORCED_ROLES and has_active_zones


def evaluate(
    org_id: int,
    role: str | None,
    latitude=None,
    longitude=None,
    *,
    now: datetime | None = None,
) -> GeofenceDecision:
    """
    Decide whether a login at (latitude, longitude) is allowed.

    Coordinates are only required (and validated) when the role is enforced.

    Raises:
        ValidationError: enforced login with out-of-range or non-numeric coordinates
    """
    now = now or utcnow()
    role = canonical_role(role)
    policy = policy_or_defaults(org_id)

    if not policy.enforce and not has_any_locations(org_id):
        return _allow(REASON_NOT_ENFORCED)

    zones = active_locations_for_org(org_id, now)
    if not is_role_enforced(policy, role, bool(zones)):
        return _allow(REASON_NOT_ENFORCED)

    if not zones:
        return _deny(REASON_NO_ACTIVE_ZONES)

    if latitude is None or longitude is None:
        return _deny(REASON_LOCATION_REQUIRED)

    lat, lon = validate_coordinates(latitude, longitude)
    point = GeoPoint(lat, lon)

    nearest = None
    nearest_match = None
    for zone in zones:
        distance = haversine_m(point, GeoPoint(zone.latitude, zone.longitude))
        if nearest is None or distance < nearest:
            nearest = distance
        if distance <= zone.radius_meters and (nearest_match is None or distance < nearest_match[1]):
            nearest_match = (zone.id, distance)

    if nearest_match is not None:
        return _allow(
            REASON_WITHIN_RADIUS,
            enforced=True,
            matched_location_id=nearest_match[0],
            distance_meters=nearest_match[1],
        )
    return _deny(REASON_OUTSIDE_RADIUS, distance_meters=nearest)


def record_decision(
    decision: GeofenceDecision,
    *,
    org_id: int,
    role: str | None,
    actor_id: str | None = None,
) -> None:
    """
    Log the decision and, if GEOFENCE_AUDIT_DECISIONS is on, persist an audit row.

    Kept separate from evaluate() so evaluation itself stays read-only.
    """
    if not decision.allowed:
        current_app.logger.info(
            "Login denied by geofence: org=%s role=%s reason=%s distance=%s",
            org_id, role, decision.reason, decision.distance_meters,
        )

    if not current_app.config.get("GEOFENCE_AUDIT_DECISIONS", True):
        return

    append_audit_event(
        event_type="location.login_allowed" if decision.allowed else "location.login_denied",
        org_id=org_id,
        entity_type="allowed_location" if decision.matched_location_id else None,
        entity_id=decision.matched_location_id,
        actor_id=actor_id,
        role=canonical_role(role),
        decision=decision.decision,
        reason=decision.reason,
    )
    db.session.commit()
