# Overview: Read-only rollup of location access across organizations.

from __future__ import annotations

from collections import defaultdict
from datetime import datetime

from sqlalchemy import func

from ..extensions import db
from ..models import AllowedLocation, LocationAccessRequest, Organization, OrganizationLocationPolicy
from ..models.location import (
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_REJECTED,
    REQUEST_STATUS_STOPPED,
)
from ..roles import ALWAYS_ENFORCED_ROLES, KNOWN_ROLES
from .allowed_location_service import is_zone_active
from geoaccess.time_utils import utcnow


def _request_counts() -> dict[int, dict[str, int]]:
    rows = (
        db.session.query(LocationAccessRequest.org_id, LocationAccessRequest.status, func.count(LocationAccessRequest.id))
        .group_by(LocationAccessRequest.org_id, LocationAccessRequest.status)
        .all()
    )
    counts: dict[int, dict[str, int]] = defaultdict(dict)
    for org_id, status, count in rows:
        counts[org_id][status] = count
    return counts


def _active_zone_counts(now: datetime) -> dict[int, int]:
    zones = (
        db.session.query(AllowedLocation)
        .filter(AllowedLocation.is_active.is_(True), AllowedLocation.deleted_at.is_(None))
        .all()
    )
    counts: dict[int, int] = defaultdict(int)
    for zone in zones:
        if is_zone_active(zone, now):
            counts[zone.org_id] += 1
    return counts


def _effective_roles(policy, enforce: bool, active_zones: int) -> list[str]:
    """Roles the login evaluator would currently restrict for this organization."""
    roles = set(policy.roles or []) if (policy and enforce) else set()
    if active_zones:
        roles |= ALWAYS_ENFORCED_ROLES
    return [name for name in KNOWN_ROLES if name in roles]


def summarize(*, now: datetime | None = None) -> list[dict]:
    """
    One row per organization with request counts by status, active zone count
    and the enforcement settings.

    Organizations without any requests or policy report zeros and enforce=False.
    Four queries regardless of how many organizations exist.
    """
    now = now or utcnow()

    orgs = {org.id: org for org in db.session.query(Organization).all()}
    policies = {p.org_id: p for p in db.session.query(OrganizationLocationPolicy).all()}
    request_counts = _request_counts()
    zone_counts = _active_zone_counts(now)

    org_ids = set(orgs) | set(policies) | set(request_counts) | set(zone_counts)

    rows = []
    for org_id in sorted(org_ids):
        org = orgs.get(org_id)
        policy = policies.get(org_id)
        counts = request_counts.get(org_id, {})
        enforce = bool(policy.enforce) if policy else False
        rows.append({
            "org_id": org_id,
            "name": org.name if org else None,
            "active_allowed_count": zone_counts.get(org_id, 0),
            "pending_count": counts.get(REQUEST_STATUS_PENDING, 0),
            "approved_count": counts.get(REQUEST_STATUS_APPROVED, 0),
            "stopped_count": counts.get(REQUEST_STATUS_STOPPED, 0),
            "rejected_count": counts.get(REQUEST_STATUS_REJECTED, 0),
            "enforce": enforce,
            "roles_enforced": _effective_roles(policy, enforce, zone_counts.get(org_id, 0)),
        })
    return rows
