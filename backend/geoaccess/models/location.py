from __future__ import annotations

from ..extensions import db
from geoaccess.roles import KNOWN_ROLES
from geoaccess.time_utils import to_utc_z, utcnow


# Request status values
REQUEST_STATUS_PENDING = "pending"
REQUEST_STATUS_APPROVED = "approved"
REQUEST_STATUS_REJECTED = "rejected"
REQUEST_STATUS_STOPPED = "stopped"

REQUEST_STATUSES = (
    REQUEST_STATUS_PENDING,
    REQUEST_STATUS_APPROVED,
    REQUEST_STATUS_REJECTED,
    REQUEST_STATUS_STOPPED,
)

REQUEST_TYPE_PERMANENT = "permanent"
REQUEST_TYPE_TEMPORARY = "temporary"
REQUEST_TYPES = (REQUEST_TYPE_PERMANENT, REQUEST_TYPE_TEMPORARY)

DEFAULT_RADIUS_METERS = 100
DEFAULT_POLICY_ROLES = list(KNOWN_ROLES)


class LocationAccessRequest(db.Model):
    """
    An organization's request to make a physical address a valid login zone.

    LIFECYCLE:
    - pending: submitted by an org admin, waiting for superadmin review
    - approved: reviewed; an AllowedLocation exists for it
    - rejected: terminal, review_comments explain why
    - stopped: access paused; the AllowedLocation is inactive

    Only the workflow service changes status. version_id guards concurrent
    transitions on the same request.
    """
    __tablename__ = "location_access_requests"
    __table_args__ = (
        db.Index("ix_location_requests_org_status", "org_id", "status"),
        db.Index("ix_location_requests_org_created", "org_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    address = db.Column(db.Text, nullable=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    requested_radius_meters = db.Column(db.Integer, nullable=False)

    # permanent / temporary; validity window only meaningful for temporary
    request_type = db.Column(db.String(16), nullable=False, default=REQUEST_TYPE_PERMANENT)
    valid_from = db.Column(db.DateTime(timezone=True), nullable=True)
    valid_to = db.Column(db.DateTime(timezone=True), nullable=True)

    # Triage flag only, does not change the workflow
    emergency = db.Column(db.Boolean, nullable=False, default=False)

    status = db.Column(db.String(16), nullable=False, default=REQUEST_STATUS_PENDING, index=True)
    review_comments = db.Column(db.Text, nullable=True)

    requested_by = db.Column(db.String(64), nullable=True)
    reviewed_by = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    stopped_at = db.Column(db.DateTime(timezone=True), nullable=True)
    reactivated_at = db.Column(db.DateTime(timezone=True), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    organization = db.relationship("Organization", backref=db.backref("location_requests", lazy=True))

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "requested_radius_meters": self.requested_radius_meters,
            "request_type": self.request_type,
            "valid_from": to_utc_z(self.valid_from),
            "valid_to": to_utc_z(self.valid_to),
            "emergency": self.emergency,
            "status": self.status,
            "review_comments": self.review_comments,
            "requested_by": self.requested_by,
            "reviewed_by": self.reviewed_by,
            "created_at": to_utc_z(self.created_at),
            "reviewed_at": to_utc_z(self.reviewed_at),
            "stopped_at": to_utc_z(self.stopped_at),
            "reactivated_at": to_utc_z(self.reactivated_at),
            "version_id": self.version_id,
        }


class AllowedLocation(db.Model):
    """
    An active (or revoked) login zone materialized from an approved request.

    DESIGN:
    - source_request_id is a lookup key, not an ownership FK: deleting the
      request leaves the zone in place, and deleting the zone leaves the
      request's status untouched
    - At most one zone per request (unique source_request_id)
    - deleted_at is a soft-delete marker; soft-deleted zones are never evaluated
    - Geometry and validity window are copied from the request at approval so
      login evaluation never joins back to requests
    """
    __tablename__ = "allowed_locations"
    __table_args__ = (
        db.UniqueConstraint("source_request_id", name="uq_allowed_locations_source_request"),
        db.Index("ix_allowed_locations_org_active", "org_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)
    source_request_id = db.Column(db.Integer, nullable=True, index=True)

    address = db.Column(db.Text, nullable=True)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    radius_meters = db.Column(db.Integer, nullable=False)

    request_type = db.Column(db.String(16), nullable=False, default=REQUEST_TYPE_PERMANENT)
    valid_from = db.Column(db.DateTime(timezone=True), nullable=True)
    valid_to = db.Column(db.DateTime(timezone=True), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    deleted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    organization = db.relationship("Organization", backref=db.backref("allowed_locations", lazy=True))

    def is_temporary(self) -> bool:
        return self.request_type == REQUEST_TYPE_TEMPORARY

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "source_request_id": self.source_request_id,
            "address": self.address,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "radius_meters": self.radius_meters,
            "request_type": self.request_type,
            "valid_from": to_utc_z(self.valid_from),
            "valid_to": to_utc_z(self.valid_to),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "revoked_at": to_utc_z(self.revoked_at),
            "deleted_at": to_utc_z(self.deleted_at),
        }


class OrganizationLocationPolicy(db.Model):
    """
    Per-organization geofencing switch, default radius and restricted roles.

    Created lazily: an organization without a row behaves as the defaults
    (enforce off, 100 m, all four employee roles).
    """
    __tablename__ = "organization_location_policies"

    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), primary_key=True)
    enforce = db.Column(db.Boolean, nullable=False, default=False)
    default_radius_meters = db.Column(db.Integer, nullable=False, default=DEFAULT_RADIUS_METERS)

    # JSON array of role names, subset of KNOWN_ROLES
    roles = db.Column(db.JSON, nullable=False, default=lambda: list(DEFAULT_POLICY_ROLES))

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organization = db.relationship("Organization", backref=db.backref("location_policy", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "org_id": self.org_id,
            "enforce": bool(self.enforce),
            "default_radius_meters": self.default_radius_meters,
            "roles": list(self.roles or []),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
