from __future__ import annotations

from ..extensions import db
from geoaccess.time_utils import to_utc_z, utcnow


class LocationAuditEvent(db.Model):
    """
    Append-only audit log for location access.

    WHY: Superadmins need to see who approved, stopped or deleted a login zone,
    and why a particular login was denied.

    IMMUTABLE: Never update or delete. Events are written inside the same
    transaction as the change they record.
    """
    __tablename__ = "location_audit_events"
    __table_args__ = (
        db.Index("ix_location_audit_org_occurred", "org_id", "occurred_at"),
        db.Index("ix_location_audit_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, nullable=True, index=True)

    # location.request_created, location.request_approved, location.login_denied, ...
    event_type = db.Column(db.String(64), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=True)  # location_request, allowed_location, policy
    entity_id = db.Column(db.Integer, nullable=True)

    actor_id = db.Column(db.String(64), nullable=True)
    role = db.Column(db.String(32), nullable=True)

    # Login evaluations only: ALLOW / DENY with a reason code
    decision = db.Column(db.String(8), nullable=True)
    reason = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "role": self.role,
            "decision": self.decision,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }
