from __future__ import annotations

from ..extensions import db
from geoaccess.time_utils import to_utc_z


class Organization(db.Model):
    """
    Local mirror of an organization from the external directory.

    WHY: Location requests, allowed locations and policies all hang off an
    organization id. The mirror lets the service answer 404 for unknown
    organizations and lets the summary list organizations with no requests.

    DESIGN:
    - The directory service owns organization CRUD; rows here are registered
      by the CLI (or a sync job) and never edited by location workflows
    - All location data is scoped by org_id
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, unique=True, index=True)  # Short code for lookups

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Organization id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
