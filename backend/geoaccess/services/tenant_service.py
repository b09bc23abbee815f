"""
Organization lookups for the location services.

Every location operation is scoped to one organization. The organization rows
are a mirror of the external directory, so the only writes here are
registration helpers used by the CLI and tests.

USAGE:
    from geoaccess.services.tenant_service import require_organization

    org = require_organization(org_id)
"""

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import Organization


def require_organization(org_id: int) -> Organization:
    """
    Return the organization or raise NotFoundError.

    Inactive organizations are still returned: deactivating a tenant in the
    directory must not hide its location history from superadmins.
    """
    if org_id is None:
        raise ValidationError("organization_id is required")
    org = db.session.query(Organization).filter_by(id=org_id).first()
    if not org:
        raise NotFoundError(f"Organization {org_id} not found")
    return org


def list_organizations() -> list[Organization]:
    return db.session.query(Organization).order_by(Organization.id.asc()).all()


def register_organization(*, name: str, code: str | None = None, org_id: int | None = None) -> Organization:
    """
    Register (or refresh) the local mirror row for a directory organization.

    Idempotent on org_id / code: an existing row is renamed rather than duplicated.
    """
    if not name or not str(name).strip():
        raise ValidationError("name is required")

    org = None
    if org_id is not None:
        org = db.session.query(Organization).filter_by(id=org_id).first()
    if org is None and code:
        org = db.session.query(Organization).filter_by(code=code).first()

    if org is None:
        org = Organization(name=str(name).strip(), code=code, is_active=True)
        if org_id is not None:
            org.id = org_id
        db.session.add(org)
    else:
        org.name = str(name).strip()
        if code:
            org.code = code

    db.session.commit()
    return org
