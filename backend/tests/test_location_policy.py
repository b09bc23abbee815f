# Overview: Pytest coverage for per-organization location policies.

import pytest

from geoaccess.errors import NotFoundError, ValidationError
from geoaccess.models import LocationAuditEvent, OrganizationLocationPolicy
from geoaccess.roles import normalize_policy_roles
from geoaccess.services import location_policy_service


class TestDefaults:
    def test_missing_policy_reads_as_defaults(self, db_session, org_a):
        policy = location_policy_service.get_policy(org_a.id)
        assert policy.enforce is False
        assert policy.default_radius_meters == 100
        assert policy.roles == ["Admin", "Agent", "QA", "TL"]

    def test_reading_does_not_create_row(self, db_session, org_a):
        location_policy_service.get_policy(org_a.id)
        assert db_session.query(OrganizationLocationPolicy).count() == 0

    def test_unknown_organization(self, db_session):
        with pytest.raises(NotFoundError):
            location_policy_service.get_policy(424242)


class TestUpdate:
    def test_partial_update_keeps_other_fields(self, db_session, org_a):
        location_policy_service.update_policy(org_a.id, default_radius_meters=300)
        policy = location_policy_service.update_policy(org_a.id, enforce=True)

        assert policy.enforce is True
        assert policy.default_radius_meters == 300
        assert policy.roles == ["Admin", "Agent", "QA", "TL"]

    def test_roles_normalized(self, db_session, org_a):
        policy = location_policy_service.update_policy(org_a.id, roles=["tl", "Admin", "TL"])
        assert policy.roles == ["Admin", "TL"]

    def test_empty_roles_allowed(self, db_session, org_a):
        policy = location_policy_service.update_policy(org_a.id, roles=[])
        assert policy.roles == []

    @pytest.mark.parametrize("changes", [
        {"roles": ["Admin", "Janitor"]},
        {"roles": "Admin"},
        {"default_radius_meters": 0},
        {"default_radius_meters": -10},
        {"enforce": "sometimes"},
    ])
    def test_invalid_update_rejected_without_write(self, db_session, org_a, changes):
        with pytest.raises(ValidationError):
            location_policy_service.update_policy(org_a.id, **changes)
        assert db_session.query(OrganizationLocationPolicy).count() == 0

    def test_toggle_flips_enforcement(self, db_session, org_a):
        assert location_policy_service.toggle_enforcement(org_a.id).enforce is True
        assert location_policy_service.toggle_enforcement(org_a.id).enforce is False

    def test_update_is_audited(self, db_session, org_a):
        location_policy_service.update_policy(org_a.id, enforce=True, actor_id="admin-a")
        event = db_session.query(LocationAuditEvent).filter_by(event_type="location.policy_updated").one()
        assert event.org_id == org_a.id
        assert event.actor_id == "admin-a"
        assert "enforce=True" in event.reason

    def test_update_unknown_organization(self, db_session):
        with pytest.raises(NotFoundError):
            location_policy_service.update_policy(424242, enforce=True)


class TestRoleNormalization:
    def test_superadmin_cannot_be_restricted(self):
        with pytest.raises(ValidationError):
            normalize_policy_roles(["SuperAdmin"])

    def test_order_follows_known_roles(self):
        assert normalize_policy_roles(["QA", "agent"]) == ["Agent", "QA"]
