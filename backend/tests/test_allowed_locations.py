# Overview: Pytest coverage for allowed location listing, revocation and deletion.

from datetime import datetime, timedelta

import pytest

from geoaccess.errors import NotFoundError
from geoaccess.models import AllowedLocation
from geoaccess.services import allowed_location_service, location_request_service, location_workflow_service


def _approve(org_id, **kwargs):
    params = {"address": "zone", "latitude": 0, "longitude": 0, "radius": 100}
    params.update(kwargs)
    req = location_request_service.create_request(org_id=org_id, **params)
    return location_workflow_service.approve_request(req.id)


class TestListAllowed:
    def test_scoped_and_excludes_soft_deleted(self, db_session, org_a, org_b):
        _, keep = _approve(org_a.id, address="keep")
        _, gone = _approve(org_a.id, address="gone")
        _approve(org_b.id, address="other")

        allowed_location_service.delete_allowed_location(gone.id, soft=True)

        visible = allowed_location_service.list_allowed_locations(org_a.id)
        assert [loc.address for loc in visible] == ["keep"]

        everything = allowed_location_service.list_allowed_locations(org_a.id, include_deleted=True)
        assert {loc.address for loc in everything} == {"keep", "gone"}

        assert len(allowed_location_service.list_allowed_locations(None)) == 2


class TestRevoke:
    def test_revoke_keeps_request_status(self, db_session, approved_office):
        req, location = approved_office
        revoked = allowed_location_service.revoke_allowed_location(location.id, actor_id="root")

        assert revoked.is_active is False
        assert revoked.revoked_at is not None
        assert location_request_service.get_request(req.id).status == "approved"

    def test_revoke_is_idempotent(self, db_session, approved_office):
        _, location = approved_office
        first = allowed_location_service.revoke_allowed_location(location.id).revoked_at
        second = allowed_location_service.revoke_allowed_location(location.id).revoked_at
        assert first == second

    def test_revoke_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            allowed_location_service.revoke_allowed_location(99999)


class TestDelete:
    def test_hard_delete_keeps_request_status(self, db_session, approved_office):
        req, location = approved_office
        location_id = location.id
        allowed_location_service.delete_allowed_location(location_id)

        assert db_session.get(AllowedLocation, location_id) is None
        assert location_request_service.get_request(req.id).status == "approved"

    def test_soft_delete_marks_row(self, db_session, approved_office):
        _, location = approved_office
        allowed_location_service.delete_allowed_location(location.id, soft=True)

        kept = allowed_location_service.get_allowed_location(location.id)
        assert kept.deleted_at is not None
        assert allowed_location_service.has_any_locations(kept.org_id) is False

    def test_delete_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            allowed_location_service.delete_allowed_location(99999)


class TestActiveZones:
    def test_permanent_zone_active(self, db_session, org_a, approved_office):
        assert len(allowed_location_service.active_locations_for_org(org_a.id)) == 1

    def test_revoked_zone_inactive_but_counted_as_existing(self, db_session, org_a, approved_office):
        _, location = approved_office
        allowed_location_service.revoke_allowed_location(location.id)

        assert allowed_location_service.active_locations_for_org(org_a.id) == []
        assert allowed_location_service.has_any_locations(org_a.id) is True

    def test_temporary_zone_window(self, db_session, org_a):
        _approve(
            org_a.id,
            request_type="temporary",
            valid_from="2026-05-01T00:00:00Z",
            valid_to="2026-05-03T00:00:00Z",
        )
        start = datetime(2026, 5, 1)
        end = datetime(2026, 5, 3)

        assert allowed_location_service.active_locations_for_org(org_a.id, start - timedelta(seconds=1)) == []
        assert len(allowed_location_service.active_locations_for_org(org_a.id, start)) == 1
        assert len(allowed_location_service.active_locations_for_org(org_a.id, end)) == 1
        assert allowed_location_service.active_locations_for_org(org_a.id, end + timedelta(seconds=1)) == []

    def test_open_ended_temporary_zone(self, db_session, org_a):
        _approve(org_a.id, request_type="temporary", valid_from="2026-05-01T00:00:00Z")
        assert len(allowed_location_service.active_locations_for_org(org_a.id, datetime(2030, 1, 1))) == 1
