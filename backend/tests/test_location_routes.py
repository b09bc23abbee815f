# Overview: Pytest coverage for the location access HTTP API.

"""
Location Access API Tests

SECURITY TESTS: actor headers decide what a caller may see.
- Admins only reach their own organization (foreign ids answer 404)
- Review, stop/start, revoke and delete of zones are SuperAdmin only
- /evaluate only checks the gateway token

ERROR MAPPING: 400 validation, 404 unknown id, 409 wrong status.
"""

import pytest

from conftest import admin_headers, role_headers, superadmin_headers
from geoaccess.services import location_summary_service


def _create(client, org_id, **overrides):
    body = {"address": "Tower B", "latitude": 12.9, "longitude": 77.6, "radius": 150}
    body.update(overrides)
    return client.post('/api/location/org/requests', json=body, headers=admin_headers(org_id))


class TestActorContext:
    def test_missing_role_header(self, client, db_session, org_a):
        response = client.get('/api/location/org/requests')
        assert response.status_code == 401

    def test_admin_without_org_header(self, client, db_session):
        response = client.get('/api/location/org/requests', headers={'X-Actor-Role': 'Admin'})
        assert response.status_code == 401

    def test_agent_cannot_create_requests(self, client, db_session, org_a):
        response = client.post(
            '/api/location/org/requests',
            json={"latitude": 1, "longitude": 1},
            headers=role_headers('Agent', org_a.id),
        )
        assert response.status_code == 403
        assert "SuperAdmin" in response.json['required_roles']

    def test_gateway_token_enforced(self, app, client, db_session, org_a, monkeypatch):
        monkeypatch.setitem(app.config, 'GATEWAY_TOKEN', 's3cret')

        denied = client.get('/api/location/org/requests', headers=admin_headers(org_a.id))
        assert denied.status_code == 401

        headers = admin_headers(org_a.id)
        headers['Authorization'] = 'Bearer s3cret'
        allowed = client.get('/api/location/org/requests', headers=headers)
        assert allowed.status_code == 200


class TestRequestRoutes:
    def test_create_and_list(self, client, db_session, org_a):
        response = _create(client, org_a.id, emergency=True)
        assert response.status_code == 201
        created = response.json['request']
        assert created['status'] == 'pending'
        assert created['requested_radius_meters'] == 150
        assert created['emergency'] is True
        assert created['org_id'] == org_a.id

        listing = client.get('/api/location/org/requests', headers=admin_headers(org_a.id))
        assert listing.status_code == 200
        assert listing.json['count'] == 1
        assert listing.json['items'][0]['id'] == created['id']

    def test_create_invalid_latitude(self, client, db_session, org_a):
        response = _create(client, org_a.id, latitude=123)
        assert response.status_code == 400
        assert 'latitude' in response.json['error']

    def test_create_invalid_radius(self, client, db_session, org_a):
        assert _create(client, org_a.id, radius=0).status_code == 400

    def test_admin_cannot_target_other_org(self, client, db_session, org_a, org_b):
        response = _create(client, org_a.id, organization_id=org_b.id)
        assert response.status_code == 404

    def test_admin_cannot_read_other_org_request(self, client, db_session, org_a, org_b):
        request_id = _create(client, org_b.id).json['request']['id']
        response = client.get(f'/api/location/org/requests/{request_id}', headers=admin_headers(org_a.id))
        assert response.status_code == 404

    def test_superadmin_lists_all_orgs(self, client, db_session, org_a, org_b):
        _create(client, org_a.id)
        _create(client, org_b.id)
        response = client.get('/api/location/org/requests', headers=superadmin_headers())
        assert response.json['count'] == 2

        filtered = client.get(
            f'/api/location/org/requests?organization_id={org_b.id}', headers=superadmin_headers(),
        )
        assert filtered.json['count'] == 1

    def test_superadmin_create_requires_org(self, client, db_session):
        response = client.post(
            '/api/location/org/requests',
            json={"latitude": 1, "longitude": 1},
            headers=superadmin_headers(),
        )
        assert response.status_code == 400

    def test_delete_request(self, client, db_session, org_a):
        request_id = _create(client, org_a.id).json['request']['id']
        response = client.delete(f'/api/location/org/requests/{request_id}', headers=admin_headers(org_a.id))
        assert response.status_code == 200

        missing = client.get(f'/api/location/org/requests/{request_id}', headers=admin_headers(org_a.id))
        assert missing.status_code == 404


class TestReviewRoutes:
    def test_approve_then_conflict(self, client, db_session, org_a):
        request_id = _create(client, org_a.id).json['request']['id']
        url = f'/api/location/org/requests/{request_id}/review'

        first = client.put(url, json={"action": "approve"}, headers=superadmin_headers())
        assert first.status_code == 200
        assert first.json['request']['status'] == 'approved'
        assert first.json['allowed_location']['radius_meters'] == 150

        second = client.put(url, json={"action": "approve"}, headers=superadmin_headers())
        assert second.status_code == 409
        assert second.json['current_status'] == 'approved'

    def test_admin_cannot_review(self, client, db_session, org_a):
        request_id = _create(client, org_a.id).json['request']['id']
        response = client.put(
            f'/api/location/org/requests/{request_id}/review',
            json={"action": "approve"},
            headers=admin_headers(org_a.id),
        )
        assert response.status_code == 403

    def test_unknown_action(self, client, db_session, org_a):
        request_id = _create(client, org_a.id).json['request']['id']
        response = client.put(
            f'/api/location/org/requests/{request_id}/review',
            json={"action": "archive"},
            headers=superadmin_headers(),
        )
        assert response.status_code == 400

    def test_unknown_request(self, client, db_session):
        response = client.put(
            '/api/location/org/requests/99999/review',
            json={"action": "approve"},
            headers=superadmin_headers(),
        )
        assert response.status_code == 404

    def test_reject_with_comments(self, client, db_session, org_a):
        request_id = _create(client, org_a.id).json['request']['id']
        response = client.put(
            f'/api/location/org/requests/{request_id}/review',
            json={"action": "reject", "review_comments": "Outside office premises"},
            headers=superadmin_headers(),
        )
        assert response.status_code == 200
        assert response.json['request']['review_comments'] == 'Outside office premises'
        assert response.json['allowed_location'] is None

    def test_stop_and_start(self, client, db_session, org_a):
        request_id = _create(client, org_a.id).json['request']['id']
        base = f'/api/location/org/requests/{request_id}'

        client.put(f'{base}/review', json={"action": "approve"}, headers=superadmin_headers())

        stopped = client.put(f'{base}/stop-access', headers=superadmin_headers())
        assert stopped.status_code == 200
        assert stopped.json['request']['status'] == 'stopped'
        assert stopped.json['allowed_location']['is_active'] is False

        again = client.put(f'{base}/stop-access', headers=superadmin_headers())
        assert again.status_code == 409
        assert again.json['current_status'] == 'stopped'

        started = client.put(f'{base}/start-access', headers=superadmin_headers())
        assert started.status_code == 200
        assert started.json['allowed_location']['is_active'] is True


class TestAllowedRoutes:
    def _approved_zone(self, client, org_id):
        request_id = _create(client, org_id).json['request']['id']
        response = client.put(
            f'/api/location/org/requests/{request_id}/review',
            json={"action": "approve"},
            headers=superadmin_headers(),
        )
        return request_id, response.json['allowed_location']['id']

    def test_list_scoped_to_admin_org(self, client, db_session, org_a, org_b):
        self._approved_zone(client, org_a.id)
        self._approved_zone(client, org_b.id)

        response = client.get('/api/location/org/allowed', headers=admin_headers(org_a.id))
        assert response.status_code == 200
        assert response.json['count'] == 1
        assert response.json['items'][0]['org_id'] == org_a.id

    def test_revoke(self, client, db_session, org_a):
        request_id, zone_id = self._approved_zone(client, org_a.id)
        response = client.put(f'/api/location/org/allowed/{zone_id}/revoke', headers=superadmin_headers())
        assert response.status_code == 200
        assert response.json['allowed_location']['is_active'] is False

        req = client.get(f'/api/location/org/requests/{request_id}', headers=superadmin_headers())
        assert req.json['request']['status'] == 'approved'

    def test_soft_delete(self, client, db_session, org_a):
        _, zone_id = self._approved_zone(client, org_a.id)
        response = client.delete(f'/api/location/org/allowed/{zone_id}?soft=1', headers=superadmin_headers())
        assert response.status_code == 200
        assert response.json['soft'] is True

        visible = client.get('/api/location/org/allowed', headers=admin_headers(org_a.id))
        assert visible.json['count'] == 0
        history = client.get('/api/location/org/allowed?include_deleted=true', headers=admin_headers(org_a.id))
        assert history.json['count'] == 1

    def test_delete_unknown(self, client, db_session):
        response = client.delete('/api/location/org/allowed/99999', headers=superadmin_headers())
        assert response.status_code == 404


class TestSummaryAndAudit:
    def test_summary_superadmin_only(self, client, db_session, org_a):
        assert client.get('/api/location/org/summary', headers=admin_headers(org_a.id)).status_code == 403

        response = client.get('/api/location/org/summary', headers=superadmin_headers())
        assert response.status_code == 200
        assert response.json['items'][0]['org_id'] == org_a.id

    @pytest.mark.parametrize("limit", ["0", "-5", "ten"])
    def test_audit_rejects_bad_limit(self, client, db_session, org_a, limit):
        response = client.get(f'/api/location/org/audit?limit={limit}', headers=admin_headers(org_a.id))
        assert response.status_code == 400

    def test_summary_failure_is_logged_as_500(self, client, db_session, monkeypatch):
        def broken(**kwargs):
            raise RuntimeError("connection reset")

        monkeypatch.setattr(location_summary_service, "summarize", broken)
        response = client.get('/api/location/org/summary', headers=superadmin_headers())
        assert response.status_code == 500
        assert response.json['error'] == 'Internal server error'

    def test_audit_scoped(self, client, db_session, org_a, org_b):
        _create(client, org_a.id)
        _create(client, org_b.id)
        response = client.get('/api/location/org/audit', headers=admin_headers(org_a.id))
        assert response.status_code == 200
        assert {e['org_id'] for e in response.json['items']} == {org_a.id}


class TestPolicyRoutes:
    def test_admin_reads_defaults(self, client, db_session, org_a):
        response = client.get('/api/admin/location-access', headers=admin_headers(org_a.id))
        assert response.status_code == 200
        assert response.json['policy']['enforce'] is False
        assert response.json['policy']['default_radius_meters'] == 100
        assert response.json['available_roles'] == ['Admin', 'Agent', 'QA', 'TL']
        assert response.json['always_enforced_roles'] == ['Agent', 'QA', 'TL']

    def test_admin_updates_own_policy(self, client, db_session, org_a):
        response = client.put(
            '/api/admin/location-access',
            json={"enforce": True, "roles": ["Agent", "QA"]},
            headers=admin_headers(org_a.id),
        )
        assert response.status_code == 200
        assert response.json['policy']['enforce'] is True
        assert response.json['policy']['roles'] == ['Agent', 'QA']

    @pytest.mark.parametrize("body", [
        {"roles": ["Janitor"]},
        {"default_radius_meters": -1},
        {"colour": "blue"},
    ])
    def test_invalid_policy_update(self, client, db_session, org_a, body):
        response = client.put('/api/admin/location-access', json=body, headers=admin_headers(org_a.id))
        assert response.status_code == 400

    def test_superadmin_toggle(self, client, db_session, org_a):
        url = f'/api/superadmin/organizations/{org_a.id}/location-access/toggle'
        response = client.put(url, headers=superadmin_headers())
        assert response.status_code == 200
        assert response.json['policy']['enforce'] is True
        assert 'enabled' in response.json['message']

    def test_superadmin_unknown_org(self, client, db_session):
        response = client.get('/api/superadmin/organizations/424242/location-access', headers=superadmin_headers())
        assert response.status_code == 404


class TestEvaluateRoute:
    def test_allow_then_deny_after_stop(self, client, db_session, org_a):
        client.put(
            f'/api/superadmin/organizations/{org_a.id}/location-access',
            json={"enforce": True},
            headers=superadmin_headers(),
        )
        request_id = _create(client, org_a.id).json['request']['id']
        client.put(
            f'/api/location/org/requests/{request_id}/review',
            json={"action": "approve"},
            headers=superadmin_headers(),
        )

        body = {"organization_id": org_a.id, "role": "Agent", "latitude": 12.9005, "longitude": 77.6005}
        allowed = client.post('/api/location/evaluate', json=body)
        assert allowed.status_code == 200
        assert allowed.json['decision'] == 'ALLOW'

        client.put(f'/api/location/org/requests/{request_id}/stop-access', headers=superadmin_headers())
        denied = client.post('/api/location/evaluate', json=body)
        assert denied.status_code == 200
        assert denied.json['decision'] == 'DENY'
        assert denied.json['reason'] == 'no_active_zones'

    def test_requires_organization(self, client, db_session):
        response = client.post('/api/location/evaluate', json={"role": "Agent"})
        assert response.status_code == 400

    def test_gateway_token_checked(self, app, client, db_session, org_a, monkeypatch):
        monkeypatch.setitem(app.config, 'GATEWAY_TOKEN', 's3cret')
        response = client.post('/api/location/evaluate', json={"organization_id": org_a.id, "role": "Agent"})
        assert response.status_code == 401


def test_health(client, db_session):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.json['checks']['database']['status'] == 'healthy'
