"""
Pytest fixtures for GeoAccess backend tests.

Provides test database setup, organization fixtures, gateway header helpers
and a test client.
"""

import pytest
from geoaccess import create_app
from geoaccess.extensions import db
from geoaccess.models import Organization
from geoaccess.services import location_request_service, location_workflow_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'GATEWAY_TOKEN': '',
        'GEOFENCE_AUDIT_DECISIONS': True,
        'GEOFENCE_DEFAULT_RADIUS_METERS': 100,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def org_a(db_session):
    """Create Organization A (first tenant)."""
    org = Organization(name="Org A - Acme Corp", code="ACME", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def org_b(db_session):
    """Create Organization B (second tenant)."""
    org = Organization(name="Org B - Beta Inc", code="BETA", is_active=True)
    db_session.add(org)
    db_session.commit()
    return org


@pytest.fixture(scope='function')
def office_request(db_session, org_a):
    """Pending permanent request for Org A's office (150 m around 12.90, 77.60)."""
    return location_request_service.create_request(
        org_id=org_a.id,
        address="Tower B, Outer Ring Road",
        latitude=12.90,
        longitude=77.60,
        radius=150,
        requested_by="admin-a",
    )


@pytest.fixture(scope='function')
def approved_office(office_request):
    """Org A's office request, approved. Returns (request, allowed_location)."""
    return location_workflow_service.approve_request(office_request.id, reviewer_id="root")


def superadmin_headers(actor_id: str = "root") -> dict:
    """Gateway headers for a SuperAdmin (no tenant context)."""
    return {'X-Actor-Role': 'SuperAdmin', 'X-Actor-Id': actor_id}


def admin_headers(org_id: int, actor_id: str = "admin") -> dict:
    """Gateway headers for an organization Admin."""
    return {'X-Actor-Role': 'Admin', 'X-Organization-Id': str(org_id), 'X-Actor-Id': actor_id}


def role_headers(role: str, org_id: int, actor_id: str = "emp") -> dict:
    """Gateway headers for any other role."""
    return {'X-Actor-Role': role, 'X-Organization-Id': str(org_id), 'X-Actor-Id': actor_id}
